"""Error taxonomy for the export workflow.

Every error raised by the library derives from `NotionExportError`, so callers
can catch the whole family at once. `requests` exceptions never leak out of
`http_client`: they are translated into `TransportError` or
`AuthenticationError` at that boundary.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class NotionExportError(Exception):
    """Base class for all export failures."""


class InvalidIdentifierError(NotionExportError, ValueError):
    """Raised when input is neither a block id nor a URL ending in one."""

    def __init__(self, value: str, message: str | None = None):
        self.value = value
        super().__init__(message or f"Invalid URL or blockId: {value}")


class IdentifierRejectedError(InvalidIdentifierError):
    """Raised by task submission when the identifier fails validation.

    No request is sent in that case.
    """


class MissingCredentialError(NotionExportError):
    """Raised when a session token is neither passed nor present in the environment."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Missing {name}")


class TransportError(NotionExportError):
    """Network or HTTP failure that is not otherwise classified."""

    def __init__(self, message: str, *, status_code: int | None = None, response_text: str | None = None):
        self.status_code = status_code
        self.response_text = response_text
        super().__init__(message)


class AuthenticationError(TransportError):
    """Raised when Notion rejects the session tokens (HTTP 401/403)."""


class ExportTaskFailedError(NotionExportError):
    """Raised when an export task ends in any state other than a usable success."""

    def __init__(self, task_id: str, status: dict[str, Any] | None = None, message: str | None = None):
        self.task_id = task_id
        self.status = status or {}
        super().__init__(message or f"Export task failed: {task_id}.")


class ExportTimeoutError(ExportTaskFailedError):
    """Raised when a task is still pending after the configured maximum wait."""

    def __init__(self, task_id: str, status: dict[str, Any] | None, waited: float):
        self.waited = waited
        super().__init__(task_id, status, f"Export task {task_id} still pending after {waited:.1f}s.")


class FileNotFoundInArchiveError(NotionExportError, LookupError):
    """Raised when no archive entry satisfies the requested predicate."""

    def __init__(self, message: str = "Could not find file in ZIP."):
        super().__init__(message)


class FilesystemError(NotionExportError, OSError):
    """Raised when extracted files cannot be written."""

    def __init__(self, message: str, path: str | Path | None = None):
        self.path = Path(path) if path is not None else None
        super().__init__(message)

"""Export Notion blocks, pages and workspaces as Markdown or CSV."""

from .archive import ArchiveEntry, ExportArchive
from .export_config import DEFAULT_EXPORT_CONFIG, ExportConfig
from .exceptions import (
    AuthenticationError,
    ExportTaskFailedError,
    ExportTimeoutError,
    FileNotFoundInArchiveError,
    FilesystemError,
    IdentifierRejectedError,
    InvalidIdentifierError,
    MissingCredentialError,
    NotionExportError,
    TransportError,
)
from .exporter import NotionExporter
from .resolvers import resolve_block_id

__version__ = "0.4.0"

__all__ = [
    "DEFAULT_EXPORT_CONFIG",
    "ArchiveEntry",
    "AuthenticationError",
    "ExportArchive",
    "ExportConfig",
    "ExportTaskFailedError",
    "ExportTimeoutError",
    "FileNotFoundInArchiveError",
    "FilesystemError",
    "IdentifierRejectedError",
    "InvalidIdentifierError",
    "MissingCredentialError",
    "NotionExportError",
    "NotionExporter",
    "TransportError",
    "__version__",
    "resolve_block_id",
]

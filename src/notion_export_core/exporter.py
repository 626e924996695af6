from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import requests

from .archive import EntryPredicate, ExportArchive, csv_predicate, markdown_predicate
from .config_manager import get_config_manager
from .credentials import NotionCredentials
from .exceptions import IdentifierRejectedError, InvalidIdentifierError, TransportError
from .export_config import DEFAULT_EXPORT_CONFIG, ExportConfig
from .http_client import DEFAULT_BASE_URL, DEFAULT_DOWNLOAD_TIMEOUT, DEFAULT_REQUEST_TIMEOUT, NotionApiClient
from .logger import get_logger
from .resolvers import resolve_block_id, to_dashed_uuid
from .tasks import ExportTask, TaskPoller, select_task

logger = get_logger(__name__)


def _settings_export_config(cm) -> ExportConfig:
    """Defaults from the `export.*` settings; a zero wait means unbounded."""
    poll_interval = cm.get_setting("export.poll_interval_ms", DEFAULT_EXPORT_CONFIG.poll_interval)
    max_wait = cm.get_setting("export.max_wait_seconds", 0)
    return DEFAULT_EXPORT_CONFIG.merged(
        poll_interval=int(poll_interval or DEFAULT_EXPORT_CONFIG.poll_interval),
        max_wait=float(max_wait) if max_wait else None,
    )


class NotionExporter:
    """Lightweight client to export ZIP, Markdown or CSV files from a Notion block/page.

    Exporting needs the session cookies of a user with read access to the
    pages: `token_v2` and `file_token`. When not passed they are read from the
    `NOTION_TOKEN` and `NOTION_FILE_TOKEN` environment variables.

    `config` accepts an `ExportConfig` or a plain mapping such as
    `{"recursive": True, "pollInterval": 500, "exportType": "markdown"}`.
    `recursive` and `pollInterval` are used locally; every other key is
    forwarded to Notion's `exportOptions` unchanged.
    """

    def __init__(
        self,
        token_v2: str | None = None,
        file_token: str | None = None,
        config: ExportConfig | Mapping[str, Any] | None = None,
        *,
        base_url: str | None = None,
        session: requests.Session | None = None,
        progress: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Resolve credentials and build the HTTP client; no request is sent yet."""
        credentials = NotionCredentials.resolve(token_v2, file_token)

        cm = get_config_manager()
        if isinstance(config, ExportConfig):
            self.config = config
        else:
            self.config = ExportConfig.from_mapping(config, base=_settings_export_config(cm))

        self.client = NotionApiClient(
            credentials,
            base_url=base_url or cm.get_setting("http.base_url", DEFAULT_BASE_URL),
            request_timeout=float(cm.get_setting("http.request_timeout", DEFAULT_REQUEST_TIMEOUT)),
            download_timeout=float(cm.get_setting("http.download_timeout", DEFAULT_DOWNLOAD_TIMEOUT)),
            session=session,
        )
        self.progress = progress
        self._sleep = sleep

    def _enqueue(self, event_name: str, request: dict[str, Any]) -> str:
        data = self.client.post("enqueueTask", {"task": {"eventName": event_name, "request": request}})
        task_id = data.get("taskId")
        if not task_id:
            raise TransportError(f"enqueueTask returned no taskId: {data!r}")
        logger.info("Enqueued %s task %s", event_name, task_id)
        return str(task_id)

    def get_task_id(self, id_or_url: str) -> str:
        """Add an `exportBlock` task to Notion's queue and return the task id.

        Raises IdentifierRejectedError before any request when `id_or_url`
        does not contain a block id.
        """
        try:
            block_id = resolve_block_id(id_or_url)
        except InvalidIdentifierError as exc:
            raise IdentifierRejectedError(id_or_url) from exc

        return self._enqueue(
            "exportBlock",
            {
                "block": {"id": to_dashed_uuid(block_id)},
                "recursive": bool(self.config.recursive),
                "shouldExportComments": False,
                "exportOptions": self.config.request_options(),
            },
        )

    def get_space_task_id(self, space_id: str) -> str:
        """Add an `exportSpace` task for a whole workspace and return the task id."""
        try:
            normalized = resolve_block_id(space_id)
        except InvalidIdentifierError as exc:
            raise IdentifierRejectedError(space_id, f"Invalid spaceId: {space_id}") from exc

        return self._enqueue(
            "exportSpace",
            {
                "spaceId": to_dashed_uuid(normalized),
                "shouldExportComments": False,
                "exportOptions": self.config.request_options(),
            },
        )

    def get_task(self, task_id: str) -> ExportTask:
        """Fetch the current state of one task."""
        return select_task(self.client.post("getTasks", {"taskIds": [task_id]}), task_id)

    def poll_task(self, task_id: str) -> str:
        """Wait for a task to finish and return its export URL."""
        poller = TaskPoller(
            self.get_task,
            interval_ms=self.config.poll_interval,
            max_wait=self.config.max_wait,
            sleep=self._sleep,
        )
        return poller.wait_for_export_url(task_id)

    def get_zip_url(self, id_or_url: str) -> str:
        """Start an export of the given block and return the URL of the ZIP archive."""
        return self.poll_task(self.get_task_id(id_or_url))

    def download_zip(self, url: str) -> ExportArchive:
        """Download the ZIP at `url` into memory."""
        return ExportArchive(self.client.download(url, progress=self.progress))

    def get_zip(self, id_or_url: str) -> ExportArchive:
        """Export the given block and return the downloaded archive."""
        return self.download_zip(self.get_zip_url(id_or_url))

    def get_md_files(self, id_or_url: str, path: str | Path) -> list[Path]:
        """Export the given block and extract every file of the archive into `path`."""
        return self.get_zip(id_or_url).extract_all_to(path)

    def get_space_files(self, space_id: str, path: str | Path) -> list[Path]:
        """Export a whole workspace and extract it into `path`."""
        url = self.poll_task(self.get_space_task_id(space_id))
        return self.download_zip(url).extract_all_to(path)

    def get_file_string(self, id_or_url: str, predicate: EntryPredicate) -> str:
        """Export the given block and return the first archive entry matching `predicate` as text."""
        return self.get_zip(id_or_url).get_file_string(predicate)

    def get_csv_string(self, id_or_url: str, only_current_view: bool = False) -> str:
        """Export a database and return its CSV: all rows, or only the current view's."""
        return self.get_file_string(id_or_url, csv_predicate(only_current_view))

    def get_md_string(self, id_or_url: str) -> str:
        """Export a page and return its first Markdown file."""
        return self.get_file_string(id_or_url, markdown_predicate)

    def close(self) -> None:
        """Release the HTTP session."""
        self.client.close()

    def __enter__(self) -> NotionExporter:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

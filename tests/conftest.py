"""Test bootstrap.

Ensures `src/` is importable and keeps settings and log files inside
`tmp_path`, away from the user's home directory.
"""

from __future__ import annotations

import contextlib
import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def _reset_logger(logger_mod, logs_dir: Path) -> None:
    for handler in list(logger_mod.app_logger.handlers):
        logger_mod.app_logger.removeHandler(handler)
        with contextlib.suppress(Exception):
            handler.close()
    logger_mod.LOG_BASE_DIR = logs_dir


def pytest_configure():
    """Redirect settings and logging to a temporary folder before test collection."""
    session_dir = Path(tempfile.mkdtemp(prefix="notion-exporter-pytest-"))
    os.environ["NOTION_EXPORTER_CONFIG"] = str(session_dir / "config.json")

    from notion_export_core import logger as logger_mod

    _reset_logger(logger_mod, session_dir / "logs")


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path):
    """Give every test its own settings file, log dir and token-free environment."""
    from notion_export_core import config_manager
    from notion_export_core import logger as logger_mod

    monkeypatch.setenv("NOTION_EXPORTER_CONFIG", str(tmp_path / "config.json"))
    monkeypatch.delenv("NOTION_TOKEN", raising=False)
    monkeypatch.delenv("NOTION_FILE_TOKEN", raising=False)
    config_manager.get_config_manager.cache_clear()

    _reset_logger(logger_mod, tmp_path / "logs")

    yield

    _reset_logger(logger_mod, tmp_path / "logs")
    config_manager.get_config_manager.cache_clear()


class FakeResponse:
    """Just enough of `requests.Response` for the HTTP client."""

    def __init__(self, *, json_data=None, content: bytes = b"", status_code: int = 200, text: str | None = None):
        self._json_data = json_data
        self.content = content
        self.status_code = status_code
        self.text = text if text is not None else (content.decode("utf-8", "replace") if content else "")
        self.headers = {"Content-Length": str(len(content))} if content else {}

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._json_data is None:
            raise ValueError("No JSON object could be decoded")
        return self._json_data

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start : start + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


class FakeSession:
    """Records requests and answers them from per-endpoint queues."""

    def __init__(self):
        self.headers: dict[str, str] = {}
        self.posts: list[tuple[str, dict]] = []
        self.gets: list[str] = []
        self.routes: dict[str, list] = {}
        self.closed = False

    def queue(self, endpoint: str, *responses) -> None:
        """Answer the next calls to `endpoint` (or a download URL) with `responses` in order.

        A response may be an exception instance, which is raised instead.
        """
        self.routes.setdefault(endpoint, []).extend(responses)

    def _next(self, key: str):
        pending = self.routes.get(key)
        if not pending:
            raise AssertionError(f"Unexpected request: {key}")
        item = pending.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def post(self, url, json=None, timeout=None):  # noqa: ARG002
        endpoint = url.rsplit("/", 1)[-1]
        self.posts.append((endpoint, json))
        return self._next(endpoint)

    def get(self, url, stream=False, timeout=None):  # noqa: ARG002
        self.gets.append(url)
        return self._next(url)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_session():
    """A scripted stand-in for `requests.Session`."""
    return FakeSession()


def build_zip(files: dict[str, str | bytes]) -> bytes:
    """Create an in-memory ZIP whose entries keep the insertion order of `files`."""
    import io
    import zipfile

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, payload in files.items():
            archive.writestr(name, payload)
    return buf.getvalue()

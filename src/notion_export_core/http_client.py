"""Authenticated session for Notion's private `api/v3` endpoints.

All `requests` failures are translated here, so the rest of the package only
deals with `TransportError` and `AuthenticationError`.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urljoin

import requests
from requests import RequestException
from tqdm import tqdm

from .credentials import NotionCredentials
from .exceptions import AuthenticationError, TransportError
from .logger import get_logger, summarize_for_debug

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://www.notion.so/api/v3/"
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_DOWNLOAD_TIMEOUT = 120
DOWNLOAD_CHUNK_SIZE = 64 * 1024

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "application/json,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

_AUTH_STATUSES = frozenset({401, 403})


def _response_text(resp: requests.Response | None) -> str | None:
    if resp is None:
        return None
    try:
        return resp.text
    except (RequestException, UnicodeDecodeError, ValueError):
        logger.debug("Failed to read response body", exc_info=True)
        return None


def _raise_for_status(resp: requests.Response, what: str) -> None:
    if resp.ok:
        return
    text = _response_text(resp)
    logger.error("HTTP %s from %s", resp.status_code, what)
    if text:
        logger.debug("Response preview: %s", summarize_for_debug(text))
    error_cls = AuthenticationError if resp.status_code in _AUTH_STATUSES else TransportError
    raise error_cls(f"HTTP {resp.status_code} from {what}", status_code=resp.status_code, response_text=text)


class NotionApiClient:
    """Thin wrapper around a `requests.Session` carrying the Notion cookies.

    The session is configured once and then only used for independent
    requests, so one client may serve several exports at a time.
    """

    def __init__(
        self,
        credentials: NotionCredentials,
        base_url: str = DEFAULT_BASE_URL,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        download_timeout: float = DEFAULT_DOWNLOAD_TIMEOUT,
        session: requests.Session | None = None,
    ):
        """Create the session and attach the auth cookie header."""
        self.base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self.request_timeout = request_timeout
        self.download_timeout = download_timeout
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)
        self.session.headers["Cookie"] = credentials.cookie_header()

    def post(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST JSON to an API endpoint and return the decoded JSON object."""
        url = urljoin(self.base_url, endpoint)
        logger.debug("POST %s", url)
        try:
            resp = self.session.post(url, json=payload, timeout=self.request_timeout)
        except RequestException as exc:
            logger.error("Request to %s failed: %s", url, exc)
            raise TransportError(f"Request to {endpoint} failed: {exc}") from exc

        _raise_for_status(resp, endpoint)
        try:
            data = resp.json()
        except ValueError as exc:
            text = _response_text(resp)
            logger.error("JSON parsing error from %s: %s", endpoint, exc)
            raise TransportError(
                f"Malformed JSON from {endpoint}", status_code=resp.status_code, response_text=text
            ) from exc
        if not isinstance(data, dict):
            raise TransportError(f"Unexpected response shape from {endpoint}", status_code=resp.status_code)
        return data

    def download(self, url: str, progress: bool = False) -> bytes:
        """GET a binary resource (absolute URL) through the authenticated session."""
        logger.info("Downloading export archive")
        logger.debug("GET %s", url)
        chunks: list[bytes] = []
        try:
            with self.session.get(url, stream=True, timeout=self.download_timeout) as resp:
                _raise_for_status(resp, "export download")
                length = str(resp.headers.get("Content-Length") or "")
                total = int(length) if length.isdigit() and int(length) > 0 else None
                with tqdm(
                    total=total, desc="Downloading", unit="B", unit_scale=True, disable=not progress, leave=False
                ) as pbar:
                    for chunk in resp.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if not chunk:
                            continue
                        chunks.append(chunk)
                        pbar.update(len(chunk))
        except RequestException as exc:
            logger.error("Download failed: %s", exc)
            raise TransportError(f"Download failed: {exc}") from exc

        data = b"".join(chunks)
        logger.info("Downloaded %s bytes", len(data))
        return data

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()

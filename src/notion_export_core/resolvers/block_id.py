from __future__ import annotations

import re
import uuid
from urllib.parse import urlparse

from ..exceptions import InvalidIdentifierError
from ..logger import get_logger

logger = get_logger(__name__)

# 32 hex digits, dashes tolerated anywhere between them (canonical UUID form included)
_HEX_WITH_DASHES = r"(?:[0-9a-f]-*){31}[0-9a-f]"

_BARE_ID_RE = re.compile(rf"^-*(?P<id>{_HEX_WITH_DASHES})-*$", flags=re.IGNORECASE)
_TRAILING_ID_RE = re.compile(rf"(?:^|[^0-9a-f])(?P<id>{_HEX_WITH_DASHES})$", flags=re.IGNORECASE)


def _compact(raw: str) -> str:
    return raw.replace("-", "").lower()


def normalize_block_id(raw: str) -> str:
    """Normalize a bare block id.

    Accepts 32 hex digits in any case with any dash placement, e.g.
      - "83715d7703ee4b8699b5e659a4712dd8"
      - "83715D77-03EE-4B86-99B5-E659A4712DD8"

    Raises InvalidIdentifierError when the input is not a bare id.
    """
    text = (raw or "").strip()
    m = _BARE_ID_RE.fullmatch(text)
    if not m:
        raise InvalidIdentifierError(raw)
    return _compact(m.group("id"))


def block_id_from_url(url_or_id: str) -> str:
    """Extract the trailing block id from a Notion URL.

    Only the last path segment is considered, so query strings (`?v=...`) and
    fragments are ignored. A leading slug such as `Notion-Official-` is
    skipped, as is a trailing slash.
    """
    text = (url_or_id or "").strip()
    parsed = urlparse(text)
    path = parsed.path if parsed.scheme else text.split("?", 1)[0].split("#", 1)[0]
    segments = [s for s in path.split("/") if s]
    if not segments:
        raise InvalidIdentifierError(url_or_id)

    m = _TRAILING_ID_RE.search(segments[-1])
    if not m:
        raise InvalidIdentifierError(url_or_id)

    block_id = _compact(m.group("id"))
    logger.debug("Extracted block id %s from %r", block_id, url_or_id)
    return block_id


def resolve_block_id(url_or_id: str) -> str:
    """Return the normalized 32-char lowercase block id for an id or URL."""
    if _BARE_ID_RE.fullmatch((url_or_id or "").strip()):
        return normalize_block_id(url_or_id)
    return block_id_from_url(url_or_id)


def is_block_id(value: str) -> bool:
    """Return True when `value` is an id or URL that resolves to a block id."""
    try:
        resolve_block_id(value)
    except InvalidIdentifierError:
        return False
    return True


def to_dashed_uuid(block_id: str) -> str:
    """Format a normalized block id the way Notion's API stores it (8-4-4-4-12)."""
    return str(uuid.UUID(hex=normalize_block_id(block_id)))

from __future__ import annotations

import pytest

from notion_export_core.exceptions import InvalidIdentifierError
from notion_export_core.resolvers import (
    block_id_from_url,
    is_block_id,
    normalize_block_id,
    resolve_block_id,
    to_dashed_uuid,
)

BLOCK_ID = "83715d7703ee4b8699b5e659a4712dd8"


@pytest.mark.parametrize(
    "raw",
    [
        BLOCK_ID,
        BLOCK_ID.upper(),
        "83715d77-03ee-4b86-99b5-e659a4712dd8",
        "83715D77-03EE-4B86-99B5-E659A4712DD8",
        "8371-5d7703ee4b8699b5e6-59a4712dd8",
        f"  {BLOCK_ID}  ",
    ],
)
def test_bare_ids_normalize_regardless_of_dashes_and_case(raw):
    """Dash placement and case must not change the normalized id."""
    assert normalize_block_id(raw) == BLOCK_ID
    assert resolve_block_id(raw) == BLOCK_ID


@pytest.mark.parametrize(
    "url",
    [
        f"https://www.notion.so/Notion-Official-{BLOCK_ID}",
        f"https://www.notion.so/workspace/Notion-Official-{BLOCK_ID}/",
        f"https://www.notion.so/{BLOCK_ID}?v=4f0e0b1c2d3e4f5a6b7c8d9e0f1a2b3c",
        f"https://acme.notion.site/Cafe-Menu-{BLOCK_ID}#section",
        "https://www.notion.so/Page-83715d77-03ee-4b86-99b5-e659a4712dd8",
    ],
)
def test_urls_yield_trailing_id(url):
    """The id is taken from the last path segment, after any slug."""
    assert block_id_from_url(url) == BLOCK_ID
    assert resolve_block_id(url) == BLOCK_ID


@pytest.mark.parametrize(
    "bad",
    [
        "",
        "not-an-id",
        BLOCK_ID[:-1],
        BLOCK_ID + "0",
        "83715d7703ee4b8699b5e659a4712dzz",
        "https://www.notion.so/Notion-Official",
        f"https://www.notion.so/{BLOCK_ID}/comments",
    ],
)
def test_invalid_inputs_raise(bad):
    """Anything without a trailing 32-hex token is rejected."""
    with pytest.raises(InvalidIdentifierError):
        resolve_block_id(bad)
    assert is_block_id(bad) is False


def test_dashed_uuid_format():
    assert to_dashed_uuid(BLOCK_ID) == "83715d77-03ee-4b86-99b5-e659a4712dd8"

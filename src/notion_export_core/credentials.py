"""Session token lookup.

Notion's private API authenticates with two browser cookies: `token_v2` for
the session and `file_token` for signed file downloads.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .exceptions import MissingCredentialError

TOKEN_V2_ENV = "NOTION_TOKEN"
FILE_TOKEN_ENV = "NOTION_FILE_TOKEN"


def resolve_token(env_name: str, value: str | None = None) -> str:
    """Return the explicit `value` if non-blank, else the env var; raise if neither is set."""
    token = (value or "").strip() or os.environ.get(env_name, "").strip()
    if not token:
        raise MissingCredentialError(env_name)
    return token


@dataclass(frozen=True)
class NotionCredentials:
    """The two cookie values sent with every request."""

    token_v2: str
    file_token: str

    @classmethod
    def resolve(cls, token_v2: str | None = None, file_token: str | None = None) -> NotionCredentials:
        """Build credentials from arguments, falling back to the environment."""
        return cls(
            token_v2=resolve_token(TOKEN_V2_ENV, token_v2),
            file_token=resolve_token(FILE_TOKEN_ENV, file_token),
        )

    def cookie_header(self) -> str:
        """Format as a `Cookie` header value."""
        return f"token_v2={self.token_v2};file_token={self.file_token}"

    def __repr__(self) -> str:
        return "NotionCredentials(token_v2=***, file_token=***)"

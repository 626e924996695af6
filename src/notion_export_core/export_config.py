from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Final

DEFAULT_EXPORT_TYPE: Final = "markdown"
DEFAULT_POLL_INTERVAL_MS: Final = 2000

# Caller keys consumed locally, never forwarded in `exportOptions`
_LOCAL_KEYS: Final = {
    "recursive": "recursive",
    "pollInterval": "poll_interval",
    "poll_interval": "poll_interval",
    "maxWait": "max_wait",
    "max_wait": "max_wait",
}


def _frozen(options: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(options or {}))


@dataclass(frozen=True)
class ExportConfig:
    """Immutable export settings.

    `recursive`, `poll_interval` (milliseconds) and `max_wait` (seconds, `None`
    for unbounded) drive the local workflow. Everything in `export_options` is
    forwarded verbatim to Notion inside `exportOptions`.
    """

    recursive: bool = False
    poll_interval: int = DEFAULT_POLL_INTERVAL_MS
    max_wait: float | None = None
    export_options: Mapping[str, Any] = field(default_factory=lambda: _frozen(None))

    def __post_init__(self):
        if isinstance(self.poll_interval, bool) or not isinstance(self.poll_interval, int) or self.poll_interval <= 0:
            raise ValueError(f"pollInterval must be a positive integer (ms), got {self.poll_interval!r}")
        if self.max_wait is not None and self.max_wait <= 0:
            raise ValueError(f"maxWait must be positive seconds or None, got {self.max_wait!r}")
        if not isinstance(self.export_options, MappingProxyType):
            object.__setattr__(self, "export_options", _frozen(self.export_options))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None, base: ExportConfig | None = None) -> ExportConfig:
        """Split a caller mapping into local fields and passthrough options, merged over `base`."""
        base = base or DEFAULT_EXPORT_CONFIG
        fields: dict[str, Any] = {}
        passthrough: dict[str, Any] = {}
        for key, value in (mapping or {}).items():
            if key in _LOCAL_KEYS:
                fields[_LOCAL_KEYS[key]] = value
            else:
                passthrough[key] = value

        if "recursive" in fields:
            fields["recursive"] = bool(fields["recursive"])
        # A missing or zero interval keeps the base value; a zero wait means unbounded
        if "poll_interval" in fields and not fields["poll_interval"]:
            del fields["poll_interval"]
        if "max_wait" in fields and not fields["max_wait"]:
            fields["max_wait"] = None
        return base.merged(passthrough, **fields)

    def merged(self, export_options: Mapping[str, Any] | None = None, **fields: Any) -> ExportConfig:
        """Return a new config with `fields` replaced and `export_options` layered on top."""
        options = {**self.export_options, **(export_options or {})}
        return replace(self, export_options=_frozen(options), **fields)

    def request_options(self) -> dict[str, Any]:
        """Build the `exportOptions` request body."""
        return {"exportType": DEFAULT_EXPORT_TYPE, **self.export_options}


DEFAULT_EXPORT_CONFIG: Final = ExportConfig()

"""Local settings file for the exporter.

Settings live in a small JSON file merged over `DEFAULT_CONFIG_JSON`. Session
tokens are deliberately not part of it; see `credentials`.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from .logger import get_logger

logger = get_logger(__name__)

CONFIG_ENV_VAR = "NOTION_EXPORTER_CONFIG"

DEFAULT_CONFIG_JSON: dict[str, Any] = {
    "paths": {
        "logs_dir": "~/.notion-exporter/logs",
    },
    "settings": {
        "export": {
            "poll_interval_ms": 2000,
            "max_wait_seconds": 0,
            "default_type": "md",
        },
        "http": {
            "base_url": "https://www.notion.so/api/v3/",
            "request_timeout": 30,
            "download_timeout": 120,
        },
        "logging": {
            "level": "INFO",
        },
    },
}


def _deep_merge(dst: dict[str, Any], src: dict[str, Any]) -> dict[str, Any]:
    for k, v in (src or {}).items():
        if isinstance(v, dict) and isinstance(dst.get(k), dict):
            _deep_merge(dst[k], v)
        else:
            dst[k] = v
    return dst


def default_config_path() -> Path:
    """Pick the settings file location.

    Priority:
    1) `$NOTION_EXPORTER_CONFIG` if set
    2) `./notion-exporter.json` if it exists
    3) `~/.notion-exporter/config.json`
    """
    if env_path := os.environ.get(CONFIG_ENV_VAR, "").strip():
        return Path(env_path).expanduser()

    cwd_candidate = Path.cwd() / "notion-exporter.json"
    if cwd_candidate.exists():
        return cwd_candidate

    return Path.home() / ".notion-exporter" / "config.json"


@dataclass
class ConfigManager:
    """Manages reading and writing the settings file."""

    path: Path
    _data: dict[str, Any]

    @classmethod
    def load(cls, path: Path | None = None) -> ConfigManager:
        """Load the configuration from disk, creating defaults if necessary."""
        cfg_path = path or default_config_path()
        data: dict[str, Any] = json.loads(json.dumps(DEFAULT_CONFIG_JSON))

        if cfg_path.exists():
            try:
                loaded = json.loads(cfg_path.read_text(encoding="utf-8") or "{}")
                if isinstance(loaded, dict):
                    _deep_merge(data, loaded)
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Failed to read settings at %s: %s", cfg_path, exc)
        else:
            # Ensure file exists for user edits
            try:
                cfg_path.parent.mkdir(parents=True, exist_ok=True)
                cfg_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            except OSError as exc:
                logger.warning("Unable to create default settings at %s: %s", cfg_path, exc)

        return cls(path=cfg_path, _data=data)

    def save(self) -> None:
        """Persist the current config data to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data, indent=2, ensure_ascii=False), encoding="utf-8")

    def set_logs_dir(self, value: str) -> None:
        """Set the logs directory path."""
        self._data.setdefault("paths", {})["logs_dir"] = (value or "~/.notion-exporter/logs").strip()

    def resolve_path(self, key: str, default_rel: str) -> Path:
        """Resolve a path from config, making it absolute."""
        raw = (self._data.get("paths", {}) or {}).get(key) or default_rel
        p = Path(str(raw)).expanduser()
        if p.is_absolute():
            return p
        # Relative paths are resolved relative to the settings file
        return (self.path.parent / p).resolve()

    def get_setting(self, dotted_path: str, default: Any = None) -> Any:
        """Read a nested value from `settings` using a dotted path.

        Example: `get_setting("export.poll_interval_ms", 2000)`.
        """
        node: Any = self._data.get("settings", {}) or {}
        for part in (dotted_path or "").split("."):
            if not part:
                continue
            if not isinstance(node, dict):
                return default
            node = node.get(part)
        return default if node is None else node

    def set_setting(self, dotted_path: str, value: Any) -> None:
        """Set a nested value in `settings` using a dotted path."""
        if not dotted_path:
            return

        root = self._data.setdefault("settings", {})
        if not isinstance(root, dict):
            self._data["settings"] = {}
            root = self._data["settings"]

        parts = [p for p in dotted_path.split(".") if p]
        node: dict[str, Any] = root
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value

    def get_logs_dir(self) -> Path:
        """Get the logs directory path (not created here)."""
        return self.resolve_path("logs_dir", "~/.notion-exporter/logs")


@lru_cache(maxsize=1)
def get_config_manager() -> ConfigManager:
    """Get the singleton config manager."""
    return ConfigManager.load()

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path


def _get_configured_log_level() -> str:
    try:
        from .config_manager import get_config_manager

        cm = get_config_manager()
        level = cm.get_setting("logging.level", "INFO")
        return str(level or "INFO").upper()
    except (ImportError, OSError, ValueError, RuntimeError):
        return "INFO"


def _get_logs_dir() -> Path:
    try:
        from .config_manager import get_config_manager

        return get_config_manager().get_logs_dir()
    except (ImportError, OSError, ValueError, RuntimeError):
        return Path.home() / ".notion-exporter" / "logs"


# Shared formatters
CONSOLE_FORMAT = logging.Formatter("%(levelname)s | %(name)s | %(message)s")

FILE_FORMAT = logging.Formatter(
    "%(asctime)s [%(levelname)s] [%(name)s.%(funcName)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# The primary application logger
app_logger = logging.getLogger("notion_exporter")
app_logger.propagate = True

# Resolved lazily by setup_logging(); tests point it at tmp_path.
LOG_BASE_DIR: Path | None = None


def setup_logging(level: str | None = None):
    """Set up the 'notion_exporter' logger: stderr console plus a daily rotated file.

    Stdout is reserved for exported content, so the console handler writes to
    stderr. Passing `level` overrides the configured `logging.level`.
    """
    global LOG_BASE_DIR

    log_level = (level or _get_configured_log_level()).upper()
    effective_level = getattr(logging, log_level, logging.INFO)

    if app_logger.handlers:
        if app_logger.level != effective_level:
            app_logger.setLevel(effective_level)
            for h in app_logger.handlers:
                h.setLevel(effective_level)
        return

    app_logger.setLevel(effective_level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(CONSOLE_FORMAT)
    console_handler.setLevel(effective_level)
    app_logger.addHandler(console_handler)

    if LOG_BASE_DIR is None:
        LOG_BASE_DIR = _get_logs_dir()

    log_file = LOG_BASE_DIR / "app.log"
    try:
        LOG_BASE_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(log_file, when="midnight", interval=1, backupCount=30, encoding="utf-8")
        file_handler.setFormatter(FILE_FORMAT)
        file_handler.setLevel(effective_level)
        app_logger.addHandler(file_handler)
    except OSError as e:
        # Console logging still works without a writable logs dir
        app_logger.warning("File logging disabled, cannot write %s: %s", log_file, e)

    app_logger.debug("Logging initialized (Level: %s) -> %s", log_level, log_file)


def summarize_for_debug(data: str, max_chars: int = 200) -> str:
    """Summarize a large string for debug logs."""
    if not data or len(data) <= max_chars:
        return data
    return f"{data[:max_chars]}... [TRUNCATED, total {len(data)} chars]"


def get_logger(name: str):
    """Get a logger within the 'notion_exporter' namespace."""
    if not name.startswith("notion_exporter"):
        name = f"notion_exporter.{name}"
    return logging.getLogger(name)


def get_task_logger(task_id: str):
    """Get a logger instance for a specific export task."""
    safe_id = "".join(c for c in task_id if c.isalnum() or c in ("-", "_"))[:50]
    return get_logger(f"task.{safe_id}")

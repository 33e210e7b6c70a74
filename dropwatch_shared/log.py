"""
Logging for Dropwatch.

All loggers live under the "dropwatch" namespace. One handler is installed on
that namespace root; module loggers propagate to it. Every line carries an
emoji for its level and, while an API request is being served, its request id.
"""
import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Final

ROOT_LOGGER_NAME: Final[str] = "dropwatch"
PREFIX: Final[str] = "📥 Dropwatch"

SUCCESS_LEVEL: Final[int] = 25  # Between INFO (20) and WARNING (30)
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")

LEVEL_EMOJI: Final[dict[int, str]] = {
    logging.DEBUG: "🔍",
    logging.INFO: "ℹ️",
    SUCCESS_LEVEL: "✅",
    logging.WARNING: "⚠️",
    logging.ERROR: "❌",
    logging.CRITICAL: "🔥",
}

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

_PACKAGE_PREFIXES = ("dropwatch_backend.", "dropwatch_shared.")


class CorrelationFilter(logging.Filter):
    """Copy the current request id onto the record as `request_id`."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


class EmojiFormatter(logging.Formatter):
    """`📥 Dropwatch [emoji] logger [rid]: message`"""

    def format(self, record: logging.LogRecord) -> str:
        emoji = LEVEL_EMOJI.get(record.levelno, "📥")
        rid = str(getattr(record, "request_id", "") or "").strip()
        rid_part = f" [{rid}]" if rid else ""
        line = f"{PREFIX} [{emoji}] {record.name}{rid_part}: {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class _DropwatchHandler(logging.StreamHandler):
    """Marker type so the namespace handler is installed once."""


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not any(isinstance(h, _DropwatchHandler) for h in root.handlers):
        handler = _DropwatchHandler()
        handler.setFormatter(EmojiFormatter())
        handler.addFilter(CorrelationFilter())
        root.addHandler(handler)
        root.setLevel(logging.INFO)
        # The host application's root logger would print every line twice
        root.propagate = False
    return root


def _short_name(name: str) -> str:
    if name == "__main__":
        return "main"
    for prefix in _PACKAGE_PREFIXES:
        if name.startswith(prefix):
            return name[len(prefix):]
    return name


def get_logger(name: str, level: int | None = None) -> logging.Logger:
    """
    Logger for a module, e.g. `get_logger(__name__)`.

    "dropwatch_backend.features.watch.scanner" becomes
    "dropwatch.features.watch.scanner".
    """
    _configure_root()
    logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{_short_name(name)}")
    if level is not None:
        logger.setLevel(level)
    return logger


def set_level(level: int) -> None:
    """Change the level of every Dropwatch logger at once."""
    _configure_root().setLevel(level)


def log_success(logger: logging.Logger, message: str, *args: Any) -> None:
    logger.log(SUCCESS_LEVEL, message, *args)


def log_structured(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """Log one JSON object: `{"message", "timestamp", "context"}`."""
    payload = {
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "context": context,
    }
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))

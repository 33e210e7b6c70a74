"""
Configuration for Dropwatch.

Every knob is read from the environment once at import time; invalid values
fall back to the default with a warning and out-of-range values are clamped.
"""
import logging
import os
from typing import Callable, TypeVar

from .utils import parse_bool

logger = logging.getLogger(__name__)

N = TypeVar("N", int, float)


def _env_raw(*names: str, default: str | None = None) -> str | None:
    """First non-blank value among `names`, stripped."""
    for name in filter(None, names):
        value = (os.getenv(name) or "").strip()
        if value:
            return value
    return default


def _env_number(cast: Callable[[str], N], default: N, names: tuple[str, ...], min_value, max_value) -> N:
    label = names[0] if names else "<unknown>"
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Invalid %s for %s=%r, using default=%s", cast.__name__, label, raw, default)
        return default
    bounded = value
    if min_value is not None:
        bounded = max(min_value, bounded)
    if max_value is not None:
        bounded = min(max_value, bounded)
    if bounded != value:
        logger.warning("Out of range value for %s=%s, clamped to %s", label, value, bounded)
    return bounded


def _env_int(default: int, *names: str, min_value: int | None = None, max_value: int | None = None) -> int:
    return _env_number(int, default, names, min_value, max_value)


def _env_float(default: float, *names: str, min_value: float | None = None, max_value: float | None = None) -> float:
    return _env_number(float, default, names, min_value, max_value)


def _env_bool(default: bool, *names: str) -> bool:
    raw = _env_raw(*names)
    return default if raw is None else parse_bool(raw, default)


def _env_paths(*names: str) -> list[str]:
    raw = _env_raw(*names)
    if not raw:
        return []
    return [p.strip() for p in raw.split(os.pathsep) if p.strip()]


# Debug mode: verbose client errors + DEBUG log level
DEBUG = _env_bool(False, "DROPWATCH_DEBUG")

# Network folders are polled at this interval (seconds)
WATCHER_DEFAULT_POLL_INTERVAL_S = _env_float(10.0, "DROPWATCH_POLL_INTERVAL_S", min_value=0.05, max_value=3600.0)
# Partial items are re-checked at this interval (seconds)
WATCHER_DEFAULT_RETRY_INTERVAL_S = _env_float(10.0, "DROPWATCH_RETRY_INTERVAL_S", min_value=0.05, max_value=3600.0)
# Failed retry passes before a partial item is renamed out of the way
WATCHER_DEFAULT_MAX_PARTIAL_RETRIES = _env_int(5, "DROPWATCH_MAX_PARTIAL_RETRIES", min_value=1, max_value=1000)
WATCHER_INVALID_SUFFIX = _env_raw("DROPWATCH_INVALID_SUFFIX", default=".invalid") or ".invalid"

# Directories watched at startup (os.pathsep separated)
WATCH_DIRECTORIES = _env_paths("DROPWATCH_WATCH_DIRS")

# Recent reports kept in memory for the API
REPORT_HISTORY_MAX = _env_int(200, "DROPWATCH_REPORT_HISTORY_MAX", min_value=1, max_value=100_000)

# HTTP control surface
API_ENABLED = _env_bool(True, "DROPWATCH_ENABLE_API")
API_HOST = _env_raw("DROPWATCH_HOST", default="127.0.0.1") or "127.0.0.1"
API_PORT = _env_int(8765, "DROPWATCH_PORT", min_value=1, max_value=65535)
MAX_JSON_BYTES = _env_int(64 * 1024, "DROPWATCH_MAX_JSON_SIZE", min_value=1024, max_value=10 * 1024 * 1024)

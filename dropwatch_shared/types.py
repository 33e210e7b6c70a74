"""
Shared types, enums, and constants.
"""
from enum import Enum
from typing import Final


class ErrorCode(str, Enum):
    """Standardized error codes (string enum)."""

    # Client / validation
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_JSON = "INVALID_JSON"
    NOT_FOUND = "NOT_FOUND"
    CSRF = "CSRF"

    # Service availability
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    # Operation errors
    WATCH_FAILED = "WATCH_FAILED"


class WatchMode(str, Enum):
    """How a watched directory learns about new files."""

    LOCAL = "local"       # OS change notifications (watchdog observer)
    NETWORK = "network"   # Periodic polling


# Glob patterns matched against directory listings (case-insensitive)
MATCH_PATTERNS: Final[tuple[str, ...]] = ("*.torrent", "*.magnet")

# Reference files: ready as soon as they appear, no content validation
LINK_SUFFIXES: Final[tuple[str, ...]] = (".magnet",)

INVALID_SUFFIX: Final[str] = ".invalid"


"""Shared utilities for Dropwatch."""
from .errors import sanitize_error_message
from .log import get_logger, log_structured, log_success, request_id_var, set_level
from .result import Result
from .time import now, timer
from .types import (
    INVALID_SUFFIX,
    LINK_SUFFIXES,
    MATCH_PATTERNS,
    ErrorCode,
    WatchMode,
)

__all__ = [
    "Result",
    "get_logger",
    "log_success",
    "log_structured",
    "request_id_var",
    "set_level",
    "now",
    "timer",
    "ErrorCode",
    "WatchMode",
    "MATCH_PATTERNS",
    "LINK_SUFFIXES",
    "INVALID_SUFFIX",
    "sanitize_error_message",
]

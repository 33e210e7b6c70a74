"""Backend-facing alias for shared utilities."""

from __future__ import annotations

import dropwatch_shared as _root_shared

Result = _root_shared.Result
ErrorCode = _root_shared.ErrorCode
WatchMode = _root_shared.WatchMode
get_logger = _root_shared.get_logger
log_success = _root_shared.log_success
log_structured = _root_shared.log_structured
request_id_var = _root_shared.request_id_var
set_log_level = _root_shared.set_level
sanitize_error_message = _root_shared.sanitize_error_message
timer = _root_shared.timer
now = _root_shared.now
MATCH_PATTERNS = _root_shared.MATCH_PATTERNS
LINK_SUFFIXES = _root_shared.LINK_SUFFIXES
INVALID_SUFFIX = _root_shared.INVALID_SUFFIX

__all__ = [
    "Result",
    "ErrorCode",
    "WatchMode",
    "get_logger",
    "log_success",
    "log_structured",
    "request_id_var",
    "set_log_level",
    "sanitize_error_message",
    "timer",
    "now",
    "MATCH_PATTERNS",
    "LINK_SUFFIXES",
    "INVALID_SUFFIX",
]

"""
Client-facing error messages.

Exceptions raised while watching folders usually embed filesystem paths.
Those stay in the logs; API clients get the message with paths masked.
"""
from __future__ import annotations

import os
import re
from typing import Any

_PATH_PATTERNS = (
    re.compile(r"\\\\[^\s\\]+\\\S+"),                      # UNC share
    re.compile(r"\b[A-Za-z]:\\\S+"),                       # Windows drive
    re.compile(r"(?<![\w:/?&=#%])/(?!/)[^\s'\"#?]+"),      # POSIX
)
MAX_MESSAGE_CHARS = 200


def _debug_enabled() -> bool:
    return os.getenv("DROPWATCH_DEBUG", "").strip().lower() in ("1", "true", "yes", "on")


def mask_paths(text: str) -> str:
    for pattern in _PATH_PATTERNS:
        text = pattern.sub("[path]", text)
    return text


def sanitize_error_message(exc: Any, fallback: str) -> str:
    """
    `"<fallback>: <detail>"`, or just `fallback` when there is no detail.

    Paths in the detail are masked unless DROPWATCH_DEBUG is set.
    """
    fallback = fallback or "An error occurred"
    detail = " ".join(str(exc or "").split())
    if not detail:
        return fallback
    if not _debug_enabled():
        detail = mask_paths(detail)
    return f"{fallback}: {detail[:MAX_MESSAGE_CHARS]}"

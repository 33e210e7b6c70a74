"""
Runtime watcher tuning knobs (poll interval, retry interval, retry budget)
that can be updated without restarting.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from ..config import (
    WATCHER_DEFAULT_MAX_PARTIAL_RETRIES,
    WATCHER_DEFAULT_POLL_INTERVAL_S,
    WATCHER_DEFAULT_RETRY_INTERVAL_S,
)

MIN_INTERVAL_S = 0.05
MAX_INTERVAL_S = 3600.0
MIN_RETRIES = 1
MAX_RETRIES = 1000


@dataclass(frozen=True)
class WatcherSettings:
    poll_interval_s: float
    retry_interval_s: float
    max_partial_retries: int


def _clamp(value, minimum, maximum):
    return max(minimum, min(maximum, value))


_lock = threading.Lock()
_state = {
    "poll_interval_s": _clamp(float(WATCHER_DEFAULT_POLL_INTERVAL_S), MIN_INTERVAL_S, MAX_INTERVAL_S),
    "retry_interval_s": _clamp(float(WATCHER_DEFAULT_RETRY_INTERVAL_S), MIN_INTERVAL_S, MAX_INTERVAL_S),
    "max_partial_retries": _clamp(int(WATCHER_DEFAULT_MAX_PARTIAL_RETRIES), MIN_RETRIES, MAX_RETRIES),
}


def get_watcher_settings() -> WatcherSettings:
    with _lock:
        return WatcherSettings(
            poll_interval_s=_state["poll_interval_s"],
            retry_interval_s=_state["retry_interval_s"],
            max_partial_retries=_state["max_partial_retries"],
        )


def update_watcher_settings(
    *,
    poll_interval_s: Optional[float] = None,
    retry_interval_s: Optional[float] = None,
    max_partial_retries: Optional[int] = None,
) -> WatcherSettings:
    with _lock:
        if poll_interval_s is not None:
            _state["poll_interval_s"] = _clamp(float(poll_interval_s), MIN_INTERVAL_S, MAX_INTERVAL_S)
        if retry_interval_s is not None:
            _state["retry_interval_s"] = _clamp(float(retry_interval_s), MIN_INTERVAL_S, MAX_INTERVAL_S)
        if max_partial_retries is not None:
            _state["max_partial_retries"] = _clamp(int(max_partial_retries), MIN_RETRIES, MAX_RETRIES)
    return get_watcher_settings()

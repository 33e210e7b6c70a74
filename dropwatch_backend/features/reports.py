"""
Default consumer of watcher reports: keeps a bounded history for the API.
"""
from __future__ import annotations

import threading
from collections import deque

from ..shared import now


class ReportHistory:
    """Ring buffer of `{"ts", "paths"}` entries, newest last."""

    def __init__(self, max_entries: int = 200):
        self._entries: deque[dict] = deque(maxlen=max(1, int(max_entries)))
        self._lock = threading.Lock()
        self._total_items = 0

    def record(self, paths: list[str]) -> None:
        if not paths:
            return
        with self._lock:
            self._entries.append({"ts": now(), "paths": list(paths)})
            self._total_items += len(paths)

    def recent(self, limit: int | None = None) -> list[dict]:
        with self._lock:
            entries = list(self._entries)
        if limit is not None and limit >= 0:
            entries = entries[-limit:] if limit else []
        return entries

    @property
    def total_items(self) -> int:
        return self._total_items

"""
Service wiring: the folder watcher and its default report consumer.
"""
from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from .config import REPORT_HISTORY_MAX, WATCH_DIRECTORIES
from .features.reports import ReportHistory
from .features.watch import FolderWatcher
from .shared import ErrorCode, Result, get_logger, sanitize_error_message

logger = get_logger(__name__)


async def build_services(
    watch_dirs: Iterable[str] | None = None,
    *,
    watcher_factory: Any = FolderWatcher,
) -> Result[dict]:
    """Create and start the watcher; returns `{"watcher", "reports"}`."""
    reports = ReportHistory(REPORT_HISTORY_MAX)
    watcher = watcher_factory(reports.record)
    dirs = list(WATCH_DIRECTORIES if watch_dirs is None else watch_dirs)
    try:
        await watcher.start(dirs)
    except Exception as exc:
        logger.error("Failed to start folder watcher: %s", exc, exc_info=True)
        return Result.Err(ErrorCode.SERVICE_UNAVAILABLE, sanitize_error_message(exc, "Failed to start folder watcher"))

    missing = [d for d in dirs if d and not watcher.watch_mode(d)]
    for d in missing:
        logger.warning("Configured watch directory is not available: %s", d)
    return Result.Ok({"watcher": watcher, "reports": reports}, missing=missing)


async def dispose_services(services: dict | None) -> None:
    if not services:
        return
    watcher = services.get("watcher")
    if watcher is None:
        return
    try:
        await watcher.stop()
    except Exception as exc:
        logger.warning("Error stopping folder watcher: %s", exc, exc_info=True)

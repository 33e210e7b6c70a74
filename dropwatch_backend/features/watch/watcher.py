"""
Folder watcher for torrent and magnet drop folders.

Local directories are watched with OS change notifications (watchdog).
Directories on network mounts (CIFS/SMB/NFS), where notifications are
unreliable, are polled on a timer instead. Files that show up before they are
fully written go to a partial-item ledger and are re-checked on a second
timer until they become valid or run out of retries.

Everything except the watchdog observer thread runs on one asyncio loop:
observer callbacks only hop onto the loop, timers are `loop.call_later`
handles, and every scan runs to completion before the next one starts.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import os
from collections.abc import Callable, Iterable
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ...config import WATCHER_INVALID_SUFFIX
from ...shared import (
    LINK_SUFFIXES,
    MATCH_PATTERNS,
    WatchMode,
    get_logger,
    log_structured,
    log_success,
)
from ...utils import canonical_dir, resolve_dir
from ..watcher_settings import WatcherSettings, get_watcher_settings
from .fs_classifier import classify_path
from .ledger import PartialLedger
from .scanner import scan_directory
from .validity import is_valid_torrent

logger = get_logger(__name__)

ItemsReadyCallback = Callable[[list[str]], Any]


class DirectoryChangeHandler(FileSystemEventHandler):
    """
    Bridges watchdog events (observer thread) onto the asyncio loop.

    Only the directory that changed is forwarded; deciding what to do with it
    happens on the loop.
    """

    def __init__(self, on_directory_changed: Callable[[str], None], loop: asyncio.AbstractEventLoop):
        super().__init__()
        self._on_directory_changed = on_directory_changed
        self._loop = loop

    def on_created(self, event: FileSystemEvent):
        self._forward(event.src_path, event.is_directory)

    def on_modified(self, event: FileSystemEvent):
        self._forward(event.src_path, event.is_directory)

    def on_moved(self, event: FileSystemEvent):
        # Files renamed into place (e.g. "x.torrent.part" -> "x.torrent")
        self._forward(getattr(event, "dest_path", "") or event.src_path, event.is_directory)

    def on_closed(self, event: FileSystemEvent):
        self._forward(event.src_path, event.is_directory)

    def _forward(self, path: Any, is_directory: bool) -> None:
        path = os.fsdecode(path) if path else ""
        if not path:
            return
        directory = path if is_directory else os.path.dirname(path)
        try:
            self._loop.call_soon_threadsafe(self._on_directory_changed, directory)
        except RuntimeError:
            # Loop already closed during shutdown
            return


class FolderWatcher:
    """
    Watches drop folders and reports items once they are ready.

    Usage:
        watcher = FolderWatcher(on_items_ready)
        await watcher.start(["/downloads/torrents"])
        watcher.add_path("/mnt/share/torrents")
        ...
        await watcher.stop()

    `on_items_ready` receives a non-empty list of absolute file paths; it may
    be a plain function or a coroutine function. Each file is reported at most
    once while it exists.
    """

    def __init__(
        self,
        on_items_ready: ItemsReadyCallback,
        *,
        is_valid: Callable[[str], bool] | None = None,
        classify: Callable[[str], WatchMode] | None = None,
        settings: WatcherSettings | None = None,
        observer_factory: Callable[[], Any] | None = None,
        patterns: Iterable[str] = MATCH_PATTERNS,
        link_suffixes: Iterable[str] = LINK_SUFFIXES,
        invalid_suffix: str = WATCHER_INVALID_SUFFIX,
    ):
        self._on_items_ready = on_items_ready
        self._is_valid = is_valid or is_valid_torrent
        self._classify = classify
        self._settings = settings
        self._observer_factory = observer_factory
        self._patterns = tuple(patterns)
        self._link_suffixes = tuple(link_suffixes)

        self._ledger = PartialLedger(
            self._is_valid,
            max_retries=self._current_settings().max_partial_retries,
            invalid_suffix=invalid_suffix,
        )
        self._loop: asyncio.AbstractEventLoop | None = None
        self._observer: Any | None = None
        self._handler: DirectoryChangeHandler | None = None
        self._running = False

        # canonical key -> {"path": resolved path, "watch": ObservedWatch}
        self._local: dict[str, dict] = {}
        # canonical key -> {"path": resolved path}, insertion ordered
        self._network: dict[str, dict] = {}

        self._poll_timer: asyncio.TimerHandle | None = None
        self._retry_timer: asyncio.TimerHandle | None = None
        self._queued_scans: set[str] = set()

        # path -> (st_dev, st_ino) of the file that was reported
        self._reported: dict[str, tuple[int, int]] = {}
        self._reports_sent = 0
        self._pending_tasks: set[asyncio.Future] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, paths: Iterable[str] = (), loop: asyncio.AbstractEventLoop | None = None):
        """Start the observer and watch the given directories."""
        if self._running:
            return

        self._loop = loop or asyncio.get_running_loop()
        self._handler = DirectoryChangeHandler(self._on_directory_event, self._loop)
        factory = self._observer_factory or Observer
        self._observer = factory()
        self._observer.start()
        self._running = True

        for path in paths:
            try:
                self.add_path(path)
            except Exception as e:
                logger.warning("Failed to watch %s: %s", path, e)

        logger.info("Folder watcher started for %d directories", len(self.directories()))

    async def stop(self):
        """Stop watching all directories, release both timers and cancel running callbacks."""
        if not self._running:
            return

        self._cancel_poll_timer()
        self._cancel_retry_timer()

        pending = list(self._pending_tasks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._pending_tasks.clear()

        observer = self._observer
        if observer is not None:
            for entry in self._local.values():
                try:
                    observer.unschedule(entry.get("watch"))
                except Exception as e:
                    logger.debug("Watcher unschedule error: %s", e)
            try:
                observer.stop()
                observer.join(timeout=2)
            except Exception as e:
                logger.debug("Watcher stop error: %s", e)

        self._observer = None
        self._handler = None
        self._local.clear()
        self._network.clear()
        self._queued_scans.clear()
        self._ledger.clear()
        self._reported.clear()
        self._running = False
        logger.info("Folder watcher stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def ledger(self) -> PartialLedger:
        return self._ledger

    @property
    def has_poll_timer(self) -> bool:
        return self._poll_timer is not None

    @property
    def has_retry_timer(self) -> bool:
        return self._retry_timer is not None

    def refresh_runtime_settings(self) -> None:
        """Pick up new timing knobs; intervals apply from the next timer arm."""
        self._ledger.max_retries = max(1, int(self._current_settings().max_partial_retries))

    def _current_settings(self) -> WatcherSettings:
        return self._settings or get_watcher_settings()

    # ------------------------------------------------------------------
    # Watch set
    # ------------------------------------------------------------------

    def add_path(self, path: str) -> bool:
        """
        Watch `path`.

        Returns False when the watcher is not running or `path` is not an
        existing directory. Adding a directory that is already watched is a
        no-op that returns True.
        """
        if not self._running or self._observer is None or self._handler is None:
            return False
        if not path or not os.path.isdir(path):
            return False

        key = canonical_dir(path)
        if key in self._local or key in self._network:
            logger.debug("Already watching %s", path)
            return True

        resolved = resolve_dir(path)
        mode = (self._classify or classify_path)(resolved)
        if mode == WatchMode.NETWORK:
            logger.info("Network folder detected: %s; using polling mode", resolved)
            self._add_network(key, resolved)
            return True

        try:
            watch = self._observer.schedule(self._handler, resolved, recursive=False)
        except OSError as exc:
            log_structured(
                logger,
                logging.WARNING,
                "Change notifications unavailable; polling instead",
                path=resolved,
                error=str(exc),
            )
            self._add_network(key, resolved)
            return True

        self._local[key] = {"path": resolved, "watch": watch}
        logger.info("Watching %s in normal mode", resolved)
        # Nothing has fired yet for files that were already there
        self.scan_local_folder(resolved)
        return True

    def _add_network(self, key: str, resolved: str) -> None:
        self._network[key] = {"path": resolved}
        if self._poll_timer is None:
            self._arm_poll_timer()

    def remove_path(self, path: str) -> bool:
        """Stop watching `path`. Returns False if it was not watched."""
        key = canonical_dir(path)

        entry = self._network.pop(key, None)
        if entry is not None:
            if not self._network:
                self._cancel_poll_timer()
            self._forget_directory(entry["path"])
            logger.info("Stopped polling %s", entry["path"])
            return True

        entry = self._local.pop(key, None)
        if entry is not None:
            self._queued_scans.discard(key)
            try:
                if self._observer is not None and entry.get("watch") is not None:
                    self._observer.unschedule(entry["watch"])
            except Exception as e:
                logger.debug("Watcher unschedule error for %s: %s", entry["path"], e)
            self._forget_directory(entry["path"])
            logger.info("Stopped watching %s", entry["path"])
            return True

        return False

    def _forget_directory(self, directory: str) -> None:
        dropped = self._ledger.drop_in(directory)
        if dropped:
            logger.debug("Dropped %d partial item(s) from %s", len(dropped), directory)
        key = os.path.normcase(directory)
        for p in [p for p in self._reported if os.path.normcase(os.path.dirname(p)) == key]:
            del self._reported[p]
        self._sync_retry_timer()

    def directories(self) -> list[str]:
        """Canonical paths of every watched directory, local and network."""
        paths = [e["path"] for e in self._local.values()] + [e["path"] for e in self._network.values()]
        return list(dict.fromkeys(paths))

    def watch_mode(self, path: str) -> WatchMode | None:
        key = canonical_dir(path)
        if key in self._local:
            return WatchMode.LOCAL
        if key in self._network:
            return WatchMode.NETWORK
        return None

    def status(self) -> dict:
        return {
            "running": self._running,
            "local_directories": [e["path"] for e in self._local.values()],
            "network_directories": [e["path"] for e in self._network.values()],
            "partial_items": len(self._ledger),
            "poll_timer_active": self.has_poll_timer,
            "retry_timer_active": self.has_retry_timer,
            "reports_sent": self._reports_sent,
        }

    # ------------------------------------------------------------------
    # Event, poll and retry handlers
    # ------------------------------------------------------------------

    def _on_directory_event(self, directory: str) -> None:
        """Runs on the loop for every forwarded watchdog event."""
        if not self._running or self._loop is None:
            return
        key = canonical_dir(directory)
        if key not in self._local or key in self._queued_scans:
            return
        # Coalesce event bursts into one scan of this directory
        self._queued_scans.add(key)
        self._loop.call_soon(self._run_queued_scan, key)

    def _run_queued_scan(self, key: str) -> None:
        self._queued_scans.discard(key)
        entry = self._local.get(key)
        if entry is None:
            return
        self.scan_local_folder(entry["path"])

    def scan_local_folder(self, path: str) -> None:
        """Re-scan one locally watched directory and report what is ready."""
        logger.debug("scan_local_folder(%s) called", path)
        self._report(self._scan(path))

    def scan_network_folders(self) -> None:
        """Poll tick: scan every network directory and report in one batch."""
        self._poll_timer = None
        if not self._running or not self._network:
            return
        logger.debug("scan_network_folders() called")
        ready: list[str] = []
        for entry in list(self._network.values()):
            ready.extend(self._scan(entry["path"]))
        self._arm_poll_timer()
        self._report(ready)

    def process_partial_items(self) -> None:
        """Retry tick: re-check partial items and report the ones now valid."""
        self._retry_timer = None
        if not self._running:
            return
        result = self._ledger.retry_pass()
        if result.invalidated:
            logger.info("Gave up on %d partial item(s): %s", len(result.invalidated), ", ".join(result.invalidated))
        promoted = self._unreported(result.promoted)
        self._sync_retry_timer()
        self._report(promoted)

    def _scan(self, directory: str) -> list[str]:
        result = scan_directory(
            directory,
            self._ledger,
            self._is_valid,
            patterns=self._patterns,
            link_suffixes=self._link_suffixes,
        )
        self._prune_reported(directory)
        self._sync_retry_timer()
        return self._unreported(result.ready)

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _arm_poll_timer(self) -> None:
        if self._loop is None or not self._running or not self._network:
            return
        interval = self._current_settings().poll_interval_s
        self._poll_timer = self._loop.call_later(interval, self.scan_network_folders)

    def _cancel_poll_timer(self) -> None:
        if self._poll_timer is not None:
            self._poll_timer.cancel()
            self._poll_timer = None
            logger.debug("Network poll timer released")

    def _sync_retry_timer(self) -> None:
        """Retry timer is armed iff the ledger holds something."""
        if self._ledger.is_empty():
            self._cancel_retry_timer()
            return
        if self._retry_timer is None and self._running and self._loop is not None:
            interval = self._current_settings().retry_interval_s
            self._retry_timer = self._loop.call_later(interval, self.process_partial_items)

    def _cancel_retry_timer(self) -> None:
        if self._retry_timer is not None:
            self._retry_timer.cancel()
            self._retry_timer = None
            logger.debug("Partial retry timer released")

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    @staticmethod
    def _file_identity(path: str) -> tuple[int, int] | None:
        try:
            st = os.stat(path)
        except OSError:
            return None
        return (st.st_dev, st.st_ino)

    def _unreported(self, paths: Iterable[str]) -> list[str]:
        fresh: list[str] = []
        for p in paths:
            ident = self._file_identity(p)
            if ident is None:
                continue
            if self._reported.get(p) == ident:
                continue
            fresh.append(p)
        return fresh

    def _prune_reported(self, directory: str) -> None:
        key = os.path.normcase(directory)
        stale = [
            p for p in self._reported
            if os.path.normcase(os.path.dirname(p)) == key and not os.path.exists(p)
        ]
        for p in stale:
            del self._reported[p]

    def _report(self, paths: list[str]) -> None:
        if not paths:
            return
        for p in paths:
            ident = self._file_identity(p)
            if ident is not None:
                self._reported[p] = ident
        self._reports_sent += 1
        log_success(logger, "Reporting %d item(s): %s", len(paths), ", ".join(paths))
        try:
            outcome = self._on_items_ready(list(paths))
        except Exception as exc:
            logger.warning("Items-ready callback failed: %s", exc, exc_info=True)
            return
        if inspect.isawaitable(outcome):
            self._track_task(outcome)

    def _track_task(self, awaitable: Any) -> None:
        future = asyncio.ensure_future(awaitable, loop=self._loop)
        self._pending_tasks.add(future)
        future.add_done_callback(self._on_task_done)

    def _on_task_done(self, future: asyncio.Future) -> None:
        self._pending_tasks.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.warning("Items-ready callback failed: %s", exc)

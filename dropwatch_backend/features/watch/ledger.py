"""
Ledger of partial items: files that match the watch patterns but are not
valid yet (typically still being written by another process).
"""
from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field

from ...shared import INVALID_SUFFIX, get_logger, log_structured

logger = get_logger(__name__)

DEFAULT_MAX_RETRIES = 5


def _file_identity(path: str) -> tuple[int, int] | None:
    try:
        st = os.stat(path)
    except OSError:
        return None
    return (st.st_dev, st.st_ino)


@dataclass
class RetryPassResult:
    promoted: list[str] = field(default_factory=list)
    invalidated: list[str] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)
    empty: bool = True


class PartialLedger:
    """
    Tracks partial items and their retry counters.

    A path is tracked at most once. It leaves the ledger exactly once: when it
    disappears from disk, when it becomes valid (promoted), or when it runs out
    of retries (renamed with the invalid suffix).
    """

    def __init__(
        self,
        is_valid: Callable[[str], bool],
        max_retries: int = DEFAULT_MAX_RETRIES,
        invalid_suffix: str = INVALID_SUFFIX,
    ):
        self._is_valid = is_valid
        self.max_retries = max(1, int(max_retries))
        self.invalid_suffix = invalid_suffix or INVALID_SUFFIX
        self._items: dict[str, int] = {}
        # path -> (st_dev, st_ino) of items that ran out of retries but could not be renamed
        self._given_up: dict[str, tuple[int, int]] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, path: object) -> bool:
        return path in self._items

    def is_empty(self) -> bool:
        return not self._items

    def paths(self) -> list[str]:
        return list(self._items)

    def retry_count(self, path: str) -> int | None:
        return self._items.get(path)

    def track(self, path: str) -> bool:
        """Start tracking `path` with a zero retry count. False if already tracked."""
        if path in self._items:
            return False
        self._items[path] = 0
        logger.debug("Partial item detected at %s; delaying its processing", path)
        return True

    def is_given_up(self, path: str) -> bool:
        """
        True while `path` is the same file that ran out of retries and was left in place.

        The mark is forgotten once the file disappears or is replaced.
        """
        ident = self._given_up.get(path)
        if ident is None:
            return False
        if _file_identity(path) == ident:
            return True
        del self._given_up[path]
        return False

    def discard(self, path: str) -> bool:
        return self._items.pop(path, None) is not None

    def drop_in(self, directory: str) -> list[str]:
        """Forget every item living in `directory` (used when it stops being watched)."""
        key = os.path.normcase(directory)
        removed = [p for p in self._items if os.path.normcase(os.path.dirname(p)) == key]
        for p in removed:
            del self._items[p]
        return removed

    def clear(self) -> None:
        self._items.clear()
        self._given_up.clear()

    def retry_pass(self) -> RetryPassResult:
        """Re-check every tracked item once."""
        result = RetryPassResult()
        for path in list(self._items):
            if not os.path.exists(path):
                del self._items[path]
                result.dropped.append(path)
                continue

            if self._check_valid(path):
                del self._items[path]
                result.promoted.append(path)
                continue

            # Counted before the budget check: with max_retries=5 the 5th failed pass gives up
            self._items[path] += 1
            if self._items[path] >= self.max_retries:
                del self._items[path]
                self._give_up(path)
                result.invalidated.append(path)

        result.empty = not self._items
        if result.empty:
            logger.debug("No longer any partial item")
        else:
            logger.debug("Still %d partial item(s) after delayed processing", len(self._items))
        return result

    def _check_valid(self, path: str) -> bool:
        try:
            return bool(self._is_valid(path))
        except Exception as exc:
            logger.debug("Validity check failed for %s: %s", path, exc)
            return False

    def _give_up(self, path: str) -> None:
        ident = _file_identity(path)
        if not self._mark_invalid(path) and ident is not None:
            # Still matches the watch patterns; keep later scans from tracking it again
            self._given_up[path] = ident

    def _mark_invalid(self, path: str) -> bool:
        target = path + self.invalid_suffix
        if os.path.exists(target):
            log_structured(
                logger,
                logging.WARNING,
                "Cannot mark partial item as invalid: target exists",
                path=path,
                target=target,
            )
            return False
        try:
            os.rename(path, target)
        except OSError as exc:
            log_structured(
                logger,
                logging.WARNING,
                "Cannot mark partial item as invalid",
                path=path,
                target=target,
                error=str(exc),
            )
            return False
        logger.info("Partial item never became valid, renamed to %s", target)
        return True

"""
Directory scanning: turn a listing into ready items and partial items.
"""
from __future__ import annotations

import fnmatch
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from ...shared import LINK_SUFFIXES, MATCH_PATTERNS, get_logger, timer
from .ledger import PartialLedger

logger = get_logger(__name__)


@dataclass
class ScanResult:
    ready: list[str] = field(default_factory=list)
    still_partial: bool = False


def _matches(name: str, patterns: Iterable[str]) -> bool:
    lowered = name.lower()
    return any(fnmatch.fnmatchcase(lowered, p.lower()) for p in patterns)


def _is_link_file(name: str, link_suffixes: Iterable[str]) -> bool:
    lowered = name.lower()
    return any(lowered.endswith(s.lower()) for s in link_suffixes)


def list_matching_files(directory: str, patterns: Iterable[str] = MATCH_PATTERNS) -> list[str]:
    """
    Absolute paths of regular files in `directory` whose name matches `patterns`.

    Missing or unreadable directories yield an empty list.
    """
    patterns = tuple(patterns)
    found: list[str] = []
    try:
        with os.scandir(directory) as it:
            for entry in it:
                try:
                    if not entry.is_file():
                        continue
                except OSError:
                    continue
                if _matches(entry.name, patterns):
                    found.append(os.path.join(directory, entry.name))
    except OSError as exc:
        logger.debug("Cannot list %s: %s", directory, exc)
        return []
    found.sort()
    return found


def scan_directory(
    directory: str,
    ledger: PartialLedger,
    is_valid: Callable[[str], bool],
    *,
    patterns: Iterable[str] = MATCH_PATTERNS,
    link_suffixes: Iterable[str] = LINK_SUFFIXES,
) -> ScanResult:
    """
    Scan one directory.

    Link files are ready right away; other matches are ready when `is_valid`
    accepts them. Invalid files enter the ledger once. A ready file that was
    in the ledger leaves it here, so a later retry pass cannot report it again.
    Files the ledger gave up on are skipped until they are replaced.
    """
    link_suffixes = tuple(link_suffixes)
    result = ScanResult()
    with timer(f"scan of {directory}", logger):
        for path in list_matching_files(directory, patterns):
            if ledger.is_given_up(path):
                continue
            name = os.path.basename(path)
            if _is_link_file(name, link_suffixes) or _safe_is_valid(is_valid, path):
                ledger.discard(path)
                result.ready.append(path)
            elif path not in ledger:
                ledger.track(path)
    result.still_partial = not ledger.is_empty()
    return result


def _safe_is_valid(is_valid: Callable[[str], bool], path: str) -> bool:
    try:
        return bool(is_valid(path))
    except Exception as exc:
        logger.debug("Validity check failed for %s: %s", path, exc)
        return False

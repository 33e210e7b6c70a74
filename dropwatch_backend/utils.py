"""
Small helpers shared by the backend modules.
"""
from __future__ import annotations

import os
from typing import Any

_TRUTHY = frozenset({"1", "true", "yes", "on", "enabled"})
_FALSY = frozenset({"0", "false", "no", "off", "disabled"})


def parse_bool(value: Any, default: bool = False) -> bool:
    """Lenient boolean: real bools and numbers, then the usual on/off words."""
    if isinstance(value, (bool, int, float)):
        return bool(value)
    if not isinstance(value, str):
        return default
    word = value.strip().lower()
    if word in _TRUTHY or word in _FALSY:
        return word in _TRUTHY
    try:
        return float(word) != 0.0
    except ValueError:
        return default


def resolve_dir(path: str) -> str:
    """Absolute path with `~`, `..` and symlinks resolved."""
    if not path:
        return ""
    expanded = os.path.expanduser(str(path))
    try:
        return os.path.realpath(expanded)
    except (OSError, ValueError):
        return os.path.abspath(expanded)


def canonical_dir(path: str) -> str:
    """
    Identity key of a directory.

    Two spellings of the same directory (trailing slash, `..`, symlinks, case on
    Windows) map to the same key so watch-set lookups never depend on the
    literal string.
    """
    resolved = resolve_dir(path)
    return os.path.normcase(resolved) if resolved else ""

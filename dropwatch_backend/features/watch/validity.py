"""
Structural validity check for .torrent metadata files.

A torrent still being downloaded into a watched folder is usually truncated,
which makes it fail to bdecode; that is what marks it as partial.
"""
from __future__ import annotations

from fastbencode import bdecode

from ...shared import get_logger

logger = get_logger(__name__)

# Refuse to load absurdly large files into memory
MAX_TORRENT_BYTES = 64 * 1024 * 1024


def _read_bytes(path: str) -> bytes | None:
    try:
        with open(path, "rb") as f:
            data = f.read(MAX_TORRENT_BYTES + 1)
    except OSError as exc:
        logger.debug("Cannot read %s: %s", path, exc)
        return None
    if len(data) > MAX_TORRENT_BYTES:
        logger.debug("Torrent file too large: %s", path)
        return None
    return data


def _has_info_dict(meta: object) -> bool:
    if not isinstance(meta, dict):
        return False
    info = meta.get(b"info")
    if not isinstance(info, dict):
        return False
    if b"name" not in info or b"piece length" not in info:
        return False
    # v1 torrents carry "pieces", v2-only torrents a "file tree"
    return b"pieces" in info or b"file tree" in info


def is_valid_torrent(path: str) -> bool:
    """Return True when `path` holds a complete, decodable torrent."""
    data = _read_bytes(path)
    if not data:
        return False
    try:
        meta = bdecode(data)
    except (ValueError, TypeError, KeyError, IndexError, RuntimeError) as exc:
        logger.debug("bdecode failed for %s: %s", path, exc)
        return False
    return _has_info_dict(meta)

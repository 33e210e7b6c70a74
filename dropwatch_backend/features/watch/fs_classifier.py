"""
Filesystem classification: is a directory on a network mount or a local disk?

Change notifications are unreliable on CIFS/SMB/NFS shares, so those
directories are polled instead. The answer comes from `statfs(2)` called
through ctypes; platforms without it always report local.
"""
from __future__ import annotations

import ctypes
import ctypes.util
import errno
import logging
import os
import sys
from typing import Optional, Union

from ...shared import WatchMode, get_logger, log_structured

logger = get_logger(__name__)

# Linux `f_type` magic numbers
CIFS_MAGIC_NUMBER = 0xFF534D42
SMB2_MAGIC_NUMBER = 0xFE534D42
NFS_SUPER_MAGIC = 0x6969
SMB_SUPER_MAGIC = 0x517B

NETWORK_FS_MAGICS = frozenset({CIFS_MAGIC_NUMBER, SMB2_MAGIC_NUMBER, NFS_SUPER_MAGIC, SMB_SUPER_MAGIC})

# BSD-style `f_fstypename` values
NETWORK_FS_NAMES = frozenset({"nfs", "cifs", "smbfs"})

STATFS_ERROR_REASONS: dict[int, str] = {
    errno.EACCES: "Search permission is denied for a component of the path prefix",
    errno.EFAULT: "Buffer or path points to an invalid address",
    errno.EINTR: "The call was interrupted by a signal",
    errno.EIO: "I/O error",
    errno.ELOOP: "Too many symbolic links while resolving the path",
    errno.ENAMETOOLONG: "Path is too long",
    errno.ENOENT: "The path does not exist",
    errno.ENOMEM: "Insufficient kernel memory",
    errno.ENOSYS: "The filesystem does not support this call",
    errno.ENOTDIR: "A component of the path is not a directory",
    errno.EOVERFLOW: "Some values were too large to be represented in the result",
}

FsType = Union[int, str]


class _LinuxStatfs(ctypes.Structure):
    # Only `f_type` is read; the tail covers the rest of `struct statfs`.
    _fields_ = [
        ("f_type", ctypes.c_long),
        ("_rest", ctypes.c_byte * 248),
    ]


class _DarwinStatfs(ctypes.Structure):
    # 64-bit inode layout (`statfs$INODE64` on x86_64, plain `statfs` on arm64)
    _fields_ = [
        ("f_bsize", ctypes.c_uint32),
        ("f_iosize", ctypes.c_int32),
        ("f_blocks", ctypes.c_uint64),
        ("f_bfree", ctypes.c_uint64),
        ("f_bavail", ctypes.c_uint64),
        ("f_files", ctypes.c_uint64),
        ("f_ffree", ctypes.c_uint64),
        ("f_fsid", ctypes.c_int32 * 2),
        ("f_owner", ctypes.c_uint32),
        ("f_type", ctypes.c_uint32),
        ("f_flags", ctypes.c_uint32),
        ("f_fssubtype", ctypes.c_uint32),
        ("f_fstypename", ctypes.c_char * 16),
        ("f_mntonname", ctypes.c_char * 1024),
        ("f_mntfromname", ctypes.c_char * 1024),
        ("f_flags_ext", ctypes.c_uint32),
        ("f_reserved", ctypes.c_uint32 * 7),
    ]


_LIBC: Optional[ctypes.CDLL] = None
_LIBC_LOADED = False


def _load_libc() -> Optional[ctypes.CDLL]:
    global _LIBC, _LIBC_LOADED
    if _LIBC_LOADED:
        return _LIBC
    _LIBC_LOADED = True
    name = ctypes.util.find_library("c")
    if not name:
        return None
    try:
        _LIBC = ctypes.CDLL(name, use_errno=True)
    except OSError as exc:
        logger.debug("Unable to load libc (%s): %s", name, exc)
        _LIBC = None
    return _LIBC


def _statfs_function(libc: ctypes.CDLL):
    if sys.platform == "darwin":
        for symbol in ("statfs$INODE64", "statfs"):
            try:
                return libc[symbol]
            except AttributeError:
                continue
        return None
    try:
        return libc["statfs"]
    except AttributeError:
        return None


def _query_fs_type(path: str) -> Optional[FsType]:
    """
    Return the raw filesystem type of the mount holding `path`.

    Linux yields the numeric `f_type`, macOS the `f_fstypename` string and
    every other platform None (no introspection available).

    Raises:
        OSError: when the `statfs` call itself fails.
    """
    if sys.platform.startswith("linux"):
        struct_type = _LinuxStatfs
    elif sys.platform == "darwin":
        struct_type = _DarwinStatfs
    else:
        return None

    libc = _load_libc()
    if libc is None:
        return None
    fn = _statfs_function(libc)
    if fn is None:
        return None

    buf = struct_type()
    rc = fn(os.fsencode(path), ctypes.byref(buf))
    if rc != 0:
        err = ctypes.get_errno()
        raise OSError(err, os.strerror(err) if err else "statfs failed", path)

    if struct_type is _LinuxStatfs:
        return int(buf.f_type) & 0xFFFFFFFF
    return buf.f_fstypename.decode("ascii", errors="ignore")


def is_network_fs_type(fs_type: Optional[FsType]) -> bool:
    if isinstance(fs_type, int):
        return fs_type in NETWORK_FS_MAGICS
    if isinstance(fs_type, str):
        return fs_type.strip().lower() in NETWORK_FS_NAMES
    return False


def statfs_error_reason(code: Optional[int]) -> str:
    return STATFS_ERROR_REASONS.get(code or 0, "Unknown error")


def _statfs_target(path: str) -> str:
    # Query "<dir>/." so a symlinked directory reports the mount it points into
    target = str(path)
    if not target.endswith(os.sep):
        target += os.sep
    return target + "."


def classify_path(path: str) -> WatchMode:
    """
    Decide whether `path` should be watched with notifications or polling.

    Never raises: a failed query is reported as a warning and the directory
    is treated as local.
    """
    target = _statfs_target(path)
    try:
        fs_type = _query_fs_type(target)
    except OSError as exc:
        log_structured(
            logger,
            logging.WARNING,
            "statfs() failed; assuming local folder",
            path=target,
            errno=exc.errno,
            reason=statfs_error_reason(exc.errno),
        )
        return WatchMode.LOCAL

    if is_network_fs_type(fs_type):
        logger.debug("Network filesystem detected for %s (type=%s)", path, fs_type)
        return WatchMode.NETWORK
    return WatchMode.LOCAL

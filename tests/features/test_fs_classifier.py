import errno
import os
import sys
from pathlib import Path

import pytest

from dropwatch_backend.features.watch import fs_classifier as fs
from dropwatch_backend.shared import WatchMode


@pytest.mark.parametrize(
    "fs_type",
    [fs.CIFS_MAGIC_NUMBER, fs.SMB2_MAGIC_NUMBER, fs.NFS_SUPER_MAGIC, fs.SMB_SUPER_MAGIC, "nfs", "smbfs", " CIFS "],
)
def test_network_types_are_polled(monkeypatch, fs_type):
    monkeypatch.setattr(fs, "_query_fs_type", lambda _p: fs_type)
    assert fs.classify_path("/mnt/share") == WatchMode.NETWORK


@pytest.mark.parametrize("fs_type", [0xEF53, 0x01021994, "apfs", "hfs", None])
def test_other_types_are_local(monkeypatch, fs_type):
    monkeypatch.setattr(fs, "_query_fs_type", lambda _p: fs_type)
    assert fs.classify_path("/home/user/drop") == WatchMode.LOCAL


def test_query_failure_warns_and_assumes_local(monkeypatch):
    warnings = []

    def _fail(_path):
        raise OSError(errno.EACCES, "Permission denied")

    monkeypatch.setattr(fs, "_query_fs_type", _fail)
    monkeypatch.setattr(fs, "log_structured", lambda _l, _lvl, msg, **ctx: warnings.append((msg, ctx)))

    assert fs.classify_path("/locked") == WatchMode.LOCAL
    assert len(warnings) == 1
    msg, ctx = warnings[0]
    assert "statfs" in msg
    assert ctx["errno"] == errno.EACCES
    assert ctx["reason"] == fs.STATFS_ERROR_REASONS[errno.EACCES]


def test_statfs_target_queries_inside_directory(monkeypatch):
    seen = []
    monkeypatch.setattr(fs, "_query_fs_type", lambda p: seen.append(p))
    fs.classify_path("/mnt/share")
    fs.classify_path("/mnt/share" + os.sep)
    assert seen == [os.path.join("/mnt/share", "."), os.path.join("/mnt/share", ".")]


def test_statfs_error_reason_table():
    assert fs.statfs_error_reason(errno.ENOENT) == "The path does not exist"
    assert fs.statfs_error_reason(errno.ENOTDIR) == "A component of the path is not a directory"
    assert fs.statfs_error_reason(None) == "Unknown error"
    assert fs.statfs_error_reason(99999) == "Unknown error"


def test_unsupported_platform_reports_nothing(monkeypatch):
    monkeypatch.setattr(fs.sys, "platform", "win32")
    assert fs._query_fs_type("C:\\drop") is None


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="statfs magic numbers are Linux-only")
def test_real_statfs_on_linux(tmp_path: Path):
    fs_type = fs._query_fs_type(str(tmp_path))
    if fs_type is None:
        pytest.skip("libc statfs unavailable")
    assert isinstance(fs_type, int)

    with pytest.raises(OSError) as exc_info:
        fs._query_fs_type(str(tmp_path / "missing"))
    assert exc_info.value.errno == errno.ENOENT


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="statfs magic numbers are Linux-only")
def test_missing_directory_classified_local(tmp_path: Path):
    assert fs.classify_path(str(tmp_path / "missing")) == WatchMode.LOCAL

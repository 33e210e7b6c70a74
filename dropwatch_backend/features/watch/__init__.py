"""
Watch feature - drop folder watching with notification and polling modes.
"""
from .fs_classifier import classify_path
from .ledger import PartialLedger, RetryPassResult
from .scanner import ScanResult, scan_directory
from .validity import is_valid_torrent
from .watcher import DirectoryChangeHandler, FolderWatcher

__all__ = [
    "FolderWatcher",
    "DirectoryChangeHandler",
    "PartialLedger",
    "RetryPassResult",
    "ScanResult",
    "scan_directory",
    "classify_path",
    "is_valid_torrent",
]

import sys

import pytest

from .repo_root import REPO_ROOT

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def restore_watcher_settings():
    from dropwatch_backend.features.watcher_settings import get_watcher_settings, update_watcher_settings

    before = get_watcher_settings()
    try:
        yield before
    finally:
        update_watcher_settings(
            poll_interval_s=before.poll_interval_s,
            retry_interval_s=before.retry_interval_s,
            max_partial_retries=before.max_partial_retries,
        )

import pytest

from dropwatch_backend.features import watcher_settings as ws


def test_defaults_match_config(restore_watcher_settings):
    from dropwatch_backend import config

    s = ws.get_watcher_settings()
    assert s.poll_interval_s == config.WATCHER_DEFAULT_POLL_INTERVAL_S
    assert s.retry_interval_s == config.WATCHER_DEFAULT_RETRY_INTERVAL_S
    assert s.max_partial_retries == config.WATCHER_DEFAULT_MAX_PARTIAL_RETRIES


def test_update_only_touches_given_fields(restore_watcher_settings):
    before = restore_watcher_settings
    s = ws.update_watcher_settings(poll_interval_s=2.5)
    assert s.poll_interval_s == 2.5
    assert s.retry_interval_s == before.retry_interval_s
    assert s.max_partial_retries == before.max_partial_retries


@pytest.mark.parametrize(
    "kwargs,field,expected",
    [
        ({"poll_interval_s": 0.0}, "poll_interval_s", ws.MIN_INTERVAL_S),
        ({"poll_interval_s": 1e9}, "poll_interval_s", ws.MAX_INTERVAL_S),
        ({"retry_interval_s": -1}, "retry_interval_s", ws.MIN_INTERVAL_S),
        ({"max_partial_retries": 0}, "max_partial_retries", ws.MIN_RETRIES),
        ({"max_partial_retries": 10**6}, "max_partial_retries", ws.MAX_RETRIES),
    ],
)
def test_update_clamps(restore_watcher_settings, kwargs, field, expected):
    s = ws.update_watcher_settings(**kwargs)
    assert getattr(s, field) == expected


def test_settings_are_frozen():
    s = ws.get_watcher_settings()
    with pytest.raises(AttributeError):
        s.poll_interval_s = 1.0

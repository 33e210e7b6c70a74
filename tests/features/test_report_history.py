from dropwatch_backend.features import reports as r


def test_record_and_recent(monkeypatch):
    monkeypatch.setattr(r, "now", lambda: 123.0)
    history = r.ReportHistory(max_entries=10)
    history.record(["/d/a.magnet"])
    history.record([])
    history.record(["/d/b.torrent", "/d/c.torrent"])

    entries = history.recent()
    assert entries == [
        {"ts": 123.0, "paths": ["/d/a.magnet"]},
        {"ts": 123.0, "paths": ["/d/b.torrent", "/d/c.torrent"]},
    ]
    assert history.total_items == 3


def test_recent_limits():
    history = r.ReportHistory(max_entries=10)
    for i in range(5):
        history.record([f"/d/{i}.magnet"])

    assert [e["paths"][0] for e in history.recent(2)] == ["/d/3.magnet", "/d/4.magnet"]
    assert history.recent(0) == []
    assert len(history.recent(50)) == 5


def test_history_is_bounded():
    history = r.ReportHistory(max_entries=2)
    for i in range(4):
        history.record([f"/d/{i}.magnet"])
    assert [e["paths"][0] for e in history.recent()] == ["/d/2.magnet", "/d/3.magnet"]
    assert history.total_items == 4

import json
from pathlib import Path

import pytest
from aiohttp import web
from aiohttp.test_utils import make_mocked_request

from dropwatch_backend.features.reports import ReportHistory
from dropwatch_backend.routes.core import SERVICES_KEY
from dropwatch_backend.routes.handlers import watcher as m
from dropwatch_backend.shared import Result, WatchMode

CSRF_HEADERS = {"X-Requested-With": "XMLHttpRequest"}


class _Watcher:
    is_running = True

    def __init__(self, add_result=True):
        self.dirs = []
        self.add_result = add_result
        self.refreshed = 0

    def add_path(self, path):
        if self.add_result and path not in self.dirs:
            self.dirs.append(path)
        return self.add_result

    def remove_path(self, path):
        if path in self.dirs:
            self.dirs.remove(path)
            return True
        return False

    def directories(self):
        return list(self.dirs)

    def watch_mode(self, path):
        return WatchMode.LOCAL if path in self.dirs else None

    def status(self):
        return {"running": True, "local_directories": list(self.dirs)}

    def refresh_runtime_settings(self):
        self.refreshed += 1


def _app(services=None):
    app = web.Application()
    routes = web.RouteTableDef()
    m.register_watcher_routes(routes)
    app.add_routes(routes)
    if services is not None:
        app[SERVICES_KEY] = services
    return app


def _body_reader(monkeypatch, body):
    async def _read_json(_request):
        return Result.Ok(body)

    monkeypatch.setattr(m, "_read_json", _read_json)


async def _call(app, method, path, headers=None):
    req = make_mocked_request(method, path, headers=headers or {}, app=app)
    match = await app.router.resolve(req)
    resp = await match.handler(req)
    return json.loads(resp.text)


@pytest.mark.asyncio
async def test_status_without_services():
    body = await _call(_app(), "GET", "/dropwatch/watcher/status")
    assert body["ok"] is False
    assert body["code"] == "SERVICE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_status_and_directories():
    watcher = _Watcher()
    watcher.dirs.append("/d")
    app = _app({"watcher": watcher})

    status = await _call(app, "GET", "/dropwatch/watcher/status")
    assert status["data"]["running"] is True

    dirs = await _call(app, "GET", "/dropwatch/watcher/directories")
    assert dirs["data"]["directories"] == ["/d"]


@pytest.mark.asyncio
async def test_add_directory_requires_csrf_header(monkeypatch, tmp_path: Path):
    _body_reader(monkeypatch, {"path": str(tmp_path)})
    body = await _call(_app({"watcher": _Watcher()}), "POST", "/dropwatch/watcher/directories")
    assert body["code"] == "CSRF"


@pytest.mark.asyncio
async def test_add_directory_validation(monkeypatch, tmp_path: Path):
    app = _app({"watcher": _Watcher()})

    _body_reader(monkeypatch, {})
    body = await _call(app, "POST", "/dropwatch/watcher/directories", CSRF_HEADERS)
    assert body["code"] == "INVALID_INPUT"

    _body_reader(monkeypatch, {"path": str(tmp_path / "missing")})
    body = await _call(app, "POST", "/dropwatch/watcher/directories", CSRF_HEADERS)
    assert body["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_add_directory_success_and_failure(monkeypatch, tmp_path: Path):
    _body_reader(monkeypatch, {"path": str(tmp_path)})

    body = await _call(_app({"watcher": _Watcher()}), "POST", "/dropwatch/watcher/directories", CSRF_HEADERS)
    assert body["ok"] is True
    assert body["data"] == {"mode": "local", "directories": [str(tmp_path)]}

    body = await _call(
        _app({"watcher": _Watcher(add_result=False)}), "POST", "/dropwatch/watcher/directories", CSRF_HEADERS
    )
    assert body["code"] == "WATCH_FAILED"


@pytest.mark.asyncio
async def test_remove_directory(monkeypatch):
    watcher = _Watcher()
    watcher.dirs.append("/d")
    app = _app({"watcher": watcher})

    _body_reader(monkeypatch, {"path": "/d"})
    body = await _call(app, "POST", "/dropwatch/watcher/directories/remove", CSRF_HEADERS)
    assert body["ok"] is True
    assert body["data"]["directories"] == []

    body = await _call(app, "POST", "/dropwatch/watcher/directories/remove", CSRF_HEADERS)
    assert body["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_settings_get_and_update(monkeypatch, restore_watcher_settings):
    watcher = _Watcher()
    app = _app({"watcher": watcher})

    body = await _call(app, "GET", "/dropwatch/watcher/settings")
    assert set(body["data"]) == {"poll_interval_s", "retry_interval_s", "max_partial_retries"}

    _body_reader(monkeypatch, {"poll_interval_s": 3, "max_partial_retries": "7"})
    body = await _call(app, "POST", "/dropwatch/watcher/settings", CSRF_HEADERS)
    assert body["ok"] is True
    assert body["data"]["poll_interval_s"] == 3.0
    assert body["data"]["max_partial_retries"] == 7
    assert watcher.refreshed == 1


@pytest.mark.asyncio
async def test_settings_update_rejects_bad_values(monkeypatch, restore_watcher_settings):
    app = _app({"watcher": _Watcher()})

    _body_reader(monkeypatch, {"poll_interval_s": True})
    body = await _call(app, "POST", "/dropwatch/watcher/settings", CSRF_HEADERS)
    assert body["code"] == "INVALID_INPUT"

    _body_reader(monkeypatch, {"retry_interval_s": "soon"})
    body = await _call(app, "POST", "/dropwatch/watcher/settings", CSRF_HEADERS)
    assert body["code"] == "INVALID_INPUT"

    _body_reader(monkeypatch, {})
    body = await _call(app, "POST", "/dropwatch/watcher/settings", CSRF_HEADERS)
    assert body["code"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_reports_endpoint():
    history = ReportHistory()
    history.record(["/d/a.magnet"])
    history.record(["/d/b.torrent"])
    app = _app({"watcher": _Watcher(), "reports": history})

    body = await _call(app, "GET", "/dropwatch/watcher/reports?limit=1")
    assert [e["paths"] for e in body["data"]["reports"]] == [["/d/b.torrent"]]
    assert body["data"]["total_items"] == 2

    body = await _call(app, "GET", "/dropwatch/watcher/reports?limit=bad")
    assert len(body["data"]["reports"]) == 2


def test_parse_limit():
    assert m._parse_limit(None) == m.DEFAULT_REPORTS_LIMIT
    assert m._parse_limit("-3") == 0
    assert m._parse_limit("12") == 12


def test_path_from_body():
    assert m._path_from_body({"path": "  /d  "}) == "/d"
    assert m._path_from_body({"path": "   "}) is None
    assert m._path_from_body({"path": 3}) is None

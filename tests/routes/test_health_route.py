import json

import pytest
from aiohttp import web
from aiohttp.test_utils import make_mocked_request

from dropwatch_backend import __version__
from dropwatch_backend.routes.core import SERVICES_KEY
from dropwatch_backend.routes.handlers import health as health_mod


def _build_health_app(services=None) -> web.Application:
    app = web.Application()
    routes = web.RouteTableDef()
    health_mod.register_health_routes(routes)
    app.add_routes(routes)
    if services is not None:
        app[SERVICES_KEY] = services
    return app


async def _get(app):
    req = make_mocked_request("GET", "/dropwatch/health", app=app)
    match = await app.router.resolve(req)
    resp = await match.handler(req)
    return json.loads(resp.text)


@pytest.mark.asyncio
async def test_health_without_watcher() -> None:
    body = await _get(_build_health_app())
    assert body["ok"] is True
    assert body["data"] == {"status": "ok", "version": __version__, "watcher_running": False}


@pytest.mark.asyncio
async def test_health_with_running_watcher() -> None:
    class _Watcher:
        is_running = True

    body = await _get(_build_health_app({"watcher": _Watcher()}))
    assert body["data"]["watcher_running"] is True

"""
Health check endpoint.
"""
from aiohttp import web

from dropwatch_backend import __version__
from dropwatch_backend.shared import Result

from ..core import SERVICES_KEY, _json_response


def register_health_routes(routes: web.RouteTableDef) -> None:
    @routes.get("/dropwatch/health")
    async def health(request):
        svc = request.app.get(SERVICES_KEY) or {}
        watcher = svc.get("watcher")
        return _json_response(
            Result.Ok(
                {
                    "status": "ok",
                    "version": __version__,
                    "watcher_running": bool(watcher is not None and watcher.is_running),
                }
            )
        )

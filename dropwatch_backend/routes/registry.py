"""
Route registration: builds the route table and request middlewares.
"""

from __future__ import annotations

import uuid

from aiohttp import web

from dropwatch_backend.shared import get_logger, request_id_var

from .handlers import register_health_routes, register_watcher_routes

API_PREFIX = "/dropwatch/"

logger = get_logger(__name__)


@web.middleware
async def request_id_middleware(request: web.Request, handler):
    """Tag log lines emitted while serving a request with its request id."""
    if not request.path.startswith(API_PREFIX):
        return await handler(request)
    rid = (request.headers.get("X-Request-ID") or "").strip()[:64] or uuid.uuid4().hex[:8]
    token = request_id_var.set(rid)
    try:
        response = await handler(request)
    finally:
        request_id_var.reset(token)
    response.headers["X-Request-ID"] = rid
    return response


def build_routes() -> web.RouteTableDef:
    routes = web.RouteTableDef()
    register_health_routes(routes)
    register_watcher_routes(routes)
    return routes


def register_all_routes(app: web.Application) -> None:
    """Attach every Dropwatch route and middleware to `app`."""
    app.middlewares.append(request_id_middleware)
    app.add_routes(build_routes())
    logger.debug("Registered %d routes", len(app.router.routes()))

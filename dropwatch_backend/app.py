"""
Application assembly: aiohttp app whose lifetime owns the folder watcher.
"""
from __future__ import annotations

from collections.abc import Iterable

from aiohttp import web

from .deps import build_services, dispose_services
from .routes import register_all_routes
from .routes.core import SERVICES_KEY
from .shared import get_logger

logger = get_logger(__name__)


def create_app(watch_dirs: Iterable[str] | None = None) -> web.Application:
    """Build the app; the watcher starts on startup and stops on cleanup."""
    app = web.Application()
    app[SERVICES_KEY] = {}
    dirs = None if watch_dirs is None else list(watch_dirs)

    async def _on_startup(app: web.Application) -> None:
        res = await build_services(dirs)
        if not res.ok:
            logger.error("Folder watcher unavailable: %s", res.error)
            return
        app[SERVICES_KEY].update(res.unwrap_or({}))

    async def _on_cleanup(app: web.Application) -> None:
        await dispose_services(app.get(SERVICES_KEY))

    app.on_startup.append(_on_startup)
    app.on_cleanup.append(_on_cleanup)
    register_all_routes(app)
    return app

"""
Access to the services attached to the aiohttp application.
"""
from typing import Any

from aiohttp import web

from dropwatch_backend.shared import ErrorCode, Result

SERVICES_KEY: web.AppKey[dict] = web.AppKey("dropwatch_services", dict)


def _require_services(request: web.Request) -> tuple[dict[str, Any], Result | None]:
    """Return `(services, None)` or `({}, error_result)` when not initialised."""
    svc = request.app.get(SERVICES_KEY)
    if not svc or svc.get("watcher") is None:
        return {}, Result.Err(ErrorCode.SERVICE_UNAVAILABLE, "Folder watcher is not running")
    return svc, None

"""
Watcher route handlers: watched directories, status, settings and reports.
"""
import os
from typing import Any

from aiohttp import web

from dropwatch_backend.features.watcher_settings import get_watcher_settings, update_watcher_settings
from dropwatch_backend.shared import ErrorCode, Result, get_logger

from ..core import (
    _csrf_error,
    _json_response,
    _read_json,
    _require_services,
    safe_error_message,
)

logger = get_logger(__name__)

DEFAULT_REPORTS_LIMIT = 50


def _settings_payload(settings) -> dict[str, Any]:
    return {
        "poll_interval_s": settings.poll_interval_s,
        "retry_interval_s": settings.retry_interval_s,
        "max_partial_retries": settings.max_partial_retries,
    }


def _watcher_settings_from_body(body: dict[str, Any]) -> tuple[float | None, float | None, int | None]:
    def _parse(name: str, cast):
        if name not in body:
            return None
        value = body.get(name)
        if value is None:
            return None
        if isinstance(value, bool):
            raise ValueError(f"Invalid value for {name}")
        try:
            return cast(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid value for {name}") from exc

    return (
        _parse("poll_interval_s", float),
        _parse("retry_interval_s", float),
        _parse("max_partial_retries", int),
    )


def _refresh_watcher_runtime_settings(svc: dict[str, Any]) -> None:
    watcher = svc.get("watcher")
    refresh_fn = getattr(watcher, "refresh_runtime_settings", None)
    if not callable(refresh_fn):
        return
    try:
        refresh_fn()
    except Exception as exc:
        logger.debug("Failed to refresh watcher settings: %s", exc)


def _path_from_body(body: dict[str, Any]) -> str | None:
    raw = body.get("path")
    if not isinstance(raw, str):
        return None
    path = raw.strip()
    return path or None


def _parse_limit(raw: str | None) -> int:
    if raw is None or raw == "":
        return DEFAULT_REPORTS_LIMIT
    try:
        return max(0, int(raw))
    except ValueError:
        return DEFAULT_REPORTS_LIMIT


def register_watcher_routes(routes: web.RouteTableDef) -> None:
    """Register all /dropwatch/watcher/* route handlers."""

    @routes.get("/dropwatch/watcher/status")
    async def watcher_status(request):
        """Get watcher status."""
        svc, error_result = _require_services(request)
        if error_result:
            return _json_response(error_result)
        return _json_response(Result.Ok(svc["watcher"].status()))

    @routes.get("/dropwatch/watcher/directories")
    async def watcher_directories(request):
        svc, error_result = _require_services(request)
        if error_result:
            return _json_response(error_result)
        return _json_response(Result.Ok({"directories": svc["watcher"].directories()}))

    @routes.post("/dropwatch/watcher/directories")
    async def watcher_add_directory(request):
        """Start watching a directory."""
        svc, error_result = _require_services(request)
        if error_result:
            return _json_response(error_result)

        csrf = _csrf_error(request)
        if csrf:
            return _json_response(Result.Err(ErrorCode.CSRF, csrf))

        body_res = await _read_json(request)
        if not body_res.ok:
            return _json_response(body_res)
        path = _path_from_body(body_res.data or {})
        if not path:
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, "Missing 'path'"))
        if not os.path.isdir(path):
            return _json_response(Result.Err(ErrorCode.NOT_FOUND, "Directory not found"))

        watcher = svc["watcher"]
        try:
            added = watcher.add_path(path)
        except Exception as exc:
            logger.warning("Failed to watch %s: %s", path, exc)
            return _json_response(Result.Err(ErrorCode.WATCH_FAILED, safe_error_message(exc, "Failed to watch directory")))
        if not added:
            return _json_response(Result.Err(ErrorCode.WATCH_FAILED, "Failed to watch directory"))

        mode = watcher.watch_mode(path)
        return _json_response(
            Result.Ok(
                {
                    "mode": mode.value if mode else None,
                    "directories": watcher.directories(),
                }
            )
        )

    @routes.post("/dropwatch/watcher/directories/remove")
    async def watcher_remove_directory(request):
        """Stop watching a directory."""
        svc, error_result = _require_services(request)
        if error_result:
            return _json_response(error_result)

        csrf = _csrf_error(request)
        if csrf:
            return _json_response(Result.Err(ErrorCode.CSRF, csrf))

        body_res = await _read_json(request)
        if not body_res.ok:
            return _json_response(body_res)
        path = _path_from_body(body_res.data or {})
        if not path:
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, "Missing 'path'"))

        watcher = svc["watcher"]
        if not watcher.remove_path(path):
            return _json_response(Result.Err(ErrorCode.NOT_FOUND, "Directory is not watched"))
        return _json_response(Result.Ok({"directories": watcher.directories()}))

    @routes.get("/dropwatch/watcher/settings")
    async def watcher_settings_get(request):
        return _json_response(Result.Ok(_settings_payload(get_watcher_settings())))

    @routes.post("/dropwatch/watcher/settings")
    async def watcher_settings_update(request):
        svc, error_result = _require_services(request)
        if error_result:
            return _json_response(error_result)

        csrf = _csrf_error(request)
        if csrf:
            return _json_response(Result.Err(ErrorCode.CSRF, csrf))

        body_res = await _read_json(request)
        if not body_res.ok:
            return _json_response(body_res)
        body = body_res.data or {}

        try:
            poll_interval_s, retry_interval_s, max_partial_retries = _watcher_settings_from_body(body)
        except ValueError as exc:
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, str(exc)))

        if poll_interval_s is None and retry_interval_s is None and max_partial_retries is None:
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, "No watcher settings provided"))

        settings = update_watcher_settings(
            poll_interval_s=poll_interval_s,
            retry_interval_s=retry_interval_s,
            max_partial_retries=max_partial_retries,
        )
        _refresh_watcher_runtime_settings(svc)
        return _json_response(Result.Ok(_settings_payload(settings)))

    @routes.get("/dropwatch/watcher/reports")
    async def watcher_reports(request):
        """Most recent item reports, oldest first."""
        svc, error_result = _require_services(request)
        if error_result:
            return _json_response(error_result)
        reports = svc.get("reports")
        if reports is None:
            return _json_response(Result.Ok({"reports": [], "total_items": 0}))
        limit = _parse_limit(request.query.get("limit"))
        return _json_response(Result.Ok({"reports": reports.recent(limit), "total_items": reports.total_items}))

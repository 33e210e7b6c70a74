"""
JSON envelope for every API answer: `{ok, data, error, code, meta}`.
"""
import math
from typing import Any

from aiohttp import web

from dropwatch_backend.shared import Result, sanitize_error_message


def safe_error_message(exc: Exception, generic_message: str) -> str:
    return sanitize_error_message(exc, generic_message)


def _strict_json(value: Any) -> Any:
    # Python's json emits NaN/Infinity, which browsers refuse to parse
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _strict_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_strict_json(v) for v in value]
    return value


def _json_response(result: Result, status: int = 200) -> web.Response:
    """
    Serialise a Result.

    Validation and business errors are still HTTP 200; clients branch on
    `ok` and `code`.
    """
    envelope = {
        "ok": result.ok,
        "data": result.data,
        "error": result.error,
        "code": result.code,
        "meta": result.meta,
    }
    return web.json_response(_strict_json(envelope), status=status)

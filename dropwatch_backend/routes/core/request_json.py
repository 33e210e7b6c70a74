"""
Request body parsing for the JSON API. Never raises into handlers.
"""
from __future__ import annotations

import json

from aiohttp import web

from dropwatch_backend.config import MAX_JSON_BYTES
from dropwatch_backend.shared import ErrorCode, Result


def _too_large(limit: int, size: int | None = None) -> Result[dict]:
    detail = f"{size} > {limit}" if size is not None else f"> {limit}"
    return Result.Err(ErrorCode.INVALID_INPUT, f"JSON body too large ({detail})", limit=limit)


def _parse_object(raw: bytes) -> Result[dict]:
    if not raw.strip():
        return Result.Ok({})
    try:
        parsed = json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError:
        return Result.Err(ErrorCode.INVALID_JSON, "Request body is not UTF-8")
    except ValueError as exc:
        return Result.Err(ErrorCode.INVALID_JSON, f"Invalid JSON body: {exc}")
    if not isinstance(parsed, dict):
        return Result.Err(ErrorCode.INVALID_JSON, "JSON body must be an object")
    return Result.Ok(parsed)


async def _read_json(request: web.Request, *, max_bytes: int | None = None) -> Result[dict]:
    """Read the body as a JSON object of at most `max_bytes` (default MAX_JSON_BYTES)."""
    limit = max(1024, int(max_bytes if max_bytes is not None else MAX_JSON_BYTES))

    declared = request.content_length
    if declared is not None and declared > limit:
        return _too_large(limit, declared)

    buf = bytearray()
    try:
        # Reading one byte past the limit tells an oversized chunked body apart from an exact fit
        while len(buf) <= limit:
            chunk = await request.content.read(limit + 1 - len(buf))
            if not chunk:
                break
            buf.extend(chunk)
    except Exception as exc:
        return Result.Err(ErrorCode.INVALID_JSON, f"Failed to read request body: {exc}")
    if len(buf) > limit:
        return _too_large(limit)
    return _parse_object(bytes(buf))

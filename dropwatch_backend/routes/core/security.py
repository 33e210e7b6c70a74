"""
CSRF guard for the state-changing watcher endpoints.
"""
from urllib.parse import urlparse

from aiohttp import web

_UNSAFE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
_CSRF_HEADERS = ("X-Requested-With", "X-CSRF-Token")
_LOOPBACK = frozenset({"127.0.0.1", "localhost", "::1"})


def _hostname(netloc: str) -> str:
    """`host:port` / `[v6]:port` -> bare lowercase host."""
    parsed = urlparse(f"//{netloc}")
    return (parsed.hostname or "").lower()


def _csrf_error(request: web.Request) -> str | None:
    """
    Return why the request must be rejected, or None.

    Unsafe methods need one of the anti-CSRF headers, which a plain HTML form
    cannot send. When the browser sends an Origin it must match Host; loopback
    aliases (127.0.0.1 / localhost / ::1) count as the same host.
    """
    if request.method.upper() not in _UNSAFE_METHODS:
        return None
    if not any(request.headers.get(h) for h in _CSRF_HEADERS):
        return "Missing anti-CSRF header (X-Requested-With or X-CSRF-Token)"

    origin = request.headers.get("Origin")
    if not origin:
        return None
    if origin == "null":
        return "Cross-site request blocked (Origin=null)"

    host = request.headers.get("Host") or ""
    if not host:
        return "Missing Host header"
    origin_netloc = urlparse(origin).netloc
    if not origin_netloc:
        return "Cross-site request blocked (invalid Origin)"
    if origin_netloc == host:
        return None
    if _hostname(origin_netloc) in _LOOPBACK and _hostname(host) in _LOOPBACK:
        return None
    return f"Cross-site request blocked ({origin_netloc} != {host})"

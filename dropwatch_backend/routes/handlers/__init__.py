"""
Route handler registration functions.
"""
from .health import register_health_routes
from .watcher import register_watcher_routes

__all__ = [
    "register_health_routes",
    "register_watcher_routes",
]

"""
HTTP control surface for the folder watcher.
"""
from .registry import build_routes, register_all_routes

__all__ = ["build_routes", "register_all_routes"]

"""
Command line entry point.

    python -m dropwatch_backend --watch ~/Downloads/torrents --watch /mnt/nas/torrents
"""
from __future__ import annotations

import argparse
import asyncio
import logging

from aiohttp import web

from . import config
from .app import create_app
from .deps import build_services, dispose_services
from .shared import get_logger, set_log_level

logger = get_logger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dropwatch",
        description="Watch drop folders for .torrent and .magnet files.",
    )
    parser.add_argument(
        "--watch",
        action="append",
        metavar="DIR",
        help="directory to watch (repeatable; default: DROPWATCH_WATCH_DIRS)",
    )
    parser.add_argument("--host", default=config.API_HOST, help="API bind address")
    parser.add_argument("--port", type=int, default=config.API_PORT, help="API port")
    parser.add_argument(
        "--no-api",
        action="store_true",
        default=not config.API_ENABLED,
        help="run the watcher without the HTTP API",
    )
    parser.add_argument("--debug", action="store_true", default=config.DEBUG, help="enable debug logging")
    return parser.parse_args(argv)


async def _run_headless(watch_dirs: list[str] | None) -> int:
    res = await build_services(watch_dirs)
    if not res.ok:
        logger.error("Folder watcher unavailable: %s", res.error)
        return 1
    try:
        await asyncio.Event().wait()
    finally:
        await dispose_services(res.data)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.debug:
        set_log_level(logging.DEBUG)

    if args.no_api:
        try:
            return asyncio.run(_run_headless(args.watch))
        except KeyboardInterrupt:
            return 0

    web.run_app(create_app(args.watch), host=args.host, port=args.port, print=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

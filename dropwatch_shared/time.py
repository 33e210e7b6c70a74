"""
Clock helpers.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager


def now() -> float:
    """Wall-clock seconds since the epoch."""
    return time.time()


@contextmanager
def timer(label: str, logger: logging.Logger) -> Iterator[None]:
    """Log at debug level how long the `with` block took, even if it raises."""
    started = time.perf_counter()
    try:
        yield
    finally:
        logger.debug("%s took %.3fs", label, time.perf_counter() - started)

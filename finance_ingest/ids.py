"""Identifier factories for parsed records.

Parsers take an ``IdFactory`` (a zero-argument callable returning a new id) so
tests can inject a deterministic counter while production uses UUIDs, which
cannot collide across concurrently parsed files.
"""

from __future__ import annotations

import itertools
import threading
import uuid
from collections.abc import Callable

type IdFactory = Callable[[], str]


def uuid_ids() -> IdFactory:
    def _next() -> str:
        return uuid.uuid4().hex

    return _next


def sequential_ids(prefix: str = "t", start: int = 1) -> IdFactory:
    """Monotonic ``<prefix><n>`` ids; safe to share between threads."""

    counter = itertools.count(start)
    lock = threading.Lock()

    def _next() -> str:
        with lock:
            n = next(counter)
        return f"{prefix}{n}"

    return _next


__all__ = ["IdFactory", "sequential_ids", "uuid_ids"]

# src/todo_keeper/core/changes.py

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Iterator


class ChangeFeed:
    """
    Minimal change notification used by every live stream in the app.

    Producers call publish() after a change is committed.
    Consumers subscribe() and wait on the returned event; they re-read the
    source themselves, so a burst of changes collapses into one wake-up.

    Must be used from a single event loop.
    """

    def __init__(self) -> None:
        self._waiters: set[asyncio.Event] = set()
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    def publish(self) -> None:
        self._version += 1
        for ev in self._waiters:
            ev.set()

    @contextlib.contextmanager
    def subscribe(self) -> Iterator[asyncio.Event]:
        ev = asyncio.Event()
        self._waiters.add(ev)
        try:
            yield ev
        finally:
            self._waiters.discard(ev)

    @property
    def subscriber_count(self) -> int:
        return len(self._waiters)

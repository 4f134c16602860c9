# src/todo_keeper/core/container.py

from __future__ import annotations

"""
State container used by the controllers.

A controller owns exactly one Container:
- `state` is the current immutable snapshot (dataclass, replaced by reduce()),
- `observe_state()` streams snapshots to the presentation layer,
- side effects are one-shot notifications delivered through a queue, each one to
  exactly one consumer (not broadcast),
- intents decorated with @intent run one at a time per controller.
"""

import asyncio
import functools
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Generic, TypeVar

from .changes import ChangeFeed

logger = logging.getLogger(__name__)

S = TypeVar("S")
E = TypeVar("E")


class Container(Generic[S, E]):
    def __init__(self, initial_state: S) -> None:
        self._state = initial_state
        self._changes = ChangeFeed()
        self._side_effects: asyncio.Queue[E] = asyncio.Queue()
        self._lock = asyncio.Lock()

    @property
    def state(self) -> S:
        return self._state

    @property
    def changes(self) -> ChangeFeed:
        return self._changes

    @property
    def lock(self) -> asyncio.Lock:
        return self._lock

    def reduce(self, reducer: Callable[[S], S]) -> S:
        new_state = reducer(self._state)
        if new_state != self._state:
            self._state = new_state
            self._changes.publish()
        return self._state

    def post_side_effect(self, effect: E) -> None:
        logger.debug("side effect posted: %s", type(effect).__name__)
        self._side_effects.put_nowait(effect)

    async def next_side_effect(self) -> E:
        return await self._side_effects.get()

    def poll_side_effect(self) -> E | None:
        try:
            return self._side_effects.get_nowait()
        except asyncio.QueueEmpty:
            return None

    async def observe_state(self) -> AsyncIterator[S]:
        """Yield the current state, then every new state until the consumer stops."""
        with self._changes.subscribe() as changed:
            while True:
                changed.clear()
                yield self._state
                await changed.wait()


def intent(fn: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
    """
    Serialize a controller method on its container's lock.

    Intents must not call other @intent methods (the lock is not reentrant);
    share plain helper methods instead.
    """

    @functools.wraps(fn)
    async def wrapper(self, *args: Any, **kwargs: Any) -> Any:
        async with self.container.lock:
            return await fn(self, *args, **kwargs)

    return wrapper

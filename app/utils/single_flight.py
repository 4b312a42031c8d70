"""
Coalesce concurrent calls for the same key into one in-flight computation.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, TypeVar

T = TypeVar("T")


class SingleFlight:
    def __init__(self) -> None:
        self._inflight: Dict[str, "asyncio.Task"] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._inflight

    async def do(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """
        Await the running computation for key, or start one with factory().

        Every waiter gets the same result or the same exception. A cancelled
        waiter does not cancel the shared computation.
        """
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        return await asyncio.shield(task)

    def _forget(self, key: str, task: "asyncio.Task") -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the failure retrieved even when every waiter was cancelled
        if not task.cancelled():
            task.exception()

"""
In-process TTL cache for aggregated portfolio payloads.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    key: str
    value: Any
    expires_at: float


class MemoryTTLCache:
    """
    Key -> value store with a per-entry TTL chosen by the caller.

    An entry read at or after its expiry is a miss and is dropped. A
    background sweeper (start/stop) removes expired entries that are never
    read again and logs hit/miss statistics.
    """

    def __init__(
        self,
        sweep_interval_seconds: float = 120,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._entries: Dict[str, CacheEntry] = {}
        self._clock = clock
        self._sweep_interval_seconds = sweep_interval_seconds
        self._hits = 0
        self._misses = 0

        self._sweep_task: Optional[asyncio.Task] = None
        self._running = False

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None
        if self._clock() >= entry.expires_at:
            self._entries.pop(key, None)
            self._misses += 1
            return None
        self._hits += 1
        return entry.value

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            self._entries.pop(key, None)
            return
        self._entries[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + ttl_seconds)

    async def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    async def flush_all(self) -> None:
        self._entries.clear()

    def sweep(self) -> int:
        """Drop expired entries; returns how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    async def stats(self) -> Dict[str, object]:
        lookups = self._hits + self._misses
        return {
            "backend": "memory",
            "keys": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / lookups, 4) if lookups else 0.0,
        }

    # ------------------------------------------------------------------
    # BACKGROUND SWEEP
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the background sweep task."""
        if self._running:
            return
        self._running = True
        self._sweep_task = asyncio.create_task(self._periodic_sweep_loop())
        logger.info(f"MemoryTTLCache sweeper started (every {self._sweep_interval_seconds}s)")

    async def stop(self) -> None:
        """Stop the sweep task."""
        self._running = False
        if self._sweep_task:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None

    async def _periodic_sweep_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._sweep_interval_seconds)
            removed = self.sweep()
            logger.info("Cache stats: %s (swept %d)", await self.stats(), removed)

    async def close(self) -> None:
        await self.stop()

"""
Cache backend protocol for type hints.

get() returns None on a miss; cached values are never None.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol


class CacheBackend(Protocol):
    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        ...

    async def invalidate(self, key: str) -> None:
        ...

    async def flush_all(self) -> None:
        ...

    async def stats(self) -> Dict[str, object]:
        ...

    async def close(self) -> None:
        ...

"""
Redis cache wrapper for aggregated portfolio payloads.

Values are stored as JSON. Backend errors are logged and behave as misses.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis

from app.domain.errors import CacheUnavailable

logger = logging.getLogger(__name__)


class RedisCache:
    def __init__(self, url: str, prefix: str = "pf:", client: Optional[Any] = None):
        self._client = client if client is not None else redis.Redis.from_url(url, decode_responses=True)
        self._prefix = prefix
        self._hits = 0
        self._misses = 0

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def ping(self) -> None:
        """Raise CacheUnavailable when the server cannot be reached."""
        try:
            await self._client.ping()
        except Exception as exc:
            raise CacheUnavailable(f"Redis unreachable: {exc}") from exc

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self._client.get(self._key(key))
        except Exception as exc:
            logger.debug("Redis get failed: %s", exc)
            self._misses += 1
            return None
        if raw is None:
            self._misses += 1
            return None
        try:
            value = json.loads(raw)
        except ValueError as exc:
            logger.debug("Redis payload for %s is not JSON: %s", key, exc)
            self._misses += 1
            return None
        self._hits += 1
        return value

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        # Redis EX needs whole seconds, at least 1
        ttl = max(1, int(round(ttl_seconds)))
        try:
            await self._client.set(self._key(key), json.dumps(value), ex=ttl)
        except Exception as exc:
            logger.debug("Redis set failed: %s", exc)

    async def invalidate(self, key: str) -> None:
        try:
            await self._client.delete(self._key(key))
        except Exception as exc:
            logger.debug("Redis delete failed: %s", exc)

    async def flush_all(self) -> None:
        """Delete every key under this cache's prefix."""
        try:
            keys = [key async for key in self._client.scan_iter(match=f"{self._prefix}*")]
            if keys:
                await self._client.delete(*keys)
        except Exception as exc:
            logger.debug("Redis flush failed: %s", exc)

    async def stats(self) -> Dict[str, object]:
        keys: Optional[int]
        try:
            keys = len([key async for key in self._client.scan_iter(match=f"{self._prefix}*")])
        except Exception as exc:
            logger.debug("Redis scan failed: %s", exc)
            keys = None
        lookups = self._hits + self._misses
        return {
            "backend": "redis",
            "keys": keys,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / lookups, 4) if lookups else 0.0,
        }

    async def close(self) -> None:
        try:
            await self._client.aclose()
        except Exception:
            return

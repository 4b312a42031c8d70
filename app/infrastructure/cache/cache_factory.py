"""
Cache backend factory (config-driven).
"""

from __future__ import annotations

import logging
from typing import Optional

from app.config import Settings, settings as default_settings
from app.domain.errors import CacheUnavailable
from app.infrastructure.cache.memory_cache import MemoryTTLCache
from app.infrastructure.cache.redis_cache import RedisCache
from app.infrastructure.cache.types import CacheBackend

logger = logging.getLogger(__name__)


async def build_cache(config: Optional[Settings] = None) -> Optional[CacheBackend]:
    """
    Build the configured cache backend.

    Returns None when caching is disabled or the backend cannot be brought
    up; callers then aggregate on every request.
    """
    config = config or default_settings
    if not config.CACHE_ENABLED:
        logger.info("Cache disabled; serving uncached")
        return None

    if config.REDIS_ENABLED:
        try:
            cache = RedisCache(url=config.REDIS_URL, prefix=config.REDIS_PREFIX)
        except ValueError as exc:
            logger.warning(f"⚠️ Invalid Redis URL, serving uncached: {exc}")
            return None
        try:
            await cache.ping()
        except CacheUnavailable as exc:
            logger.warning(f"⚠️ Redis cache unavailable, serving uncached: {exc}")
            await cache.close()
            return None
        logger.info("Redis cache connected")
        return cache

    cache = MemoryTTLCache(sweep_interval_seconds=config.CACHE_SWEEP_INTERVAL_SECONDS)
    await cache.start()
    return cache

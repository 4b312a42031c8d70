import asyncio

import pytest

from app.infrastructure.cache.memory_cache import MemoryTTLCache


@pytest.mark.asyncio
async def test_entry_is_hit_before_expiry_and_miss_after(cache, clock):
    await cache.set("k", {"v": 1}, ttl_seconds=1)

    clock.advance(0.5)
    assert await cache.get("k") == {"v": 1}

    clock.advance(0.6)
    assert await cache.get("k") is None

    stats = await cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["keys"] == 0


@pytest.mark.asyncio
async def test_read_exactly_at_expiry_is_a_miss(cache, clock):
    await cache.set("k", "v", ttl_seconds=2)
    clock.advance(2)
    assert await cache.get("k") is None


@pytest.mark.asyncio
async def test_set_replaces_value_and_ttl(cache, clock):
    await cache.set("k", "old", ttl_seconds=1)
    clock.advance(0.9)
    await cache.set("k", "new", ttl_seconds=5)
    clock.advance(1)
    assert await cache.get("k") == "new"


@pytest.mark.asyncio
async def test_non_positive_ttl_removes_entry(cache):
    await cache.set("k", "v", ttl_seconds=10)
    await cache.set("k", "v", ttl_seconds=0)
    assert await cache.get("k") is None


@pytest.mark.asyncio
async def test_invalidate_and_flush(cache):
    await cache.set("a", 1, ttl_seconds=10)
    await cache.set("b", 2, ttl_seconds=10)

    await cache.invalidate("a")
    assert await cache.get("a") is None
    assert await cache.get("b") == 2

    await cache.flush_all()
    assert (await cache.stats())["keys"] == 0


@pytest.mark.asyncio
async def test_sweep_drops_only_expired(cache, clock):
    await cache.set("short", 1, ttl_seconds=1)
    await cache.set("long", 2, ttl_seconds=100)
    clock.advance(5)

    assert cache.sweep() == 1
    assert (await cache.stats())["keys"] == 1
    assert await cache.get("long") == 2


@pytest.mark.asyncio
async def test_background_sweeper_start_stop():
    cache = MemoryTTLCache(sweep_interval_seconds=0.01)
    await cache.set("k", "v", ttl_seconds=0.001)

    await cache.start()
    await asyncio.sleep(0.05)
    await cache.close()

    assert (await cache.stats())["keys"] == 0

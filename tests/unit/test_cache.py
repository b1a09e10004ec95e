"""Unit tests for MemoryCacheProvider."""

from __future__ import annotations

import pytest

from profmatch.providers.cache.memory_cache import MemoryCacheProvider


@pytest.mark.asyncio
async def test_set_get_delete() -> None:
    cache = MemoryCacheProvider()
    assert await cache.get("k") is None
    await cache.set("k", [0.1, 0.2])
    assert await cache.get("k") == [0.1, 0.2]
    assert await cache.exists("k")
    await cache.delete("k")
    assert not await cache.exists("k")


@pytest.mark.asyncio
async def test_max_size_evicts() -> None:
    cache = MemoryCacheProvider(max_size=2)
    for key in ("a", "b", "c"):
        await cache.set(key, key)
    assert len(cache) == 2

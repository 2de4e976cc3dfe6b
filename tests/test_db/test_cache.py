"""Tests for the in-memory and Redis result caches."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from pinioscan.db.cache import MemoryResultCache, RedisResultCache, ResultCache, scan_cache_key


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestMemoryResultCache:
    @pytest.mark.asyncio
    async def test_get_set(self) -> None:
        cache = MemoryResultCache()
        await cache.set("scan:0xA", {"overallScore": 55})
        assert await cache.get("scan:0xA") == {"overallScore": 55}
        assert await cache.get("scan:0xB") is None

    @pytest.mark.asyncio
    async def test_expired_entry_is_absent_and_evicted(self) -> None:
        clock = FakeClock()
        cache = MemoryResultCache(clock=clock)
        await cache.set("k", {"v": 1}, ttl=60)

        clock.now += 59
        assert await cache.get("k") == {"v": 1}

        clock.now += 2
        assert await cache.get("k") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_copies_in_and_out(self) -> None:
        cache = MemoryResultCache()
        value = {"flags": ["a"]}
        await cache.set("k", value)
        value["flags"].append("mutated")

        first = await cache.get("k")
        assert first == {"flags": ["a"]}
        first["flags"].append("again")
        assert await cache.get("k") == {"flags": ["a"]}

    @pytest.mark.asyncio
    async def test_evicts_oldest_batch_over_capacity(self) -> None:
        cache = MemoryResultCache(max_entries=200, evict_batch=50)
        for i in range(200):
            await cache.set(f"k{i}", {"i": i})
        assert len(cache) == 200

        await cache.set("k200", {"i": 200})

        assert len(cache) == 151
        assert await cache.get("k0") is None
        assert await cache.get("k49") is None
        assert await cache.get("k50") == {"i": 50}
        assert await cache.get("k200") == {"i": 200}

    @pytest.mark.asyncio
    async def test_evict(self) -> None:
        cache = MemoryResultCache()
        await cache.set("k", {"v": 1})
        await cache.evict("k")
        await cache.evict("missing")
        assert await cache.get("k") is None

    def test_empty_cache_is_truthy(self) -> None:
        cache = MemoryResultCache()
        assert len(cache) == 0
        assert (cache or None) is cache

    def test_key_format(self) -> None:
        assert scan_cache_key("0xAbC") == "scan:0xAbC"


class TestRedisResultCache:
    @pytest.mark.asyncio
    async def test_set_uses_setex(self) -> None:
        redis = MagicMock()
        redis.setex = AsyncMock()
        cache = RedisResultCache(redis)

        await cache.set("scan:0xA", {"summary": "ok ✅"}, ttl=21600)

        key, ttl, payload = redis.setex.call_args.args
        assert (key, ttl) == ("scan:0xA", 21600)
        assert json.loads(payload) == {"summary": "ok ✅"}

    @pytest.mark.asyncio
    async def test_get_decodes(self) -> None:
        redis = MagicMock()
        redis.get = AsyncMock(return_value='{"overallScore": 30}')
        assert await RedisResultCache(redis).get("k") == {"overallScore": 30}

    @pytest.mark.asyncio
    async def test_missing_and_corrupt(self) -> None:
        redis = MagicMock()
        redis.get = AsyncMock(side_effect=[None, "{not json"])
        redis.delete = AsyncMock()
        cache = RedisResultCache(redis)

        assert await cache.get("k") is None
        assert await cache.get("k") is None
        redis.delete.assert_awaited_once_with("k")


class TestResultCacheInterface:
    def test_incomplete_backend_rejected(self) -> None:
        class GetOnly(ResultCache):
            async def get(self, key):
                return None

        with pytest.raises(TypeError):
            GetOnly()

    def test_base_not_instantiable(self) -> None:
        with pytest.raises(TypeError):
            ResultCache()

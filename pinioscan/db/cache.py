"""Result cache for finished reports, keyed by checksum token address.

Entries are non-durable: a restart or eviction only costs a rescan.
"""

from __future__ import annotations

import copy
import json
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from loguru import logger
from redis.asyncio import Redis

DEFAULT_TTL_SEC = 6 * 60 * 60
DEFAULT_MAX_ENTRIES = 200
DEFAULT_EVICT_BATCH = 50


def scan_cache_key(address: str) -> str:
    return f"scan:{address}"


class ResultCache(ABC):
    """Async key/value store for report dicts with per-entry TTL."""

    @abstractmethod
    async def get(self, key: str) -> dict[str, Any] | None: ...

    @abstractmethod
    async def set(self, key: str, value: dict[str, Any], ttl: int = DEFAULT_TTL_SEC) -> None: ...

    @abstractmethod
    async def evict(self, key: str) -> None: ...

    async def close(self) -> None:
        return None


class MemoryResultCache(ResultCache):
    """In-process dict cache.

    Expiry is checked lazily on read. When the entry count exceeds
    ``max_entries`` the oldest-inserted ``evict_batch`` entries are dropped.
    Values are deep-copied in and out so callers never share state.
    """

    def __init__(
        self,
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        evict_batch: int = DEFAULT_EVICT_BATCH,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[str, tuple[dict[str, Any], float]] = {}
        self._max_entries = max_entries
        self._evict_batch = evict_batch
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        # An empty cache is still a configured cache
        return True

    async def get(self, key: str) -> dict[str, Any] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() > expires_at:
            del self._entries[key]
            return None
        return copy.deepcopy(value)

    async def set(self, key: str, value: dict[str, Any], ttl: int = DEFAULT_TTL_SEC) -> None:
        # Re-insert so an overwrite counts as the newest entry
        self._entries.pop(key, None)
        self._entries[key] = (copy.deepcopy(value), self._clock() + ttl)
        if len(self._entries) > self._max_entries:
            for old_key in list(self._entries)[: self._evict_batch]:
                del self._entries[old_key]
            logger.debug(f"[CACHE] Evicted {self._evict_batch} oldest entries")

    async def evict(self, key: str) -> None:
        self._entries.pop(key, None)


class RedisResultCache(ResultCache):
    """Redis-backed cache: JSON values written with SETEX."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    @classmethod
    def from_url(cls, url: str) -> RedisResultCache:
        return cls(Redis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> dict[str, Any] | None:
        raw = await self._redis.get(key)
        if raw is None:
            return None
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"[CACHE] Dropping corrupt entry {key}")
            await self._redis.delete(key)
            return None
        return value if isinstance(value, dict) else None

    async def set(self, key: str, value: dict[str, Any], ttl: int = DEFAULT_TTL_SEC) -> None:
        await self._redis.setex(key, ttl, json.dumps(value, ensure_ascii=False))

    async def evict(self, key: str) -> None:
        await self._redis.delete(key)

    async def close(self) -> None:
        await self._redis.aclose()

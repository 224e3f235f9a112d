"""
TTL-capable key/value stores for scene payloads.

MemoryCacheStore keeps entries in-process and reads time from an injectable clock, so
tests can move time forward. RedisCacheStore is the production store; any Redis error
surfaces as CacheUnavailableError so callers can degrade to a cache miss.
"""
import json
import logging
import threading
import time
from collections.abc import Callable
from typing import Any, Protocol

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from scenecast.core.errors import CacheUnavailableError

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class CacheStore(Protocol):
    """get/set/delete of JSON-serializable values. Missing or expired keys read as None."""

    async def get(self, key: str) -> Any | None:
        ...

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def close(self) -> None:
        ...


class MemoryCacheStore:
    """In-process store: (json text, expires_at) per key, expiry checked lazily on get."""

    def __init__(self, clock: Clock = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    async def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            raw, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
        # Stored as JSON text so callers never share a mutable payload with the cache
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        raw = json.dumps(value)
        with self._lock:
            self._entries[key] = (raw, self._clock() + ttl_seconds)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    async def close(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisCacheStore:
    """Redis-backed store (SETEX per key). Values are JSON text."""

    def __init__(self, url: str, *, client: aioredis.Redis | None = None):
        self._client = client or aioredis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self._client.get(key)
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(f"Redis GET {key} failed: {e}") from e
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            logger.warning("Discarding non-JSON cache value at %s", key)
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        raw = json.dumps(value)
        try:
            await self._client.setex(key, ttl_seconds, raw)
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(f"Redis SETEX {key} failed: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(f"Redis DEL {key} failed: {e}") from e

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(f"Redis PING failed: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()


def build_cache_store(redis_url: str, clock: Clock = time.monotonic) -> CacheStore:
    """RedisCacheStore when redis_url is set, otherwise MemoryCacheStore."""
    if redis_url:
        logger.info("Scene cache: redis at %s", redis_url.split("@")[-1])
        return RedisCacheStore(redis_url)
    logger.info("Scene cache: in-process memory store (REDIS_URL not set)")
    return MemoryCacheStore(clock=clock)

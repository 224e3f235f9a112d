"""
Scene data with a per-scene TTL cache in front of the registered handler.

Cache keys are <prefix><scene name> (default fsf:scene:<name>). A cache store outage
degrades to a miss: the handler is called and the write is skipped.
"""
import asyncio
import logging
import time
from typing import Any

from scenecast.core.errors import CacheUnavailableError, ConfigurationError, DataSourceError
from scenecast.services.cache import CacheStore
from scenecast.services.data_sources.registry import DataSourceRegistry
from scenecast.services.store import NotificationStore

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX_DEFAULT = "fsf:scene:"


class SceneDataCache:
    def __init__(
        self,
        store: NotificationStore,
        cache_store: CacheStore,
        registry: DataSourceRegistry,
        *,
        key_prefix: str = CACHE_KEY_PREFIX_DEFAULT,
    ):
        self._store = store
        self._cache = cache_store
        self._registry = registry
        self._key_prefix = key_prefix

    def cache_key(self, scene_name: str) -> str:
        return f"{self._key_prefix}{scene_name}"

    async def fetch_scene_data(self, scene_name: str) -> Any:
        """
        Return the payload for a scene, from cache when the scene has cache_ttl > 0 and
        the entry is still live, otherwise from its handler.
        Raises ConfigurationError (missing/disabled scene, unregistered handler) or
        DataSourceError (handler raised).
        """
        scene = await asyncio.to_thread(self._store.get_scene, scene_name)
        if scene is None:
            raise ConfigurationError(f'Scene "{scene_name}" does not exist')
        if not scene.enabled:
            raise ConfigurationError(f'Scene "{scene_name}" is disabled')

        key = self.cache_key(scene_name)
        if scene.cache_ttl > 0:
            cached = await self._cache_get(key)
            if cached is not None:
                logger.debug("Scene %s served from cache", scene_name)
                return cached

        handler = self._registry.get(scene.handler)

        logger.info("Fetching scene data: scene=%s handler=%s", scene_name, scene.handler)
        start = time.monotonic()
        try:
            data = await handler()
        except Exception as e:
            logger.warning("Data source %s for scene %s failed: %s", scene.handler, scene_name, e)
            raise DataSourceError(scene_name, scene.handler, e) from e
        logger.info("Scene %s fetched in %dms", scene_name, (time.monotonic() - start) * 1000)

        if scene.cache_ttl > 0:
            await self._cache_set(key, data, scene.cache_ttl)
        return data

    async def clear_scene_cache(self, scene_name: str) -> None:
        """Evict the cached payload for a scene. No error if nothing is cached."""
        await self._cache.delete(self.cache_key(scene_name))
        logger.info("Scene cache cleared: %s", scene_name)

    async def _cache_get(self, key: str) -> Any | None:
        try:
            return await self._cache.get(key)
        except CacheUnavailableError as e:
            logger.warning("Cache store unavailable, treating %s as a miss: %s", key, e)
            return None

    async def _cache_set(self, key: str, data: Any, ttl_seconds: int) -> None:
        try:
            await self._cache.set(key, data, ttl_seconds)
        except CacheUnavailableError as e:
            logger.warning("Cache store unavailable, %s not cached: %s", key, e)

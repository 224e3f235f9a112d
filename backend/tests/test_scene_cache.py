"""Tests for scene data fetching and the TTL cache in front of it."""

from typing import Any

import pytest

from scenecast.core.errors import CacheUnavailableError, ConfigurationError, DataSourceError
from scenecast.services.data_sources import DataSourceRegistry, SceneDataCache
from scenecast.services.data_sources.builtin import BUILTIN_SOURCES, register_builtin_sources


class BrokenCacheStore:
    """Cache store whose backend is unreachable."""

    async def get(self, key: str) -> Any | None:
        raise CacheUnavailableError("redis down")

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        raise CacheUnavailableError("redis down")

    async def delete(self, key: str) -> None:
        raise CacheUnavailableError("redis down")

    async def close(self) -> None:
        pass


@pytest.fixture
def registry() -> DataSourceRegistry:
    return DataSourceRegistry()


@pytest.fixture
def scene_cache(store, cache_store, registry) -> SceneDataCache:
    return SceneDataCache(store, cache_store, registry)


class TestDataSourceRegistry:
    """Tests for DataSourceRegistry."""

    def test_unregistered_name_raises_configuration_error(self, registry):
        """Test lookup of an unknown handler is an explicit error."""
        with pytest.raises(ConfigurationError, match="not registered"):
            registry.get("missing")

    def test_reregistration_replaces_handler(self, registry, counting_handler):
        """Test registering the same name twice keeps only the latest handler."""
        first, second = counting_handler(), counting_handler()
        registry.register("weibo", first)
        registry.register("weibo", second)
        assert registry.get("weibo") is second
        assert registry.names() == ["weibo"]

    def test_builtin_sources(self, registry):
        """Test built-in sample sources register under their names."""
        register_builtin_sources(registry)
        assert set(registry.names()) == set(BUILTIN_SOURCES)

    @pytest.mark.asyncio
    async def test_builtin_weibo_payload_shape(self):
        """Test the weibo sample source returns a JSON-friendly payload."""
        data = await BUILTIN_SOURCES["weibo"]()
        assert data["source"] == "weibo"
        assert len(data["data"]) == 3


class TestFetchSceneData:
    """Tests for SceneDataCache.fetch_scene_data."""

    @pytest.mark.asyncio
    async def test_missing_scene(self, scene_cache):
        """Test a scene that does not exist fails with ConfigurationError."""
        with pytest.raises(ConfigurationError, match="does not exist"):
            await scene_cache.fetch_scene_data("nope")

    @pytest.mark.asyncio
    async def test_disabled_scene_never_calls_handler(self, scene_cache, registry, add_scene, counting_handler):
        """Test a disabled scene fails before its handler runs."""
        handler = counting_handler()
        registry.register("weibo", handler)
        add_scene("weibo", enabled=False)

        with pytest.raises(ConfigurationError, match="disabled"):
            await scene_cache.fetch_scene_data("weibo")
        assert handler.calls == 0

    @pytest.mark.asyncio
    async def test_unregistered_handler(self, scene_cache, add_scene):
        """Test a scene whose handler was never registered fails with ConfigurationError."""
        add_scene("weibo", handler="weibo_v2")
        with pytest.raises(ConfigurationError, match="weibo_v2"):
            await scene_cache.fetch_scene_data("weibo")

    @pytest.mark.asyncio
    async def test_cached_within_ttl(self, scene_cache, registry, add_scene, counting_handler, clock):
        """Test two fetches within the TTL call the handler once and return the same payload."""
        handler = counting_handler()
        registry.register("weibo", handler)
        add_scene("weibo", cache_ttl=60)

        first = await scene_cache.fetch_scene_data("weibo")
        clock.advance(59)
        second = await scene_cache.fetch_scene_data("weibo")

        assert first == second
        assert handler.calls == 1

    @pytest.mark.asyncio
    async def test_refetch_after_expiry(self, scene_cache, registry, add_scene, counting_handler, clock):
        """Test the handler runs again once the TTL has passed."""
        handler = counting_handler()
        registry.register("weibo", handler)
        add_scene("weibo", cache_ttl=60)

        await scene_cache.fetch_scene_data("weibo")
        clock.advance(61)
        data = await scene_cache.fetch_scene_data("weibo")

        assert handler.calls == 2
        assert data["call"] == 2

    @pytest.mark.asyncio
    async def test_zero_ttl_disables_cache(self, scene_cache, registry, add_scene, counting_handler, cache_store):
        """Test cache_ttl=0 calls the handler every time and stores nothing."""
        handler = counting_handler()
        registry.register("news", handler)
        add_scene("news", cache_ttl=0)

        await scene_cache.fetch_scene_data("news")
        await scene_cache.fetch_scene_data("news")

        assert handler.calls == 2
        assert len(cache_store) == 0

    @pytest.mark.asyncio
    async def test_clear_forces_refetch(self, scene_cache, registry, add_scene, counting_handler):
        """Test clear_scene_cache makes the next fetch call the handler regardless of TTL."""
        handler = counting_handler()
        registry.register("weibo", handler)
        add_scene("weibo", cache_ttl=3600)

        await scene_cache.fetch_scene_data("weibo")
        await scene_cache.clear_scene_cache("weibo")
        await scene_cache.fetch_scene_data("weibo")

        assert handler.calls == 2

    @pytest.mark.asyncio
    async def test_clear_is_idempotent(self, scene_cache):
        """Test clearing a scene with nothing cached is not an error."""
        await scene_cache.clear_scene_cache("never-cached")
        await scene_cache.clear_scene_cache("never-cached")

    @pytest.mark.asyncio
    async def test_handler_failure_is_not_cached(self, scene_cache, registry, add_scene):
        """Test handler errors surface as DataSourceError and the next fetch tries again."""
        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("upstream 502")
            return {"items": []}

        registry.register("weibo", flaky)
        add_scene("weibo", cache_ttl=300)

        with pytest.raises(DataSourceError, match="upstream 502") as exc_info:
            await scene_cache.fetch_scene_data("weibo")
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert exc_info.value.scene_name == "weibo"

        assert await scene_cache.fetch_scene_data("weibo") == {"items": []}
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_cache_key_convention(self, scene_cache, registry, add_scene, counting_handler, cache_store):
        """Test payloads are stored under fsf:scene:<name>."""
        registry.register("weibo", counting_handler({"items": [1]}))
        add_scene("weibo", cache_ttl=300)

        await scene_cache.fetch_scene_data("weibo")

        assert await cache_store.get("fsf:scene:weibo") == {"items": [1]}

    @pytest.mark.asyncio
    async def test_cache_outage_degrades_to_miss(self, store, registry, add_scene, counting_handler):
        """Test an unreachable cache store still serves data straight from the handler."""
        handler = counting_handler()
        registry.register("weibo", handler)
        add_scene("weibo", cache_ttl=300)
        scene_cache = SceneDataCache(store, BrokenCacheStore(), registry)

        first = await scene_cache.fetch_scene_data("weibo")
        second = await scene_cache.fetch_scene_data("weibo")

        assert first["call"] == 1
        assert second["call"] == 2

    @pytest.mark.asyncio
    async def test_cached_payload_is_a_copy(self, scene_cache, registry, add_scene, counting_handler):
        """Test mutating a returned payload does not change what the cache serves."""
        registry.register("weibo", counting_handler({"items": [1, 2]}))
        add_scene("weibo", cache_ttl=300)

        first = await scene_cache.fetch_scene_data("weibo")
        first["items"].append(3)

        assert await scene_cache.fetch_scene_data("weibo") == {"items": [1, 2]}


class TestWeiboEndToEnd:
    """Scene weibo, cache_ttl=300, fetched at t, t+100 and t+301."""

    @pytest.mark.asyncio
    async def test_ttl_window(self, engine, add_scene, counting_handler, clock):
        """Test the handler runs at t and t+301 but not at t+100."""
        handler = counting_handler({"items": [{"title": "a"}, {"title": "b"}]})
        engine.register_data_source_handler("weibo", handler)
        add_scene("weibo", cache_ttl=300)

        first = await engine.fetch_scene_data("weibo")
        assert handler.calls == 1

        clock.advance(100)
        second = await engine.fetch_scene_data("weibo")
        assert second == first
        assert handler.calls == 1

        clock.advance(201)
        third = await engine.fetch_scene_data("weibo")
        assert third == first
        assert handler.calls == 2

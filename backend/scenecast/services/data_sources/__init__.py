"""
Scene data sources: a registry of named async handlers and the TTL cache in front of it.
Handlers are registered once at startup; fetch_scene_data resolves scene -> handler.
"""
from scenecast.services.data_sources.builtin import register_builtin_sources
from scenecast.services.data_sources.registry import DataSourceHandler, DataSourceRegistry
from scenecast.services.data_sources.scene_cache import SceneDataCache

__all__ = [
    "DataSourceHandler",
    "DataSourceRegistry",
    "SceneDataCache",
    "register_builtin_sources",
]

"""Registry of scene data source handlers. One instance per engine; no module-level state."""
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from scenecast.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Zero-argument coroutine function returning a JSON-serializable payload
DataSourceHandler = Callable[[], Awaitable[Any]]


class DataSourceRegistry:
    def __init__(self) -> None:
        self._handlers: dict[str, DataSourceHandler] = {}

    def register(self, name: str, handler: DataSourceHandler) -> None:
        """Register a handler (e.g. 'weibo', 'news'). Registering a name again replaces the old handler."""
        if name in self._handlers:
            logger.info("Replacing data source handler: %s", name)
        self._handlers[name] = handler
        logger.info("Registered data source handler: %s", name)

    def get(self, name: str) -> DataSourceHandler:
        """Get handler by name. Raises ConfigurationError if unknown."""
        handler = self._handlers.get(name)
        if handler is None:
            raise ConfigurationError(
                f'Data source handler "{name}" is not registered. Available: {self.names()}'
            )
        return handler

    def names(self) -> list[str]:
        """List registered handler names."""
        return list(self._handlers.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

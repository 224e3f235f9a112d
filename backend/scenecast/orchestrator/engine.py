"""
NotificationEngine: one explicit instance owning every registry the core needs.

The handler registry, cache store, HTTP client and job table all live on the instance,
so several engines (e.g. one per test) never interfere. This is the only entry point
for the administrative surface: fetch/clear scene data, trigger, broadcast, and
schedule reconciliation after subscription changes.
"""
import asyncio
import logging
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any

import httpx
from apscheduler.schedulers.base import BaseScheduler
from sqlalchemy.orm import sessionmaker

from scenecast.config import Settings, settings as default_settings
from scenecast.core.constants import TRIGGER_CRON
from scenecast.orchestrator.orchestrator import Orchestrator, utcnow
from scenecast.scheduler.manager import ScheduleManager
from scenecast.services.cache import CacheStore, build_cache_store
from scenecast.services.data_sources import DataSourceHandler, DataSourceRegistry, SceneDataCache
from scenecast.services.push import BroadcastSummary, DeliveryEngine, DeliveryResult, PushAdapter
from scenecast.services.push.retry import Sleep
from scenecast.services.store import NotificationStore, SubscriptionRecord

logger = logging.getLogger(__name__)


class NotificationEngine:
    def __init__(
        self,
        store: NotificationStore,
        cache_store: CacheStore,
        *,
        registry: DataSourceRegistry | None = None,
        http_client: httpx.AsyncClient | None = None,
        scheduler: BaseScheduler | None = None,
        sleep: Sleep = asyncio.sleep,
        now: Callable[[], datetime] = utcnow,
        config: Settings = default_settings,
    ):
        self.store = store
        self.cache_store = cache_store
        self.registry = registry or DataSourceRegistry()
        self.scene_cache = SceneDataCache(store, cache_store, self.registry, key_prefix=config.cache_key_prefix)
        self.adapter = PushAdapter(http_client)
        self.delivery = DeliveryEngine(
            self.adapter,
            sleep=sleep,
            base_delay_ms=config.retry_base_delay_ms,
            max_delay_ms=config.retry_max_delay_ms,
        )
        self.orchestrator = Orchestrator(store, self.scene_cache, self.delivery, now=now)
        self.schedules = ScheduleManager(
            store,
            self.orchestrator.trigger_subscription,
            scheduler=scheduler,
            timezone=config.scheduler_timezone,
        )

    @classmethod
    def from_settings(
        cls,
        config: Settings = default_settings,
        *,
        session_factory: sessionmaker | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> "NotificationEngine":
        """Engine on settings.database_url / settings.redis_url."""
        if session_factory is None:
            from scenecast.db.session import SessionLocal

            session_factory = SessionLocal
        return cls(
            NotificationStore(session_factory),
            build_cache_store(config.redis_url, clock=clock),
            config=config,
        )

    # Scene data

    def register_data_source_handler(self, name: str, handler: DataSourceHandler) -> None:
        self.registry.register(name, handler)

    def registered_handlers(self) -> list[str]:
        return self.registry.names()

    async def fetch_scene_data(self, scene_name: str) -> Any:
        return await self.scene_cache.fetch_scene_data(scene_name)

    async def clear_scene_cache(self, scene_name: str) -> None:
        """Call after a scene is updated or deleted."""
        await self.scene_cache.clear_scene_cache(scene_name)

    # Delivery

    async def trigger_subscription(self, subscription_id: int) -> DeliveryResult:
        return await self.orchestrator.trigger_subscription(subscription_id)

    async def broadcast_to_scene(self, scene_name: str) -> BroadcastSummary:
        return await self.orchestrator.broadcast_to_scene(scene_name)

    # Scheduling

    def init_scheduler(self) -> int:
        return self.schedules.init_scheduler()

    def register_job(self, subscription: SubscriptionRecord) -> None:
        self.schedules.register_job(subscription)

    def unregister_job(self, subscription_id: int) -> bool:
        return self.schedules.unregister_job(subscription_id)

    def reload_all_jobs(self) -> int:
        return self.schedules.reload_all_jobs()

    def update_subscription_schedule(self, subscription_id: int) -> bool:
        """
        Reconcile the job for a subscription after create/update/delete: unregister, then
        register again only if it still exists, is enabled and is cron. Returns whether a
        job is active afterwards. Raises ConfigurationError for an enabled cron
        subscription with a bad expression (it stays unscheduled).
        """
        self.schedules.unregister_job(subscription_id)
        subscription = self.store.get_subscription(subscription_id)
        if subscription is None or not subscription.enabled or subscription.trigger_type != TRIGGER_CRON:
            return False
        self.schedules.register_job(subscription)
        return True

    # Lifecycle

    def start(self) -> int:
        """Load cron subscriptions and start the scheduler. Must run inside the event loop."""
        registered = self.init_scheduler()
        self.schedules.start()
        return registered

    async def shutdown(self) -> None:
        self.schedules.shutdown()
        await self.adapter.aclose()
        await self.cache_store.close()

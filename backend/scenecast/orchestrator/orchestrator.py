"""
Orchestrator: resolves a subscription or scene, pulls scene data once, delivers it.

trigger_subscription pushes to one subscription and always stamps last_triggered_at.
broadcast_to_scene fans out to every enabled subscription of a scene concurrently; each
subscriber's failure is counted, never raised, and only successful deliveries stamp
last_triggered_at.
"""
import asyncio
import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone

from scenecast.core.errors import ConfigurationError
from scenecast.services.data_sources import SceneDataCache
from scenecast.services.push import BroadcastSummary, DeliveryEngine, DeliveryResult, PushTarget
from scenecast.services.store import NotificationStore, SubscriptionRecord

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Orchestrator:
    def __init__(
        self,
        store: NotificationStore,
        scene_cache: SceneDataCache,
        delivery: DeliveryEngine,
        *,
        now: Callable[[], datetime] = utcnow,
    ):
        self._store = store
        self._scene_cache = scene_cache
        self._delivery = delivery
        self._now = now

    async def trigger_subscription(self, subscription_id: int) -> DeliveryResult:
        """
        Push the current scene data to one subscription (with retries).
        Raises ConfigurationError for a missing/disabled subscription or scene, and
        DataSourceError when the scene handler fails. A failed delivery is returned, not raised.
        """
        start = time.monotonic()
        subscription = await asyncio.to_thread(self._store.get_subscription, subscription_id)
        if subscription is None:
            raise ConfigurationError(f"Subscription {subscription_id} does not exist")
        if not subscription.enabled:
            raise ConfigurationError(f"Subscription {subscription_id} is disabled")

        logger.info(
            "Triggering subscription %s (%s): scene=%s target=%s",
            subscription.id,
            subscription.name,
            subscription.scene_name,
            subscription.target_type,
        )
        data = await self._scene_cache.fetch_scene_data(subscription.scene_name)
        try:
            target = PushTarget.from_subscription(subscription)
            result = await self._deliver(subscription, target, data)
        finally:
            await asyncio.to_thread(self._store.mark_triggered, subscription.id, self._now())

        duration_ms = int((time.monotonic() - start) * 1000)
        if result.ok:
            logger.info(
                "Subscription %s delivered: status=%s duration=%sms push=%sms",
                subscription.id,
                result.status,
                duration_ms,
                result.duration_ms,
            )
        else:
            logger.error(
                "Subscription %s failed: status=%s duration=%sms push=%sms body=%s",
                subscription.id,
                result.status,
                duration_ms,
                result.duration_ms,
                result.body,
            )
        return result

    async def broadcast_to_scene(self, scene_name: str) -> BroadcastSummary:
        """
        Deliver one scene's data to all of its enabled subscriptions concurrently.
        Raises ConfigurationError if the scene does not exist; after that, never raises
        for individual subscribers.
        """
        start = time.monotonic()
        scene = await asyncio.to_thread(self._store.get_scene, scene_name)
        if scene is None:
            raise ConfigurationError(f'Scene "{scene_name}" does not exist')

        subscriptions = await asyncio.to_thread(self._store.list_enabled_subscriptions, scene_name)
        if not subscriptions:
            logger.info("Scene %s has no enabled subscriptions; skipping broadcast", scene_name)
            return BroadcastSummary()

        logger.info("Broadcasting scene %s to %s subscriptions", scene_name, len(subscriptions))
        data = await self._scene_cache.fetch_scene_data(scene_name)

        outcomes = await asyncio.gather(*(self._broadcast_one(sub, data) for sub in subscriptions))
        success = sum(1 for ok in outcomes if ok)
        summary = BroadcastSummary(total=len(subscriptions), success=success, failed=len(subscriptions) - success)
        logger.info(
            "Broadcast of %s done: total=%s success=%s failed=%s duration=%sms",
            scene_name,
            summary.total,
            summary.success,
            summary.failed,
            int((time.monotonic() - start) * 1000),
        )
        return summary

    async def _broadcast_one(self, subscription: SubscriptionRecord, data) -> bool:
        try:
            target = PushTarget.from_subscription(subscription)
            result = await self._deliver(subscription, target, data)
            if not result.ok:
                logger.error(
                    "Broadcast push to subscription %s failed: status=%s body=%s",
                    subscription.id,
                    result.status,
                    result.body,
                )
                return False
        except Exception as e:
            logger.error("Broadcast push to subscription %s raised: %s", subscription.id, e, exc_info=True)
            return False
        try:
            await asyncio.to_thread(self._store.mark_triggered, subscription.id, self._now())
        except Exception as e:
            logger.warning("Could not stamp last_triggered_at for subscription %s: %s", subscription.id, e)
        return True

    async def _deliver(self, subscription: SubscriptionRecord, target: PushTarget, data) -> DeliveryResult:
        return await self._delivery.push_with_retry(
            target,
            data,
            subscription.template,
            subscription.timeout * 1000,
            subscription.retry_count,
        )

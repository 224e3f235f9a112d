"""
Cron subscriptions on APScheduler: one job per subscription id.

register_job replaces any existing job for the same id, so a subscription is never
scheduled twice. A tick calls the injected trigger coroutine and logs (never raises)
failures so the job keeps firing. The scheduler instance is injectable: tests pass an
unstarted AsyncIOScheduler and call run_tick directly instead of waiting on timers.
"""
import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.cron import CronTrigger

from scenecast.core.constants import CRON_FIELD_COUNTS, JOB_MISFIRE_GRACE_SECONDS, subscription_job_id
from scenecast.core.errors import ConfigurationError, SchedulingError
from scenecast.services.store import NotificationStore, SubscriptionRecord

logger = logging.getLogger(__name__)

TriggerFn = Callable[[int], Awaitable[Any]]


def build_cron_trigger(expression: str | None, timezone: str = "UTC") -> CronTrigger:
    """
    5 fields: minute hour day month day_of_week (crontab).
    6 fields: second minute hour day month day_of_week.
    Raises ConfigurationError for a missing expression, a wrong field count or values
    the trigger rejects.
    """
    if not expression or not expression.strip():
        raise ConfigurationError("Missing cron expression")
    fields = expression.split()
    if len(fields) not in CRON_FIELD_COUNTS:
        raise ConfigurationError(
            f"Invalid cron expression {expression!r}: expected 5 or 6 fields, got {len(fields)}"
        )
    try:
        if len(fields) == 5:
            return CronTrigger.from_crontab(" ".join(fields), timezone=timezone)
        second, minute, hour, day, month, day_of_week = fields
        return CronTrigger(
            second=second,
            minute=minute,
            hour=hour,
            day=day,
            month=month,
            day_of_week=day_of_week,
            timezone=timezone,
        )
    except ValueError as e:
        raise ConfigurationError(f"Invalid cron expression {expression!r}: {e}") from e


def next_fire_time(trigger: CronTrigger) -> datetime | None:
    return trigger.get_next_fire_time(None, datetime.now(trigger.timezone))


class ScheduleManager:
    def __init__(
        self,
        store: NotificationStore,
        trigger: TriggerFn,
        *,
        scheduler: BaseScheduler | None = None,
        timezone: str = "UTC",
    ):
        self._store = store
        self._trigger = trigger
        self._timezone = timezone
        self._scheduler = scheduler or AsyncIOScheduler(timezone=timezone)
        self._jobs: dict[int, Job] = {}
        # Admin callers may register/unregister from worker threads while ticks run on the loop
        self._lock = threading.RLock()

    @property
    def scheduler(self) -> BaseScheduler:
        return self._scheduler

    def init_scheduler(self) -> int:
        """Register every enabled cron subscription. Returns how many were registered."""
        subscriptions = self._store.list_enabled_cron_subscriptions()
        logger.info("Loading %s cron subscriptions", len(subscriptions))
        registered = 0
        for subscription in subscriptions:
            try:
                self.register_job(subscription)
                registered += 1
            except Exception as e:
                err = SchedulingError(subscription.id, e)
                logger.error("%s", err)
        logger.info("Scheduler initialized: %s/%s cron subscriptions registered", registered, len(subscriptions))
        return registered

    def register_job(self, subscription: SubscriptionRecord) -> Job:
        """(Re)schedule a subscription. Raises ConfigurationError for a bad cron; nothing changes then."""
        cron_trigger = build_cron_trigger(subscription.cron, self._timezone)
        with self._lock:
            self.unregister_job(subscription.id)
            job = self._scheduler.add_job(
                self.run_tick,
                cron_trigger,
                args=[subscription.id],
                id=subscription_job_id(subscription.id),
                name=f"{subscription.scene_name}:{subscription.name}",
                replace_existing=True,
                coalesce=True,
                max_instances=1,
                misfire_grace_time=JOB_MISFIRE_GRACE_SECONDS,
            )
            self._jobs[subscription.id] = job
        logger.info(
            "Scheduled subscription %s (%s) with cron %r", subscription.id, subscription.name, subscription.cron
        )
        self._record_next_fire(subscription.id, cron_trigger)
        return job

    def unregister_job(self, subscription_id: int) -> bool:
        """Stop future ticks for a subscription. Returns False if it had no job."""
        with self._lock:
            job = self._jobs.pop(subscription_id, None)
            if job is None:
                return False
            try:
                self._scheduler.remove_job(job.id)
            except JobLookupError:
                logger.debug("Job %s already gone from scheduler", job.id)
        logger.info("Unscheduled subscription %s", subscription_id)
        return True

    def reload_all_jobs(self) -> int:
        """Drop every tracked job and load cron subscriptions from the store again."""
        with self._lock:
            for subscription_id in list(self._jobs):
                self.unregister_job(subscription_id)
            self._jobs.clear()
        return self.init_scheduler()

    def active_job_count(self) -> int:
        with self._lock:
            return len(self._jobs)

    def active_job_ids(self) -> list[int]:
        with self._lock:
            return sorted(self._jobs)

    def has_job(self, subscription_id: int) -> bool:
        with self._lock:
            return subscription_id in self._jobs

    async def run_tick(self, subscription_id: int) -> None:
        """Body of every scheduled job: trigger the subscription, log and swallow errors."""
        logger.info("Cron tick for subscription %s", subscription_id)
        try:
            await self._trigger(subscription_id)
        except Exception as e:
            logger.exception("Cron tick for subscription %s failed: %s", subscription_id, e)
        with self._lock:
            job = self._jobs.get(subscription_id)
        if job is not None:
            await asyncio.to_thread(self._record_next_fire, subscription_id, job.trigger)

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("Scheduler started with %s jobs", self.active_job_count())

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")

    def _record_next_fire(self, subscription_id: int, trigger: CronTrigger) -> None:
        try:
            self._store.set_next_trigger_at(subscription_id, next_fire_time(trigger))
        except Exception as e:
            logger.warning("Could not record next_trigger_at for subscription %s: %s", subscription_id, e)

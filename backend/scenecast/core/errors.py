"""
Error taxonomy for the notification engine.

Configuration problems are exceptions the caller must handle. Delivery failures are
not exceptions: they come back as DeliveryResult(ok=False).
"""
from __future__ import annotations


class NotifyError(Exception):
    """Base class for every error raised by the engine."""


class ConfigurationError(NotifyError):
    """Scene/subscription missing or disabled, handler unregistered, bad cron expression."""


class DataSourceError(NotifyError):
    """A registered data source handler raised. Never cached."""

    def __init__(self, scene_name: str, handler_name: str, cause: BaseException):
        self.scene_name = scene_name
        self.handler_name = handler_name
        super().__init__(f'Handler "{handler_name}" for scene "{scene_name}" failed: {cause}')


class SchedulingError(NotifyError):
    """One subscription could not be registered while loading the scheduler."""

    def __init__(self, subscription_id: int, cause: BaseException):
        self.subscription_id = subscription_id
        super().__init__(f"Subscription {subscription_id} could not be scheduled: {cause}")


class CacheUnavailableError(NotifyError):
    """The cache store could not be reached."""

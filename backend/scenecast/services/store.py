"""
Read/write contract the engine needs from the relational store.

Rows come back as detached plain records so callers never hold a session. JSON text
columns (target_auth, trigger_config) are parsed defensively: malformed JSON yields
a safe default instead of an error.
"""
import json
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from scenecast.core.constants import DEFAULT_RETRY_COUNT, DEFAULT_TIMEOUT_SECONDS, TRIGGER_CRON
from scenecast.models.scene import Scene
from scenecast.models.subscription import Subscription

logger = logging.getLogger(__name__)


def parse_json_safely(raw: str | None, default: Any) -> Any:
    """json.loads(raw), or default when raw is empty or not valid JSON."""
    if not raw:
        return default
    try:
        return json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        return default


@dataclass(frozen=True)
class SceneRecord:
    name: str
    handler: str
    cache_ttl: int = 0
    enabled: bool = True
    description: str | None = None


@dataclass(frozen=True)
class SubscriptionRecord:
    id: int
    scene_name: str
    name: str
    target_type: str
    target_url: str
    trigger_type: str
    target_auth: dict[str, Any] | None = None
    trigger_config: dict[str, Any] = field(default_factory=dict)
    template: str | None = None
    enabled: bool = True
    retry_count: int = DEFAULT_RETRY_COUNT
    timeout: int = DEFAULT_TIMEOUT_SECONDS
    last_triggered_at: datetime | None = None
    next_trigger_at: datetime | None = None

    @property
    def cron(self) -> str | None:
        value = self.trigger_config.get("cron")
        return value if isinstance(value, str) else None


def scene_record(row: Scene) -> SceneRecord:
    return SceneRecord(
        name=row.name,
        handler=row.handler,
        cache_ttl=row.cache_ttl or 0,
        enabled=bool(row.enabled),
        description=row.description,
    )


def subscription_record(row: Subscription) -> SubscriptionRecord:
    auth = parse_json_safely(row.target_auth, None)
    config = parse_json_safely(row.trigger_config, {})
    return SubscriptionRecord(
        id=row.id,
        scene_name=row.scene_name,
        name=row.name,
        target_type=row.target_type,
        target_url=row.target_url,
        trigger_type=row.trigger_type,
        target_auth=auth if isinstance(auth, dict) else None,
        trigger_config=config if isinstance(config, dict) else {},
        template=row.template or None,
        enabled=bool(row.enabled),
        retry_count=row.retry_count if row.retry_count is not None else DEFAULT_RETRY_COUNT,
        timeout=row.timeout if row.timeout is not None else DEFAULT_TIMEOUT_SECONDS,
        last_triggered_at=row.last_triggered_at,
        next_trigger_at=row.next_trigger_at,
    )


class NotificationStore:
    """
    Scene and subscription reads plus the two timestamp writes the engine performs.

    Methods are synchronous; async callers run them with asyncio.to_thread. Session use
    is serialized because an in-memory SQLite database shares one connection.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._lock = threading.Lock()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self._lock:
            db = self._session_factory()
            try:
                yield db
            finally:
                db.close()

    def get_scene(self, name: str) -> SceneRecord | None:
        with self._session() as db:
            row = db.query(Scene).filter(Scene.name == name).first()
            return scene_record(row) if row else None

    def get_subscription(self, subscription_id: int) -> SubscriptionRecord | None:
        with self._session() as db:
            row = db.query(Subscription).filter(Subscription.id == subscription_id).first()
            return subscription_record(row) if row else None

    def list_enabled_subscriptions(self, scene_name: str) -> list[SubscriptionRecord]:
        with self._session() as db:
            rows = (
                db.query(Subscription)
                .filter(Subscription.scene_name == scene_name, Subscription.enabled.is_(True))
                .order_by(Subscription.id.asc())
                .all()
            )
            return [subscription_record(r) for r in rows]

    def list_enabled_cron_subscriptions(self) -> list[SubscriptionRecord]:
        with self._session() as db:
            rows = (
                db.query(Subscription)
                .filter(Subscription.enabled.is_(True), Subscription.trigger_type == TRIGGER_CRON)
                .order_by(Subscription.id.asc())
                .all()
            )
            return [subscription_record(r) for r in rows]

    def mark_triggered(self, subscription_id: int, when: datetime) -> None:
        """Set last_triggered_at. No-op if the subscription was deleted meanwhile."""
        self._update(subscription_id, last_triggered_at=when)

    def set_next_trigger_at(self, subscription_id: int, when: datetime | None) -> None:
        self._update(subscription_id, next_trigger_at=when)

    def _update(self, subscription_id: int, **values: Any) -> None:
        with self._session() as db:
            try:
                updated = (
                    db.query(Subscription)
                    .filter(Subscription.id == subscription_id)
                    .update(values, synchronize_session=False)
                )
                db.commit()
            except Exception:
                db.rollback()
                raise
        if not updated:
            logger.debug("Subscription %s not found; skipped update of %s", subscription_id, list(values))

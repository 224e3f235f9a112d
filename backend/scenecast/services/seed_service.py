"""
Default scenes (weibo, news) and optional sample subscriptions for a fresh database.
Idempotent: existing rows (matched by name) are left untouched.
"""
import json
import logging

from sqlalchemy.orm import Session

from scenecast.core.constants import TRIGGER_CRON, TRIGGER_MANUAL
from scenecast.models.scene import Scene
from scenecast.models.subscription import Subscription

logger = logging.getLogger(__name__)

DEFAULT_SCENES = (
    {"name": "weibo", "description": "Weibo hot search list", "handler": "weibo", "cache_ttl": 300},
    {"name": "news", "description": "News headlines", "handler": "news", "cache_ttl": 600},
)


def _sample_subscriptions(webhook_url: str) -> list[dict]:
    return [
        {
            "scene_name": "weibo",
            "name": "feishu-weibo-cron",
            "target_type": "feishu",
            "target_url": webhook_url,
            "trigger_type": TRIGGER_CRON,
            "trigger_config": json.dumps({"cron": "*/30 * * * *"}),
        },
        {
            "scene_name": "news",
            "name": "http-news-manual",
            "target_type": "http",
            "target_url": webhook_url,
            "trigger_type": TRIGGER_MANUAL,
            "template": json.dumps({"title": "Top headline", "headline": "{{data.0.title}}"}),
        },
    ]


def seed_defaults(db: Session, *, sample_webhook_url: str | None = None) -> dict[str, list[str]]:
    """Create missing default scenes (and sample subscriptions when a webhook URL is given)."""
    created: dict[str, list[str]] = {"scenes": [], "subscriptions": []}
    for defaults in DEFAULT_SCENES:
        if db.query(Scene).filter(Scene.name == defaults["name"]).first():
            logger.info("Scene exists: %s", defaults["name"])
            continue
        db.add(Scene(enabled=True, **defaults))
        created["scenes"].append(defaults["name"])
    db.flush()

    if sample_webhook_url:
        for defaults in _sample_subscriptions(sample_webhook_url):
            if db.query(Subscription).filter(Subscription.name == defaults["name"]).first():
                logger.info("Subscription exists: %s", defaults["name"])
                continue
            db.add(Subscription(enabled=True, **defaults))
            created["subscriptions"].append(defaults["name"])
    db.commit()
    logger.info("Seeded scenes=%s subscriptions=%s", created["scenes"], created["subscriptions"])
    return created

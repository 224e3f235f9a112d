"""Tests for default scene seeding."""

from scenecast.services.seed_service import DEFAULT_SCENES, seed_defaults


def test_seeds_default_scenes(session_factory, store):
    db = session_factory()
    try:
        created = seed_defaults(db)
    finally:
        db.close()

    assert created == {"scenes": ["weibo", "news"], "subscriptions": []}
    for defaults in DEFAULT_SCENES:
        assert store.get_scene(defaults["name"]).cache_ttl == defaults["cache_ttl"]


def test_seeding_is_idempotent(session_factory):
    """Test running the seed twice creates nothing the second time."""
    url = "https://hooks.example.com/ok"
    db = session_factory()
    try:
        first = seed_defaults(db, sample_webhook_url=url)
        second = seed_defaults(db, sample_webhook_url=url)
    finally:
        db.close()

    assert first["subscriptions"] == ["feishu-weibo-cron", "http-news-manual"]
    assert second == {"scenes": [], "subscriptions": []}


def test_sample_cron_subscription_is_loadable(session_factory, store):
    db = session_factory()
    try:
        seed_defaults(db, sample_webhook_url="https://hooks.example.com/ok")
    finally:
        db.close()

    [cron] = store.list_enabled_cron_subscriptions()
    assert cron.name == "feishu-weibo-cron"
    assert cron.cron == "*/30 * * * *"

"""
Single source of truth for database tables that exist after migrations.

Use these names when writing raw SQL (e.g. TRUNCATE in scripts).
"""
# All tables that exist in the DB. Must match models and alembic/versions.
ALL_TABLE_NAMES = (
    "notification_scenes",
    "notification_subscriptions",
)

"""
Centralized constants for the scheduler and push delivery (Encapsulate What Changes).

Change job ids or defaults here instead of scattering literals across modules.
"""

# Scheduler job ids: one job per subscription id
SUBSCRIPTION_JOB_ID_PREFIX = "subscription"

# Cron expressions: 5 fields (min hour dom mon dow) or 6 with seconds first
CRON_FIELD_COUNTS = (5, 6)

# Seconds a late tick may still run (e.g. event loop was busy); older ticks are dropped
JOB_MISFIRE_GRACE_SECONDS = 60

# Subscription defaults (match migration server defaults)
DEFAULT_RETRY_COUNT = 3
DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_CACHE_TTL_SECONDS = 300

# Trigger types stored in notification_subscriptions.trigger_type (passive: pushed only by broadcast)
TRIGGER_CRON = "cron"
TRIGGER_MANUAL = "manual"


def subscription_job_id(subscription_id: int) -> str:
    return f"{SUBSCRIPTION_JOB_ID_PREFIX}:{subscription_id}"

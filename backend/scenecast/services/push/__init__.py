"""
Push delivery: channel adapters (http, feishu, dingtalk, wechat_work) and retry.
Every channel returns the same DeliveryResult so callers never branch on channel type.
"""
from scenecast.services.push.adapters import PushAdapter, build_body, build_headers
from scenecast.services.push.retry import DeliveryEngine, backoff_delay_ms
from scenecast.services.push.template import apply_template
from scenecast.services.push.types import BroadcastSummary, DeliveryResult, PushTarget, TargetAuth, TargetType

__all__ = [
    "BroadcastSummary",
    "DeliveryEngine",
    "DeliveryResult",
    "PushAdapter",
    "PushTarget",
    "TargetAuth",
    "TargetType",
    "apply_template",
    "backoff_delay_ms",
    "build_body",
    "build_headers",
]

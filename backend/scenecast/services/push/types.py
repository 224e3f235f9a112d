"""Push target and delivery result types. Same shape for every channel."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from scenecast.core.errors import ConfigurationError


class TargetType(str, Enum):
    HTTP = "http"  # raw JSON body, no envelope
    FEISHU = "feishu"
    DINGTALK = "dingtalk"
    WECHAT_WORK = "wechat_work"


@dataclass(frozen=True)
class TargetAuth:
    type: str  # bearer | custom
    token: str | None = None
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> "TargetAuth | None":
        """Build from the parsed target_auth column; anything unrecognized means no auth."""
        if not isinstance(raw, dict) or raw.get("type") not in ("bearer", "custom"):
            return None
        headers = raw.get("headers")
        return cls(
            type=raw["type"],
            token=raw.get("token") if isinstance(raw.get("token"), str) else None,
            headers={str(k): str(v) for k, v in headers.items()} if isinstance(headers, dict) else {},
        )


@dataclass(frozen=True)
class PushTarget:
    type: TargetType
    url: str
    auth: TargetAuth | None = None

    @classmethod
    def from_subscription(cls, subscription) -> "PushTarget":
        """Derive the target from a SubscriptionRecord. Raises ConfigurationError on an unknown channel."""
        try:
            target_type = TargetType(subscription.target_type)
        except ValueError:
            raise ConfigurationError(
                f"Subscription {subscription.id} has unknown target type {subscription.target_type!r}"
            ) from None
        return cls(
            type=target_type,
            url=subscription.target_url,
            auth=TargetAuth.from_dict(subscription.target_auth),
        )


@dataclass(frozen=True)
class DeliveryResult:
    ok: bool
    status: int  # HTTP status; 0 when the request never completed
    body: str  # response text, or the error message for transport failures
    duration_ms: int = 0


@dataclass(frozen=True)
class BroadcastSummary:
    total: int = 0
    success: int = 0
    failed: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"total": self.total, "success": self.success, "failed": self.failed}

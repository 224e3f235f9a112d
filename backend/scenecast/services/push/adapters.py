"""
Push adapters: one delivery attempt to an HTTP / Feishu / DingTalk / WeCom webhook.

The payload is templated, wrapped in the channel's envelope (unless it already has the
envelope's marker field) and POSTed as JSON with a hard timeout. Transport failures are
returned as DeliveryResult(ok=False, status=0) instead of raised.
"""
import asyncio
import json
import logging
import time
from typing import Any

import httpx

from scenecast.services.push.template import apply_template
from scenecast.services.push.types import DeliveryResult, PushTarget, TargetAuth, TargetType

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30_000


def _as_text(data: Any) -> str:
    return data if isinstance(data, str) else json.dumps(data, indent=2, ensure_ascii=False)


def wrap_feishu(data: Any) -> Any:
    """Feishu bot message; marker field msg_type."""
    if isinstance(data, dict) and "msg_type" in data:
        return data
    return {"msg_type": "text", "content": {"text": _as_text(data)}}


def wrap_dingtalk(data: Any) -> Any:
    """DingTalk robot message; marker field msgtype."""
    if isinstance(data, dict) and "msgtype" in data:
        return data
    return {"msgtype": "text", "text": {"content": _as_text(data)}}


def wrap_wechat_work(data: Any) -> Any:
    """WeCom (WeChat Work) group robot message; marker field msgtype."""
    if isinstance(data, dict) and "msgtype" in data:
        return data
    return {"msgtype": "text", "text": {"content": _as_text(data)}}


ENVELOPES = {
    TargetType.FEISHU: wrap_feishu,
    TargetType.DINGTALK: wrap_dingtalk,
    TargetType.WECHAT_WORK: wrap_wechat_work,
}


def build_body(target_type: TargetType, data: Any, template: str | None = None) -> Any:
    """Templated payload wrapped for the channel. HTTP targets get the payload as-is."""
    payload = apply_template(template, data) if template else data
    wrap = ENVELOPES.get(target_type)
    return wrap(payload) if wrap else payload


def build_headers(auth: TargetAuth | None) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if auth is None:
        return headers
    if auth.type == "bearer" and auth.token:
        headers["Authorization"] = f"Bearer {auth.token}"
    elif auth.type == "custom" and auth.headers:
        headers.update(auth.headers)
    return headers


class PushAdapter:
    """Sends one POST per call on a shared httpx.AsyncClient."""

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._client = client or httpx.AsyncClient(follow_redirects=True)
        self._owns_client = client is None

    async def push_to_target(
        self,
        target: PushTarget,
        data: Any,
        template: str | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> DeliveryResult:
        start = time.monotonic()
        timeout_s = max(timeout_ms, 1) / 1000
        try:
            body = build_body(target.type, data, template)
            content = json.dumps(body, ensure_ascii=False).encode("utf-8")
            headers = build_headers(target.auth)
            logger.info("Pushing to %s target %s", target.type.value, target.url)
            resp = await asyncio.wait_for(
                self._client.post(target.url, content=content, headers=headers, timeout=timeout_s),
                timeout=timeout_s,
            )
        except asyncio.TimeoutError:
            return self._failed(target, f"Request timed out after {timeout_ms}ms", start)
        except (httpx.HTTPError, httpx.InvalidURL, OSError, TypeError, ValueError) as e:
            return self._failed(target, str(e) or type(e).__name__, start)

        duration_ms = int((time.monotonic() - start) * 1000)
        result = DeliveryResult(ok=resp.is_success, status=resp.status_code, body=resp.text, duration_ms=duration_ms)
        if result.ok:
            logger.info("Push to %s ok: status=%s duration=%sms", target.type.value, result.status, duration_ms)
        else:
            logger.warning(
                "Push to %s returned %s in %sms: %s", target.type.value, result.status, duration_ms, result.body
            )
        return result

    def _failed(self, target: PushTarget, message: str, start: float) -> DeliveryResult:
        duration_ms = int((time.monotonic() - start) * 1000)
        logger.error("Push to %s %s failed after %sms: %s", target.type.value, target.url, duration_ms, message)
        return DeliveryResult(ok=False, status=0, body=message, duration_ms=duration_ms)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

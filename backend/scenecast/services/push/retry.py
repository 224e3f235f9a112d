"""Push with bounded retries and capped exponential backoff."""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from scenecast.services.push.adapters import DEFAULT_TIMEOUT_MS, PushAdapter
from scenecast.services.push.types import DeliveryResult, PushTarget

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]

BASE_DELAY_MS = 1000
MAX_DELAY_MS = 10000


def backoff_delay_ms(attempt: int, base_delay_ms: int = BASE_DELAY_MS, max_delay_ms: int = MAX_DELAY_MS) -> int:
    """Delay before attempt N (N >= 1): base * 2^(N-1), capped at max."""
    return min(base_delay_ms * (2 ** (attempt - 1)), max_delay_ms)


class DeliveryEngine:
    def __init__(
        self,
        adapter: PushAdapter,
        *,
        sleep: Sleep = asyncio.sleep,
        base_delay_ms: int = BASE_DELAY_MS,
        max_delay_ms: int = MAX_DELAY_MS,
    ):
        self._adapter = adapter
        self._sleep = sleep
        self._base_delay_ms = base_delay_ms
        self._max_delay_ms = max_delay_ms

    async def push_with_retry(
        self,
        target: PushTarget,
        data: Any,
        template: str | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_retries: int = 3,
    ) -> DeliveryResult:
        """
        Up to max_retries + 1 sequential attempts; returns the first ok result or the
        last failed one. Never raises for delivery failures.
        """
        max_retries = max(max_retries, 0)
        result: DeliveryResult | None = None
        for attempt in range(max_retries + 1):
            if attempt > 0:
                delay_ms = backoff_delay_ms(attempt, self._base_delay_ms, self._max_delay_ms)
                logger.info("Retrying push to %s (attempt %s/%s) in %sms", target.url, attempt, max_retries, delay_ms)
                await self._sleep(delay_ms / 1000)

            result = await self._adapter.push_to_target(target, data, template, timeout_ms)
            if result.ok:
                if attempt > 0:
                    logger.info("Push to %s succeeded on retry %s", target.url, attempt)
                return result

        logger.error("Push to %s failed after %s attempts (last status %s)", target.url, max_retries + 1, result.status)
        return result

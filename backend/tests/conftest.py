"""Shared test fixtures and factories."""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from scenecast.db.session import make_session_factory
from scenecast.models.scene import Scene
from scenecast.models.subscription import Subscription
from scenecast.orchestrator.engine import NotificationEngine
from scenecast.services.cache import MemoryCacheStore
from scenecast.services.store import NotificationStore

# =============================================================================
# Time
# =============================================================================


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Drop-in for asyncio.sleep that returns immediately and records the delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def session_factory():
    return make_session_factory("sqlite://", create_tables=True)


@pytest.fixture
def store(session_factory) -> NotificationStore:
    return NotificationStore(session_factory)


@pytest.fixture
def add_scene(session_factory) -> Callable[..., None]:
    def _add(name: str = "weibo", *, handler: str | None = None, cache_ttl: int = 300, enabled: bool = True):
        db = session_factory()
        try:
            db.add(Scene(name=name, handler=handler or name, cache_ttl=cache_ttl, enabled=enabled))
            db.commit()
        finally:
            db.close()

    return _add


@pytest.fixture
def add_subscription(session_factory) -> Callable[..., int]:
    def _add(
        scene_name: str = "weibo",
        *,
        name: str = "sub",
        target_type: str = "http",
        target_url: str = "https://hooks.example.com/ok",
        target_auth: dict[str, Any] | str | None = None,
        trigger_type: str = "manual",
        cron: str | None = None,
        template: str | None = None,
        enabled: bool = True,
        retry_count: int = 0,
        timeout: int = 5,
    ) -> int:
        if isinstance(target_auth, dict):
            target_auth = json.dumps(target_auth)
        db = session_factory()
        try:
            row = Subscription(
                scene_name=scene_name,
                name=name,
                target_type=target_type,
                target_url=target_url,
                target_auth=target_auth,
                trigger_type=trigger_type,
                trigger_config=json.dumps({"cron": cron}) if cron is not None else None,
                template=template,
                enabled=enabled,
                retry_count=retry_count,
                timeout=timeout,
            )
            db.add(row)
            db.commit()
            return row.id
        finally:
            db.close()

    return _add


# =============================================================================
# HTTP
# =============================================================================


class FakeWebhooks:
    """
    httpx.MockTransport handler keyed by URL path.

    Paths starting with /ok answer 200, /fail answer 500, /flaky-N fail N times then
    answer 200, /down raise a connection error. Every request is recorded.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._flaky_seen: dict[str, int] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith("/ok"):
            return httpx.Response(200, text="ok")
        if path.startswith("/fail"):
            return httpx.Response(500, text="boom")
        if path.startswith("/flaky-"):
            failures = int(path.rsplit("-", 1)[1])
            seen = self._flaky_seen.get(path, 0)
            self._flaky_seen[path] = seen + 1
            if seen < failures:
                return httpx.Response(503, text=f"unavailable {seen + 1}")
            return httpx.Response(200, text="recovered")
        if path.startswith("/down"):
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(404, text="not found")

    def calls_to(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path == path)

    def bodies(self) -> list[Any]:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def webhooks() -> FakeWebhooks:
    return FakeWebhooks()


@pytest.fixture
def http_client(webhooks) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(webhooks))


# =============================================================================
# Engine
# =============================================================================


@pytest.fixture
def cache_store(clock) -> MemoryCacheStore:
    return MemoryCacheStore(clock=clock)


@pytest.fixture
def engine(store, cache_store, http_client, sleep) -> NotificationEngine:
    return NotificationEngine(
        store,
        cache_store,
        http_client=http_client,
        scheduler=AsyncIOScheduler(timezone="UTC"),
        sleep=sleep,
    )


@pytest.fixture
def counting_handler() -> Callable[..., Any]:
    """Factory for a data source handler that counts its calls."""

    def _make(payload: Any = None):
        async def handler():
            handler.calls += 1
            return payload if payload is not None else {"items": [{"title": "first"}], "call": handler.calls}

        handler.calls = 0
        return handler

    return _make

"""
Sample data sources shipped with the engine: weibo hot search and news headlines.

Both return static sample data; replace the body with a real API call when wiring a
production source.
"""
from datetime import datetime, timezone
from typing import Any

from scenecast.services.data_sources.registry import DataSourceRegistry


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def fetch_weibo_hot_search() -> dict[str, Any]:
    return {
        "source": "weibo",
        "updateTime": _now_iso(),
        "data": [
            {"rank": 1, "title": "Hot topic 1", "hotValue": 1234567, "url": "https://weibo.com/1"},
            {"rank": 2, "title": "Hot topic 2", "hotValue": 987654, "url": "https://weibo.com/2"},
            {"rank": 3, "title": "Hot topic 3", "hotValue": 654321, "url": "https://weibo.com/3"},
        ],
    }


async def fetch_news_headlines() -> dict[str, Any]:
    now = _now_iso()
    return {
        "source": "news",
        "updateTime": now,
        "data": [
            {"title": "Headline 1", "summary": "Summary 1", "url": "https://news.example.com/1", "publishTime": now},
            {"title": "Headline 2", "summary": "Summary 2", "url": "https://news.example.com/2", "publishTime": now},
            {"title": "Headline 3", "summary": "Summary 3", "url": "https://news.example.com/3", "publishTime": now},
        ],
    }


BUILTIN_SOURCES = {
    "weibo": fetch_weibo_hot_search,
    "news": fetch_news_headlines,
}


def register_builtin_sources(registry: DataSourceRegistry) -> None:
    for name, handler in BUILTIN_SOURCES.items():
        registry.register(name, handler)

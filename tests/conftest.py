import asyncio
import random

import pytest
import redis.asyncio as redis

from app.core.exceptions import FetchError
from app.models.interests import InterestConfig
from app.models.video import Video, VideoPage
from app.services.recommendation.interests import InterestResolver


def make_video(video_id: str, **overrides) -> Video:
    data = {
        "title": f"Video {video_id}",
        "videoId": video_id,
        "thumbnail": f"https://i.ytimg.com/vi/{video_id}/mqdefault.jpg",
        "channel": "Channel",
        "channelId": "UC123",
        "publishedAt": "2026-10-01T12:00:00Z",
    }
    data.update(overrides)
    return Video(**data)


def make_videos(prefix: str, count: int) -> list[Video]:
    return [make_video(f"{prefix}{i}") for i in range(count)]


class FakeYouTube:
    """In-memory stand-in for YouTubeService that records every call."""

    def __init__(self, charts=None, keywords=None, chart_errors=None, keyword_errors=None, next_page_token=None):
        self.charts: dict[str | None, list[Video]] = charts or {}
        self.keywords: dict[str, list[Video]] = keywords or {}
        self.chart_errors: dict[str | None, FetchError] = chart_errors or {}
        self.keyword_errors: dict[str, FetchError] = keyword_errors or {}
        self.next_page_token = next_page_token
        self.chart_calls: list[dict] = []
        self.keyword_calls: list[dict] = []

    async def get_most_popular(self, max_results, region_code, page_token=None, category_id=None):
        self.chart_calls.append(
            {
                "max_results": max_results,
                "region_code": region_code,
                "page_token": page_token,
                "category_id": category_id,
            }
        )
        if category_id in self.chart_errors:
            raise self.chart_errors[category_id]
        return VideoPage(videos=self.charts.get(category_id, [])[:max_results], nextPageToken=self.next_page_token)

    async def search_popular_by_keywords(self, keywords, per_keyword_max, region_code, language=None):
        self.keyword_calls.append(
            {"keywords": list(keywords), "per_keyword_max": per_keyword_max, "region_code": region_code}
        )
        key = keywords[0] if keywords else ""
        if key in self.keyword_errors:
            raise self.keyword_errors[key]
        return self.keywords.get(key, [])[:per_keyword_max]


class FakeRedis:
    def __init__(self):
        self.data: dict[str, str] = {}
        self.available = True
        self.fail_reads = False

    async def get(self, key):
        if self.fail_reads:
            raise redis.ConnectionError("Connection reset by peer")
        return self.data.get(key)

    async def set(self, key, value, ttl=None):
        if not self.available:
            return False
        self.data[key] = str(value)
        return True

    async def delete(self, key):
        return self.data.pop(key, None) is not None


@pytest.fixture
def resolver() -> InterestResolver:
    table = {
        "gaming": InterestConfig(categories=["20"]),
        "videogames": InterestConfig(categories=["20"]),
        "film": InterestConfig(categories=["1", "24"]),
        "music": InterestConfig(categories=["10"]),
        "finance": InterestConfig(searchKeywords=["personal finance", "investing"]),
        "podcast": InterestConfig(searchKeywords=["best podcasts"]),
        "hybrid": InterestConfig(categories=["28"], searchKeywords=["hybrid tutorial"]),
    }
    return InterestResolver(table)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def sleep_log(monkeypatch) -> list:
    """Replace asyncio.sleep with a recorder; each call appends ("sleep", delay)."""
    log: list = []
    real_sleep = asyncio.sleep

    async def recording_sleep(delay, *args, **kwargs):
        log.append(("sleep", delay))
        await real_sleep(0)

    monkeypatch.setattr(asyncio, "sleep", recording_sleep)
    return log

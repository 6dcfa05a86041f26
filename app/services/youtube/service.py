import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
from cachetools import LRUCache, TTLCache
from loguru import logger

from app.core.config import settings
from app.core.constants import UPSTREAM_MAX_RESULTS
from app.core.exceptions import FetchError
from app.core.security import redact_token
from app.models.video import Video, VideoPage
from app.services.youtube.client import YouTubeClient
from app.services.youtube.mapping import map_item, map_videos


def _clamp_max_results(max_results: int) -> int:
    return max(1, min(int(max_results), UPSTREAM_MAX_RESULTS))


def _published_after(days: int, now: datetime | None = None) -> str:
    moment = (now or datetime.now(timezone.utc)) - timedelta(days=days)
    return moment.replace(microsecond=0).isoformat().replace("+00:00", "Z")


class YouTubeService:
    """
    Source fetchers for the YouTube Data API.

    Every method returns normalized Videos and raises a FetchError subclass
    on failure, except search_popular_by_keywords which degrades per keyword.
    `keyword_delay` overrides SOURCE_FETCH_DELAY_MS for tests only.
    """

    def __init__(
        self,
        api_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
        keyword_delay: float | None = None,
        lookback_days: int | None = None,
        chart_cache_ttl: int | None = None,
    ):
        self.client = YouTubeClient(api_key=api_key, transport=transport)
        self.keyword_delay = (
            keyword_delay if keyword_delay is not None else settings.SOURCE_FETCH_DELAY_MS / 1000
        )
        self.lookback_days = lookback_days or settings.KEYWORD_LOOKBACK_DAYS
        ttl = chart_cache_ttl if chart_cache_ttl is not None else settings.CHART_CACHE_TTL_SECONDS
        self._chart_cache: TTLCache | None = TTLCache(maxsize=500, ttl=ttl) if ttl > 0 else None

    async def close(self):
        """Close the underlying HTTP client."""
        await self.client.close()

    async def get_most_popular(
        self,
        max_results: int,
        region_code: str,
        page_token: str | None = None,
        category_id: str | None = None,
    ) -> VideoPage:
        """Fetch one page of the most-popular chart, optionally for a single category."""
        cache_key = (max_results, region_code, page_token, category_id)
        if self._chart_cache is not None and cache_key in self._chart_cache:
            return self._chart_cache[cache_key]

        params: dict[str, Any] = {
            "part": "snippet",
            "chart": "mostPopular",
            "maxResults": _clamp_max_results(max_results),
            "regionCode": region_code,
        }
        if category_id:
            params["videoCategoryId"] = category_id
        if page_token:
            params["pageToken"] = page_token

        data = await self.client.get("/videos", params=params)
        page = VideoPage(videos=map_videos(data), nextPageToken=data.get("nextPageToken"))

        if self._chart_cache is not None:
            self._chart_cache[cache_key] = page
        return page

    async def search_videos(self, query: str, max_results: int = 12, page_token: str | None = None) -> VideoPage:
        """Plain keyword search."""
        params: dict[str, Any] = {
            "part": "snippet",
            "q": query,
            "type": "video",
            "maxResults": _clamp_max_results(max_results),
        }
        if page_token:
            params["pageToken"] = page_token
        data = await self.client.get("/search", params=params)
        return VideoPage(videos=map_videos(data), nextPageToken=data.get("nextPageToken"))

    async def search_by_channel(
        self, channel_id: str, max_results: int = 12, page_token: str | None = None
    ) -> VideoPage:
        """Latest uploads of a channel, newest first."""
        params: dict[str, Any] = {
            "part": "snippet",
            "channelId": channel_id,
            "type": "video",
            "order": "date",
            "maxResults": _clamp_max_results(max_results),
        }
        if page_token:
            params["pageToken"] = page_token
        data = await self.client.get("/search", params=params)
        return VideoPage(videos=map_videos(data), nextPageToken=data.get("nextPageToken"))

    async def get_video(self, video_id: str) -> Video | None:
        """Look up a single video by id. Returns None when the id is unknown upstream."""
        data = await self.client.get("/videos", params={"part": "snippet", "id": video_id})
        for item in data.get("items") or []:
            video = map_item(item)
            if video is not None:
                return video
        return None

    async def _search_keyword(
        self, keyword: str, max_results: int, region_code: str, language: str | None = None
    ) -> list[Video]:
        params: dict[str, Any] = {
            "part": "snippet",
            "q": keyword,
            "type": "video",
            "order": "viewCount",
            "maxResults": _clamp_max_results(max_results),
            "regionCode": region_code,
            "publishedAfter": _published_after(self.lookback_days),
        }
        if language:
            params["relevanceLanguage"] = language
        data = await self.client.get("/search", params=params)
        return map_videos(data)

    async def search_popular_by_keywords(
        self,
        keywords: list[str],
        per_keyword_max: int,
        region_code: str,
        language: str | None = None,
    ) -> list[Video]:
        """
        Run one view-count-ordered search per keyword, restricted to the lookback window.

        Keywords run sequentially with a fixed pause between calls. A failing
        keyword is logged and skipped; whatever succeeded is returned.
        """
        videos: list[Video] = []
        for index, keyword in enumerate(keywords):
            if index > 0:
                await asyncio.sleep(self.keyword_delay)
            try:
                videos.extend(await self._search_keyword(keyword, per_keyword_max, region_code, language))
            except FetchError as e:
                logger.warning(f"Keyword search failed (keyword={keyword!r}, region={region_code}): {e}")
        return videos


class ServiceCache(LRUCache):
    """LRU cache of services that closes the HTTP client of every evicted entry."""

    def __init__(self, maxsize: int):
        super().__init__(maxsize=maxsize)
        self._closing: set[asyncio.Task] = set()

    def popitem(self):
        key, service = super().popitem()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"Evicted YouTubeService {redact_token(key)} outside an event loop; client left open")
            return key, service
        logger.debug(f"Evicting YouTubeService for key {redact_token(key)}")
        task = loop.create_task(service.close())
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)
        return key, service

    async def drain(self) -> None:
        """Wait for pending eviction closes."""
        if self._closing:
            await asyncio.gather(*list(self._closing), return_exceptions=True)


# One service (and HTTP connection pool) per credential
_services: ServiceCache = ServiceCache(maxsize=32)


def get_youtube_service(api_key: str) -> YouTubeService:
    service = _services.get(api_key)
    if service is None:
        logger.debug(f"Creating YouTubeService for key {redact_token(api_key)}")
        service = YouTubeService(api_key=api_key)
        _services[api_key] = service
    return service


async def close_youtube_services() -> None:
    services = list(_services.values())
    _services.clear()
    for service in services:
        await service.close()
    await _services.drain()
    if services:
        logger.info(f"Closed {len(services)} YouTube client(s)")

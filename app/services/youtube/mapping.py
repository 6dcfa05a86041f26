from typing import Any

from loguru import logger

from app.core.constants import THUMBNAIL_URL_TEMPLATE
from app.models.video import Video


def _video_id(item: dict[str, Any]) -> str | None:
    # search.list nests the id, videos.list returns it flat
    raw = item.get("id")
    if isinstance(raw, dict):
        return raw.get("videoId")
    if isinstance(raw, str):
        return raw
    return None


def _thumbnail(snippet: dict[str, Any], video_id: str) -> str:
    thumbnails = snippet.get("thumbnails") or {}
    for size in ("medium", "high", "default"):
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return THUMBNAIL_URL_TEMPLATE.format(video_id=video_id)


def map_item(item: dict[str, Any]) -> Video | None:
    """Normalize one upstream item into a Video. Returns None for items without an id."""
    video_id = _video_id(item)
    if not video_id:
        return None
    snippet = item.get("snippet") or {}
    return Video(
        title=snippet.get("title") or "",
        videoId=video_id,
        thumbnail=_thumbnail(snippet, video_id),
        channel=snippet.get("channelTitle") or "",
        channelId=snippet.get("channelId"),
        publishedAt=snippet.get("publishedAt"),
    )


def map_videos(data: dict[str, Any] | None) -> list[Video]:
    """Map an upstream payload's `items` into Videos. An empty payload maps to an empty list."""
    if not data or not isinstance(data, dict):
        return []
    videos = []
    for item in data.get("items") or []:
        if not isinstance(item, dict):
            continue
        video = map_item(item)
        if video is None:
            logger.debug(f"Skipping upstream item without a video id: kind={item.get('kind')}")
            continue
        videos.append(video)
    return videos

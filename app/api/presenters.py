from typing import Any

from app.models.video import Video
from app.utils.text import format_relative_time


def present_video(video: Video) -> dict[str, Any]:
    """Public JSON shape of a video, with a human readable age when known."""
    data = video.model_dump()
    data["publishedAgo"] = format_relative_time(video.publishedAt) if video.publishedAt else None
    return data


def present_videos(videos: list[Video]) -> list[dict[str, Any]]:
    return [present_video(v) for v in videos]

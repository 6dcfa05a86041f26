import re
from urllib.parse import parse_qs, urlparse

from app.core.constants import THUMBNAIL_URL_TEMPLATE
from app.models.video import Video

VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")


def parse_youtube_url(url: str) -> str | None:
    """Extract the video id from a youtube.com watch URL or a youtu.be short link."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if not parsed.scheme or not parsed.hostname:
        return None

    host = parsed.hostname.lower()
    if "youtube.com" in host:
        values = parse_qs(parsed.query).get("v")
        return values[0] if values else None
    if host == "youtu.be":
        return parsed.path.lstrip("/") or None
    return None


def extract_video_id(value: str) -> str | None:
    """Accept either a bare 11-character video id or a YouTube URL."""
    trimmed = value.strip()
    if VIDEO_ID_RE.match(trimmed):
        return trimmed
    return parse_youtube_url(trimmed)


def video_from_id(video_id: str) -> Video:
    """Placeholder Video for an id whose metadata is unknown."""
    return Video(
        title="Video YouTube",
        videoId=video_id,
        thumbnail=THUMBNAIL_URL_TEMPLATE.format(video_id=video_id),
        channel="YouTube",
    )

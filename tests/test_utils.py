from datetime import datetime, timedelta, timezone

import pytest

from app.utils.text import format_relative_time, normalize_text
from app.utils.youtube import extract_video_id, parse_youtube_url, video_from_id

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def ago(**delta) -> str:
    return (NOW - timedelta(**delta)).isoformat().replace("+00:00", "Z")


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://m.youtube.com/watch?v=dQw4w9WgXcQ&t=42", "dQw4w9WgXcQ"),
        ("https://youtu.be/dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/feed/trending", None),
        ("https://vimeo.com/12345", None),
        ("not a url", None),
    ],
)
def test_parse_youtube_url(url, expected):
    assert parse_youtube_url(url) == expected


def test_extract_video_id_accepts_bare_ids():
    assert extract_video_id("  dQw4w9WgXcQ ") == "dQw4w9WgXcQ"
    assert extract_video_id("https://youtu.be/abcdefghijk") == "abcdefghijk"
    assert extract_video_id("short") is None


def test_video_from_id_placeholder():
    video = video_from_id("dQw4w9WgXcQ")
    assert video.thumbnail == "https://img.youtube.com/vi/dQw4w9WgXcQ/mqdefault.jpg"
    assert video.channelId is None
    assert video.publishedAt is None


def test_normalize_text():
    assert normalize_text("  Caffè &#38; Città!!  ") == "caffe citta"
    assert normalize_text("Rock'n'Roll   Vol.2") == "rocknroll vol2"


@pytest.mark.parametrize(
    "delta, expected",
    [
        ({"seconds": 10}, "Adesso"),
        ({"minutes": 1}, "1 minuto fa"),
        ({"minutes": 5}, "5 minuti fa"),
        ({"hours": 1}, "1 ora fa"),
        ({"days": 3}, "3 giorni fa"),
        ({"days": 14}, "2 settimane fa"),
        ({"days": 95}, "3 mesi fa"),
        ({"days": 800}, "2 anni fa"),
    ],
)
def test_format_relative_time(delta, expected):
    assert format_relative_time(ago(**delta), now=NOW) == expected


def test_format_relative_time_rejects_garbage():
    assert format_relative_time("yesterday", now=NOW) is None

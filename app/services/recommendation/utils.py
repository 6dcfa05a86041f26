import random
from typing import TypeVar

from app.models.video import Video

T = TypeVar("T")


def dedupe_videos(videos: list[Video]) -> list[Video]:
    """Keep the first occurrence of each videoId, preserving order."""
    seen: set[str] = set()
    unique = []
    for video in videos:
        if video.videoId in seen:
            continue
        seen.add(video.videoId)
        unique.append(video)
    return unique


def fisher_yates_shuffle(items: list[T], rng: random.Random | None = None) -> list[T]:
    """Return a uniformly shuffled copy of `items` using the given random source."""
    rng = rng or random.Random()
    indices = list(range(len(items)))
    for i in range(len(indices) - 1, 0, -1):
        j = rng.randint(0, i)
        indices[i], indices[j] = indices[j], indices[i]
    return [items[i] for i in indices]


def paginate(items: list[T], offset: int, limit: int) -> tuple[list[T], bool]:
    """Slice [offset, offset + limit) and report whether items remain past the page."""
    end = offset + limit
    return items[offset:end], len(items) > end

from pydantic import BaseModel, ConfigDict, Field

from app.core.exceptions import FetchError


class Video(BaseModel):
    """A normalized search result. `videoId` is the only identity key."""

    model_config = ConfigDict(frozen=True)

    title: str
    videoId: str
    thumbnail: str
    channel: str
    channelId: str | None = None
    # Unknown when absent; never treat as "oldest"
    publishedAt: str | None = None


class VideoPage(BaseModel):
    videos: list[Video] = Field(default_factory=list)
    nextPageToken: str | None = None


class AggregationResult(BaseModel):
    videos: list[Video] = Field(default_factory=list)
    hasMore: bool = False


class SourceOutcome(BaseModel):
    """
    Result of a single upstream source inside a fan-out.

    Exactly one of `videos` (possibly empty) or `error` is meaningful.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    source: str
    videos: list[Video] = Field(default_factory=list)
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

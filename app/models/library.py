from datetime import datetime, timezone

from pydantic import BaseModel, Field

from app.models.video import Video


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class SavedVideo(Video):
    savedAt: str = Field(default_factory=_utc_now_iso)


class SavedChannel(BaseModel):
    name: str
    id: str


class UserPreferences(BaseModel):
    interests: list[str] = Field(default_factory=list)
    language: str = "it"


class UserLibrary(BaseModel):
    """
    Per-user state: saved videos, saved channels, preferences and the
    (encrypted) API key. Changes only reach storage through LibraryStore.save.
    """

    saved_videos: list[SavedVideo] = Field(default_factory=list)
    saved_channels: list[SavedChannel] = Field(default_factory=list)
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    api_key: str | None = None

    # Videos

    def is_video_saved(self, video_id: str) -> bool:
        return any(v.videoId == video_id for v in self.saved_videos)

    def save_video(self, video: Video) -> bool:
        """Prepend the video unless already saved. Returns True when it was added."""
        if self.is_video_saved(video.videoId):
            return False
        saved = SavedVideo(**video.model_dump())
        self.saved_videos = [saved, *self.saved_videos]
        return True

    def remove_video(self, video_id: str) -> bool:
        before = len(self.saved_videos)
        self.saved_videos = [v for v in self.saved_videos if v.videoId != video_id]
        return len(self.saved_videos) != before

    def toggle_save_video(self, video: Video) -> bool:
        """Save or unsave the video. Returns the new saved state."""
        if self.is_video_saved(video.videoId):
            self.remove_video(video.videoId)
            return False
        self.save_video(video)
        return True

    def clear_saved_videos(self) -> None:
        self.saved_videos = []

    # Channels

    def is_channel_saved(self, channel_id: str) -> bool:
        return any(ch.id == channel_id for ch in self.saved_channels)

    def save_channel(self, name: str, channel_id: str) -> bool:
        if self.is_channel_saved(channel_id):
            return False
        self.saved_channels = [*self.saved_channels, SavedChannel(name=name, id=channel_id)]
        return True

    def remove_channel(self, channel_id: str) -> bool:
        before = len(self.saved_channels)
        self.saved_channels = [ch for ch in self.saved_channels if ch.id != channel_id]
        return len(self.saved_channels) != before

    # Preferences

    def set_interests(self, interests: list[str], language: str | None = None) -> None:
        cleaned = [i.strip() for i in interests if i and i.strip()]
        self.preferences = UserPreferences(
            interests=cleaned,
            language=language or self.preferences.language,
        )

    @property
    def has_preferences(self) -> bool:
        return bool(self.preferences.interests)

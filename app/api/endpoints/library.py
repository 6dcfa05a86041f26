from fastapi import APIRouter, Header, HTTPException, Query
from loguru import logger
from pydantic import BaseModel, Field

from app.api.endpoints.recommended import build_feed
from app.api.errors import resolve_api_key
from app.api.presenters import present_videos
from app.core.config import settings
from app.core.exceptions import StorageUnavailable
from app.core.security import redact_token
from app.models.library import UserLibrary
from app.models.video import Video
from app.services.library import library_store

router = APIRouter(prefix="/library", tags=["library"])


class PreferencesRequest(BaseModel):
    interests: list[str] = Field(default_factory=list, description="Free-text interests driving the feed")
    language: str | None = Field(default=None, min_length=2, max_length=2, description="Two-letter language code")


class ChannelRequest(BaseModel):
    name: str
    id: str


class ApiKeyRequest(BaseModel):
    apiKey: str = Field(..., min_length=1)


def _public(library: UserLibrary) -> dict:
    data = library.model_dump(exclude={"api_key"})
    data["hasApiKey"] = bool(library.api_key)
    return data


async def _load_or_raise(user_id: str) -> UserLibrary:
    try:
        return await library_store.load(user_id)
    except StorageUnavailable:
        raise HTTPException(status_code=503, detail="Library storage is unavailable.")


async def _save_or_raise(user_id: str, library: UserLibrary) -> None:
    if not await library_store.save(user_id, library):
        raise HTTPException(status_code=503, detail="Library storage is unavailable.")


@router.get("/{user_id}")
async def get_library(user_id: str):
    return _public(await _load_or_raise(user_id))


@router.delete("/{user_id}")
async def delete_library(user_id: str):
    await library_store.delete(user_id)
    logger.info(f"[{redact_token(user_id)}] Library deleted")
    return {"deleted": True}


@router.put("/{user_id}/preferences")
async def update_preferences(user_id: str, payload: PreferencesRequest):
    library = await _load_or_raise(user_id)
    library.set_interests(payload.interests, payload.language)
    await _save_or_raise(user_id, library)
    return library.preferences.model_dump()


@router.post("/{user_id}/videos")
async def save_video(user_id: str, video: Video):
    library = await _load_or_raise(user_id)
    added = library.save_video(video)
    if added:
        await _save_or_raise(user_id, library)
    return {"saved": True, "added": added, "count": len(library.saved_videos)}


@router.delete("/{user_id}/videos/{video_id}")
async def remove_video(user_id: str, video_id: str):
    library = await _load_or_raise(user_id)
    if not library.remove_video(video_id):
        raise HTTPException(status_code=404, detail=f"Video {video_id} is not saved.")
    await _save_or_raise(user_id, library)
    return {"saved": False, "count": len(library.saved_videos)}


@router.delete("/{user_id}/videos")
async def clear_videos(user_id: str):
    library = await _load_or_raise(user_id)
    library.clear_saved_videos()
    await _save_or_raise(user_id, library)
    return {"count": 0}


@router.post("/{user_id}/channels")
async def save_channel(user_id: str, payload: ChannelRequest):
    library = await _load_or_raise(user_id)
    if library.save_channel(payload.name, payload.id):
        await _save_or_raise(user_id, library)
    return {"channels": [ch.model_dump() for ch in library.saved_channels]}


@router.delete("/{user_id}/channels/{channel_id}")
async def remove_channel(user_id: str, channel_id: str):
    library = await _load_or_raise(user_id)
    if not library.remove_channel(channel_id):
        raise HTTPException(status_code=404, detail=f"Channel {channel_id} is not saved.")
    await _save_or_raise(user_id, library)
    return {"channels": [ch.model_dump() for ch in library.saved_channels]}


@router.put("/{user_id}/api-key")
async def store_api_key(user_id: str, payload: ApiKeyRequest):
    library = await _load_or_raise(user_id)
    library_store.set_api_key(library, payload.apiKey)
    await _save_or_raise(user_id, library)
    logger.info(f"[{redact_token(user_id)}] Stored API key {redact_token(payload.apiKey)}")
    return {"hasApiKey": True}


@router.get("/{user_id}/feed")
async def feed(
    user_id: str,
    maxResults: int = Query(default=settings.DEFAULT_MAX_RESULTS, ge=1, le=50),
    offset: int = Query(default=0, ge=0),
    x_youtube_key: str | None = Header(default=None),
):
    """Recommended feed built from the user's saved interests and language."""
    library = await _load_or_raise(user_id)
    api_key = resolve_api_key(x_youtube_key, library_store.get_api_key(library))
    prefs = library.preferences
    result = await build_feed(api_key, prefs.interests, prefs.language, maxResults, offset)
    return {"videos": present_videos(result.videos), "hasMore": result.hasMore}

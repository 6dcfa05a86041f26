from fastapi import APIRouter, Header, HTTPException, Query
from loguru import logger

from app.api.errors import http_error_from_fetch, resolve_api_key
from app.api.presenters import present_video, present_videos
from app.core.config import settings
from app.core.exceptions import FetchError
from app.services.youtube.service import get_youtube_service
from app.utils.youtube import extract_video_id, video_from_id

router = APIRouter(prefix="/api", tags=["videos"])


@router.get("/search")
async def search_videos(
    q: str = Query(..., min_length=1),
    maxResults: int = Query(default=settings.DEFAULT_MAX_RESULTS, ge=1, le=50),
    pageToken: str | None = None,
    x_youtube_key: str | None = Header(default=None),
):
    youtube = get_youtube_service(resolve_api_key(x_youtube_key))
    try:
        page = await youtube.search_videos(q, maxResults, pageToken)
    except FetchError as e:
        logger.warning(f"Search failed for {q!r}: {e}")
        raise http_error_from_fetch(e)
    return {"videos": present_videos(page.videos), "nextPageToken": page.nextPageToken}


@router.get("/channels/{channel_id}/videos")
async def channel_videos(
    channel_id: str,
    maxResults: int = Query(default=settings.DEFAULT_MAX_RESULTS, ge=1, le=50),
    pageToken: str | None = None,
    x_youtube_key: str | None = Header(default=None),
):
    youtube = get_youtube_service(resolve_api_key(x_youtube_key))
    try:
        page = await youtube.search_by_channel(channel_id, maxResults, pageToken)
    except FetchError as e:
        logger.warning(f"Channel search failed for {channel_id}: {e}")
        raise http_error_from_fetch(e)
    return {"videos": present_videos(page.videos), "nextPageToken": page.nextPageToken}


@router.get("/videos/resolve")
async def resolve_video(
    value: str = Query(..., alias="input", min_length=1, description="Video URL or id"),
    x_youtube_key: str | None = Header(default=None),
):
    """Turn a pasted URL or id into a Video, falling back to a placeholder when lookup is impossible."""
    video_id = extract_video_id(value)
    if not video_id:
        raise HTTPException(status_code=404, detail="Not a YouTube video URL or id.")

    try:
        api_key = resolve_api_key(x_youtube_key)
    except HTTPException:
        return present_video(video_from_id(video_id))

    try:
        video = await get_youtube_service(api_key).get_video(video_id)
    except FetchError as e:
        logger.warning(f"Video lookup failed for {video_id}: {e}")
        return present_video(video_from_id(video_id))
    if video is None:
        raise HTTPException(status_code=404, detail=f"Video {video_id} not found.")
    return present_video(video)

from fastapi import APIRouter, Header, Query
from loguru import logger

from app.api.errors import http_error_from_fetch, resolve_api_key
from app.api.presenters import present_videos
from app.core.config import settings
from app.core.constants import DEFAULT_INTERESTS
from app.core.exceptions import FetchError
from app.models.video import AggregationResult
from app.services.recommendation.aggregator import RecommendationAggregator
from app.services.recommendation.interests import InterestResolver
from app.services.youtube.service import get_youtube_service

router = APIRouter(prefix="/api", tags=["recommended"])


async def build_feed(
    api_key: str, interests: list[str], language: str, max_results: int, offset: int
) -> AggregationResult:
    aggregator = RecommendationAggregator(get_youtube_service(api_key))
    try:
        return await aggregator.get_recommended_popular(interests, language, max_results, offset)
    except FetchError as e:
        logger.warning(f"Recommended feed failed (interests={interests}, language={language}): {e}")
        raise http_error_from_fetch(e)


@router.get("/recommended")
async def recommended(
    interests: list[str] = Query(default=[]),
    language: str = Query(default=settings.DEFAULT_LANGUAGE, min_length=2, max_length=2),
    maxResults: int = Query(default=settings.DEFAULT_MAX_RESULTS, ge=1, le=50),
    offset: int = Query(default=0, ge=0),
    x_youtube_key: str | None = Header(default=None),
):
    result = await build_feed(resolve_api_key(x_youtube_key), interests, language, maxResults, offset)
    return {"videos": present_videos(result.videos), "hasMore": result.hasMore}


@router.get("/interests")
async def interests():
    return {"interests": InterestResolver().known_interests(), "defaults": DEFAULT_INTERESTS}

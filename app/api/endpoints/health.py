from fastapi import APIRouter

from app.core.version import __version__
from app.services.redis_service import redis_service

router = APIRouter(tags=["health"])


@router.get("/health", summary="Simple readiness probe")
async def health_check() -> dict[str, str]:
    return {"status": "ok", "version": __version__}


@router.get("/health/redis", summary="Library storage probe")
async def redis_health() -> dict[str, str]:
    return {"redis": "ok" if await redis_service.ping() else "unavailable"}

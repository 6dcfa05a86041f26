from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.api.main import api_router
from app.services.recommendation.interests import load_interest_table
from app.services.redis_service import redis_service
from app.services.youtube.service import close_youtube_services

from .config import settings
from .version import __version__


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events (startup/shutdown).
    """
    # Fail fast on a broken interest table instead of on the first feed request
    load_interest_table()
    yield
    await close_youtube_services()
    try:
        await redis_service.close()
    except Exception as exc:
        logger.warning(f"Failed to close Redis client: {exc}")


app = FastAPI(
    title="TubeFeed",
    description="Search, save and watch short videos with an interest-driven recommended feed",
    version=__version__,
    lifespan=lifespan,
    docs_url=None if settings.APP_ENV != "development" else "/docs",
    redoc_url=None if settings.APP_ENV != "development" else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)

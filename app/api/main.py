from fastapi import APIRouter

from .endpoints.health import router as health_router
from .endpoints.library import router as library_router
from .endpoints.recommended import router as recommended_router
from .endpoints.videos import router as videos_router

api_router = APIRouter()


@api_router.get("/")
async def root():
    return {"message": "TubeFeed API is running"}


api_router.include_router(health_router)
api_router.include_router(videos_router)
api_router.include_router(recommended_router)
api_router.include_router(library_router)

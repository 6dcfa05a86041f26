from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.constants import OVERFETCH_MARGIN as DEFAULT_OVERFETCH_MARGIN
from app.core.version import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    # Server-side fallback credential; users normally bring their own key
    YOUTUBE_API_KEY: str | None = None
    YOUTUBE_BASE_URL: str = "https://www.googleapis.com/youtube/v3"
    PORT: int = 8000
    APP_ENV: Literal["development", "production"] = "production"

    REDIS_URL: str = "redis://redis:6379/0"
    REDIS_MAX_CONNECTIONS: int = 20
    REDIS_LIBRARY_KEY: str = "tubefeed:library:"
    TOKEN_SALT: str = "change-me"

    HTTP_TIMEOUT_SECONDS: float = 10.0
    HTTP_MAX_RETRIES: int = 3

    # Upstream rate limiting: minimum pause between successive source fetches
    SOURCE_FETCH_DELAY_MS: int = Field(default=100, ge=100)
    OVERFETCH_MARGIN: int = Field(default=DEFAULT_OVERFETCH_MARGIN, ge=0)
    KEYWORD_LOOKBACK_DAYS: int = 365
    CHART_CACHE_TTL_SECONDS: int = 1800  # 30 mins

    DEFAULT_LANGUAGE: str = "it"
    DEFAULT_MAX_RESULTS: int = 12


settings = Settings()

APP_VERSION = __version__

from typing import Any

import httpx

from app.core.base_client import BaseClient
from app.core.config import settings
from app.core.version import __version__


class YouTubeClient(BaseClient):
    """
    Client for interacting with the YouTube Data API v3.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {
            "User-Agent": f"TubeFeed/{__version__}",
            "Accept": "application/json",
        }
        super().__init__(
            base_url=base_url or settings.YOUTUBE_BASE_URL,
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
            max_retries=max_retries or settings.HTTP_MAX_RETRIES,
            headers=headers,
            transport=transport,
        )
        self.api_key = api_key

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        """Override request to always include the API key."""
        params = kwargs.get("params", {})
        if params is None:
            params = {}
        params["key"] = self.api_key
        kwargs["params"] = params
        return await super()._request(method, url, **kwargs)

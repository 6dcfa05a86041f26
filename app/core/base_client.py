import asyncio
from typing import Any

import httpx
from loguru import logger

from app.core.exceptions import TransportError, UpstreamRejection

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def _rejection_reason(response: httpx.Response) -> str | None:
    """Extract the provider's error reason (e.g. "quotaExceeded") from an error body."""
    try:
        payload = response.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    errors = (payload.get("error") or {}).get("errors") or []
    if errors and isinstance(errors[0], dict):
        return errors[0].get("reason")
    return None


class BaseClient:
    """
    Base asynchronous HTTP client with built-in retry logic and logging.

    Failures are surfaced as typed errors: TransportError when the request
    never completed, UpstreamRejection when the upstream answered with a
    non-success status.
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 10.0,
        max_retries: int = 3,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.headers = headers or {}
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def get_client(self) -> httpx.AsyncClient:
        """Get or create the httpx.AsyncClient instance."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.headers,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def _backoff(attempt: int) -> float:
        return 0.5 * (2 ** (attempt - 1))  # Exponential backoff

    async def _request(self, method: str, url: str, max_tries: int | None = None, **kwargs) -> httpx.Response:
        """Internal request handler with retry logic."""
        client = await self.get_client()
        tries = max_tries or self.max_retries

        for attempt in range(1, tries + 1):
            try:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status in RETRYABLE_STATUS_CODES and attempt < tries:
                    wait_time = self._backoff(attempt)
                    logger.warning(
                        f"Request rejected ({method} {url}): HTTP {status}. "
                        f"Retrying in {wait_time}s... (Attempt {attempt}/{tries})"
                    )
                    await asyncio.sleep(wait_time)
                    continue
                reason = _rejection_reason(e.response)
                logger.error(f"Request rejected ({method} {url}): HTTP {status} ({reason or 'no reason'})")
                raise UpstreamRejection(
                    f"Upstream responded with HTTP {status}", status_code=status, url=url, reason=reason
                ) from e
            except httpx.RequestError as e:
                if attempt < tries:
                    wait_time = self._backoff(attempt)
                    logger.warning(
                        f"Request failed ({method} {url}): {str(e) or type(e).__name__}. "
                        f"Retrying in {wait_time}s... (Attempt {attempt}/{tries})"
                    )
                    await asyncio.sleep(wait_time)
                    continue
                logger.error(f"Request failed after {tries} attempts: {str(e) or type(e).__name__}")
                raise TransportError(f"Could not reach upstream: {type(e).__name__}", url=url) from e

        raise TransportError("Request failed for unknown reasons", url=url)

    async def get(self, url: str, params: dict[str, Any] | None = None, **kwargs) -> dict[str, Any]:
        """Perform a GET request and return the JSON object in the response."""
        response = await self._request("GET", url, params=params, **kwargs)
        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamRejection(
                "Upstream returned an invalid JSON payload", status_code=response.status_code, url=url
            ) from e
        if not isinstance(payload, dict):
            logger.error(f"Unexpected payload type from {url}: {type(payload).__name__}")
            raise UpstreamRejection(
                "Upstream returned a JSON payload that is not an object", status_code=response.status_code, url=url
            )
        return payload

from fastapi import HTTPException

from app.core.config import settings
from app.core.exceptions import FetchError, TransportError, UpstreamRejection


def http_error_from_fetch(exc: FetchError) -> HTTPException:
    """Translate an upstream fetch failure into the HTTP error returned to clients."""
    if isinstance(exc, UpstreamRejection):
        if exc.is_quota_exceeded:
            return HTTPException(status_code=503, detail="YouTube API quota exceeded. Try again later.")
        reason = f", {exc.reason}" if exc.reason else ""
        detail = f"YouTube API rejected the request (HTTP {exc.status_code}{reason})."
        return HTTPException(status_code=502, detail=detail)
    if isinstance(exc, TransportError):
        return HTTPException(status_code=504, detail="YouTube API is unreachable.")
    return HTTPException(status_code=502, detail=str(exc))


def resolve_api_key(header_key: str | None, stored_key: str | None = None) -> str:
    """Pick the credential for a request: explicit header, then stored key, then server default."""
    for candidate in (header_key, stored_key, settings.YOUTUBE_API_KEY):
        if candidate and candidate.strip():
            return candidate.strip()
    raise HTTPException(
        status_code=401,
        detail="Missing YouTube API key. Send it in the X-YouTube-Key header or save it in your library.",
    )

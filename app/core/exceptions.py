class FetchError(Exception):
    """Base class for failures while talking to the video search provider."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url


class TransportError(FetchError):
    """The upstream call could not complete (DNS, connect, timeout, ...)."""


class UpstreamRejection(FetchError):
    """The upstream answered with a non-success status or an unusable payload."""

    def __init__(self, message: str, status_code: int, url: str | None = None, reason: str | None = None):
        super().__init__(message, url=url)
        self.status_code = status_code
        self.reason = reason

    @property
    def is_quota_exceeded(self) -> bool:
        return self.status_code == 403 and self.reason in ("quotaExceeded", "dailyLimitExceeded", "rateLimitExceeded")


class StorageUnavailable(Exception):
    """The library backend could not be read or written."""

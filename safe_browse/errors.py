"""Error types raised by the Safe Browsing lookup client.

Construction and input validation errors are raised synchronously.
Everything that happens after a request is dispatched (transport failures,
API status errors) is delivered through the lookup future instead.
"""

from __future__ import annotations

MAX_URLS_PER_BATCH = 500


class SafeBrowseError(Exception):
    """Base class for all client errors."""


class ConfigurationError(SafeBrowseError):
    """Missing or conflicting client configuration."""


class InvalidURLError(SafeBrowseError, ValueError):
    def __init__(self, message: str = "Specified URL is not a valid one") -> None:
        super().__init__(message)


class TooManyURLsError(SafeBrowseError, ValueError):
    def __init__(self, count: int, limit: int = MAX_URLS_PER_BATCH) -> None:
        super().__init__(
            f"Total number of URLs ({count}) has exceeded the maximum allowed limit of {limit}"
        )
        self.count = count
        self.limit = limit


class NoValidURLError(SafeBrowseError, ValueError):
    def __init__(
        self,
        message: str = "No URL to look up, the supplied list contains no valid URLs",
    ) -> None:
        super().__init__(message)


class APIResponseError(SafeBrowseError):
    """The remote service rejected the request (400, 401 or 503)."""

    def __init__(self, status_code: int, message: str = "") -> None:
        self.status_code = int(status_code)
        self.message = message or f"HTTP {self.status_code}"
        super().__init__(f"HTTP {self.status_code}: {self.message}")


class MalformedResponseError(APIResponseError):
    """A success response whose body cannot be mapped onto the submitted URLs."""


class TransportError(SafeBrowseError):
    """Connection-level failure raised by a transport."""


class ClientClosedError(SafeBrowseError):
    """lookup() called after the client was closed."""

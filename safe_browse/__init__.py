"""Safe Browse - Safe Browsing Lookup API client."""

from .client import SafeBrowseClient, interpret_response
from .config import ClientConfig
from .errors import (
    APIResponseError,
    ClientClosedError,
    ConfigurationError,
    InvalidURLError,
    MalformedResponseError,
    NoValidURLError,
    SafeBrowseError,
    TooManyURLsError,
    TransportError,
)
from .events import LookupEvents
from .models import LookupRequest, LookupResult
from .transport import Transport, TransportResponse, UrllibTransport

__version__ = "1.0.0"
__all__ = [
    "SafeBrowseClient",
    "ClientConfig",
    "LookupEvents",
    "LookupRequest",
    "LookupResult",
    "Transport",
    "TransportResponse",
    "UrllibTransport",
    "interpret_response",
    "SafeBrowseError",
    "ConfigurationError",
    "InvalidURLError",
    "TooManyURLsError",
    "NoValidURLError",
    "APIResponseError",
    "ClientClosedError",
    "MalformedResponseError",
    "TransportError",
]

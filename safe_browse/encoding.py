"""Query-string encoding for the lookup API.

The API expects RFC 3986 percent-encoding: only unreserved characters
(letters, digits, `-._~`) are left as-is. In particular `! * ( ) '` must be
escaped, which many URL encoders skip.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from urllib.parse import quote, urlencode


def escape(value: str) -> str:
    """Percent-encode a single query-string component."""
    return quote(str(value), safe="")


def build_query(params: Mapping[str, str] | Iterable[tuple[str, str]]) -> str:
    return urlencode(params, quote_via=quote, safe="")


def build_query_url(endpoint: str, params: Mapping[str, str] | Iterable[tuple[str, str]]) -> str:
    return f"{endpoint}?{build_query(params)}"

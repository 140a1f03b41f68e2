"""URL validation and batch preparation."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any
from urllib.parse import urlparse

from .errors import MAX_URLS_PER_BATCH, NoValidURLError, TooManyURLsError


def is_valid_url(url: Any) -> bool:
    """A URL is valid when it parses into both a scheme and a host."""
    if not isinstance(url, str) or not url:
        return False
    # urlparse drops CR/LF; either would split one entry across batch body lines.
    if "\r" in url or "\n" in url:
        return False
    try:
        parsed = urlparse(url)
        return bool(parsed.scheme and parsed.hostname)
    except ValueError:
        return False


def _unique_sorted(urls: Iterable[str]) -> list[str]:
    # Input is sorted, so duplicates are always adjacent.
    out: list[str] = []
    for u in urls:
        if not out or out[-1] != u:
            out.append(u)
    return out


def prepare_batch(urls: list[Any] | tuple[Any, ...], limit: int = MAX_URLS_PER_BATCH) -> list[str]:
    """Return the sorted, validated, de-duplicated URLs to submit.

    - The size limit applies to the raw input, before anything is dropped.
    - Invalid entries are dropped silently.
    - Raises NoValidURLError when nothing is left.
    """
    if len(urls) > limit:
        raise TooManyURLsError(len(urls), limit)

    # Non-strings are never valid; dropping them first keeps sorting total.
    candidates = sorted(u for u in urls if isinstance(u, str) and u)
    valid = [u for u in candidates if is_valid_url(u)]
    if not valid:
        raise NoValidURLError()

    return _unique_sorted(valid)


def encode_batch_body(urls: list[str]) -> str:
    """POST body: the URL count on the first line, then one URL per line."""
    return "\n".join([str(len(urls)), *urls])

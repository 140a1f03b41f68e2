"""Request/result models for the lookup client.

`LookupRequest` is what gets sent, `LookupResult` is what comes back.
Both are created fresh for every call.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

Mode = Literal["single", "batch"]

VERDICT_OK = "ok"


@dataclass(frozen=True)
class LookupRequest:
    mode: Mode
    # Single mode: exactly one URL. Batch mode: sorted, validated, unique URLs.
    urls: tuple[str, ...]
    # Endpoint URL including the query string.
    url: str
    # POST body (batch mode only).
    body: Optional[str] = None

    @property
    def method(self) -> str:
        return "POST" if self.mode == "batch" else "GET"


@dataclass(frozen=True)
class LookupResult:
    status_code: int
    # URL -> verdict ("ok", "malware", "phishing", "malware,phishing", ...)
    data: dict[str, str] = field(default_factory=dict)

    @property
    def verdicts(self) -> dict[str, str]:
        return self.data

    def is_ok(self, url: str) -> bool:
        return self.data.get(url) == VERDICT_OK

    def flagged(self) -> dict[str, str]:
        """URLs the service reported as a threat."""
        return {u: v for u, v in self.data.items() if v != VERDICT_OK}

    def categories(self, url: str) -> frozenset[str]:
        """Split a verdict such as "malware,phishing" into its categories."""
        verdict = self.data.get(url)
        if verdict is None or verdict == VERDICT_OK:
            return frozenset()
        return frozenset(c.strip() for c in verdict.split(",") if c.strip())

    def missing(self, urls: Iterable[str]) -> list[str]:
        """Inputs that were not looked up (invalid entries dropped from a batch)."""
        return [u for u in urls if u not in self.data]

    def to_dict(self) -> dict[str, Any]:
        return {"statusCode": self.status_code, "data": dict(self.data)}

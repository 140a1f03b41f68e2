"""Output helpers (threat detection, exit codes, SARIF)."""

from __future__ import annotations

from typing import Any

from .models import VERDICT_OK, LookupResult

EXIT_OK = 0
EXIT_THREAT = 1
EXIT_ERROR = 2


def is_threat(verdict: str) -> bool:
    return verdict != VERDICT_OK


def exit_code_from_result(result: LookupResult, *, fail_on_threat: bool) -> int:
    if fail_on_threat and any(is_threat(v) for v in result.data.values()):
        return EXIT_THREAT
    return EXIT_OK


def to_sarif(result: LookupResult) -> dict[str, Any]:
    """Minimal SARIF 2.1.0 output."""

    sarif_results = []
    for url, verdict in result.data.items():
        level = "error" if is_threat(verdict) else "note"
        sarif_results.append(
            {
                "ruleId": "safe-browse",
                "level": level,
                "message": {"text": f"{verdict} for {url}"},
                "locations": [
                    {
                        "physicalLocation": {
                            "artifactLocation": {"uri": url},
                        }
                    }
                ],
            }
        )

    return {
        "$schema": "https://json.schemastore.org/sarif-2.1.0.json",
        "version": "2.1.0",
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": "safe-browse",
                        "rules": [
                            {
                                "id": "safe-browse",
                                "name": "Safe Browsing Lookup",
                                "shortDescription": {"text": "Malware/phishing URL lookup"},
                            }
                        ],
                    }
                },
                "results": sarif_results,
            }
        ],
    }

#!/usr/bin/env python3
"""
Safe Browse - CLI entry point
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Iterator
from typing import Any, Union

from .client import SafeBrowseClient
from .errors import SafeBrowseError
from .models import LookupResult
from .output import EXIT_ERROR, exit_code_from_result, is_threat, to_sarif
from .transport import UrllibTransport


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Look up URLs against the Safe Browsing Lookup API (malware/phishing)"
    )
    parser.add_argument("urls", nargs="*", help="URL(s) to look up (optional if using --file)")
    parser.add_argument("--file", "-f", help="File with URLs to look up (one per line)", default=None)
    parser.add_argument(
        "--batch",
        action="store_true",
        help="Send a single URL as a batch (POST) request",
    )
    parser.add_argument(
        "--api-key", help="API key (or set SAFE_BROWSE_API_KEY env var)", default=None
    )
    parser.add_argument(
        "--client", help="Client name (or set SAFE_BROWSE_CLIENT env var)", default=None
    )
    parser.add_argument(
        "--endpoint", help="Lookup API endpoint (or set SAFE_BROWSE_ENDPOINT env var)", default=None
    )
    parser.add_argument(
        "--timeout", "-t", type=float, default=30, help="HTTP timeout in seconds (default: 30)"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Print request/response diagnostics to stderr"
    )
    parser.add_argument(
        "--json", "-j", action="store_true", help="Output as JSON (alias for --format json)"
    )
    parser.add_argument(
        "--format",
        choices=["pretty", "json", "sarif"],
        default=None,
        help="Output format (default: pretty; --json is an alias for json)",
    )
    parser.add_argument(
        "--fail-on-threat",
        action="store_true",
        help="Exit with code 1 when any URL is flagged (useful for CI)",
    )
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    out_format = args.format
    if out_format is None:
        out_format = "json" if args.json else "pretty"

    urls = list(args.urls)
    if args.file:
        urls.extend(iter_urls_from_file(args.file))

    if not urls:
        parser.error("Either URL(s) or --file is required")

    target: Union[str, list[str]] = urls
    if len(urls) == 1 and not args.file and not args.batch:
        target = urls[0]

    try:
        with SafeBrowseClient.from_env(
            UrllibTransport(timeout=args.timeout),
            api_key=args.api_key,
            client_name=args.client,
            endpoint=args.endpoint,
            debug=True if args.debug else None,
        ) as client:
            result = client.lookup_sync(target)
    except SafeBrowseError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(EXIT_ERROR) from e

    if out_format == "json":
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    elif out_format == "sarif":
        print(json.dumps(to_sarif(result), indent=2))
    else:
        print_human_readable(result, submitted=urls)

    raise SystemExit(exit_code_from_result(result, fail_on_threat=args.fail_on_threat))


def iter_urls_from_file(filepath: str) -> Iterator[str]:
    """Yield URLs from a file (streaming).

    Skips empty lines and comments.
    """
    with open(filepath) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                yield line


def print_human_readable(result: LookupResult, submitted: Any = None) -> None:
    """Print human-readable output."""
    flagged = result.flagged()

    print("\n🔍 Safe Browsing Lookup")
    print(f"{'=' * 60}")
    print(f"Status: HTTP {result.status_code}")
    print(f"URLs:   {len(result.data)} checked, {len(flagged)} flagged")
    print(f"{'-' * 60}")

    for url, verdict in sorted(result.data.items()):
        if is_threat(verdict):
            print(f"  🔴 {verdict:<20} {url}")
        else:
            print(f"  ✅ {verdict:<20} {url}")

    if submitted:
        skipped = result.missing(submitted)
        if skipped:
            print(f"\n⚠️ Skipped (invalid URL): {len(skipped)}")
            for url in skipped:
                print(f"  • {url}")

    print()


if __name__ == "__main__":
    main()

"""HTTP transport used by the lookup client.

The client only needs two operations, GET and POST, each returning a status
code and a text body. Anything implementing `Transport` can be injected
(tests use in-memory stubs).

`UrllibTransport` is the bundled implementation. HTTP error statuses come
back as normal responses so the client can classify them; only
connection-level failures raise `TransportError`.
"""

from __future__ import annotations

import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Optional

from .errors import TransportError

USER_AGENT = "safe-browse/1.0"


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    body: str = ""
    # Status line reason, e.g. "Unauthorized".
    reason: str = ""


class Transport:
    """Base interface for transports."""

    def get(self, url: str) -> TransportResponse:
        raise NotImplementedError

    def post(self, url: str, body: str) -> TransportResponse:
        raise NotImplementedError


class UrllibTransport(Transport):
    def __init__(self, timeout: float = 30, user_agent: str = USER_AGENT) -> None:
        self.timeout = timeout
        self.user_agent = user_agent

    def get(self, url: str) -> TransportResponse:
        return self._send(url, method="GET")

    def post(self, url: str, body: str) -> TransportResponse:
        return self._send(url, method="POST", data=body.encode("utf-8"))

    def _send(self, url: str, method: str, data: Optional[bytes] = None) -> TransportResponse:
        try:
            req = urllib.request.Request(url, data=data, method=method)
        except ValueError:
            # The error text would include the query string and API key.
            raise TransportError("Invalid request URL") from None

        req.add_header("User-Agent", self.user_agent)
        if data is not None:
            req.add_header("Content-Type", "text/plain")

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                status = getattr(response, "status", None)
                if status is None:
                    status = response.getcode()
                return TransportResponse(
                    status_code=int(status),
                    body=_decode(response.read()),
                    reason=str(getattr(response, "reason", "") or ""),
                )
        except urllib.error.HTTPError as e:
            try:
                body = _decode(e.read())
            except Exception:
                body = ""
            return TransportResponse(
                status_code=int(e.code),
                body=body,
                reason=str(e.reason or ""),
            )
        except urllib.error.URLError as e:
            raise TransportError(f"URL Error: {e.reason}") from e
        except ValueError:
            # http.client.InvalidURL, same concern as above.
            raise TransportError("Invalid request URL") from None
        except OSError as e:
            # Socket timeouts and resets surface as plain OSErrors.
            raise TransportError(str(e)) from e


def _decode(raw: Optional[bytes]) -> str:
    if not raw:
        return ""
    return raw.decode("utf-8", errors="replace")

"""Safe Browsing lookup client.

`SafeBrowseClient.lookup()` validates its input synchronously, then runs the
HTTP round trip on a worker thread and hands back a `Future`. A single URL is
sent as a GET with the URL in the query string; a list of URLs is sent as one
POST whose body lists the URLs, and the response is mapped back onto them by
position.
"""

from __future__ import annotations

import asyncio
import sys
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import Any, Callable, Optional, Union

from .config import ClientConfig
from .encoding import build_query_url
from .errors import APIResponseError, ClientClosedError, InvalidURLError, MalformedResponseError
from .events import LookupEvents
from .models import VERDICT_OK, LookupRequest, LookupResult
from .transport import Transport, TransportResponse, UrllibTransport
from .urls import encode_batch_body, is_valid_url, prepare_batch

Target = Union[str, list[str], tuple[str, ...]]
DiagnosticSink = Callable[[str], None]
CompletionCallback = Callable[[Optional[BaseException], Optional[LookupResult]], Any]

# The lookup API reports invalid requests with these status codes.
ERROR_STATUS_CODES = frozenset({400, 401, 503})


def _stderr_sink(message: str) -> None:
    print(message, file=sys.stderr)


def _strip_trailing_newline(text: str) -> str:
    if text.endswith("\r\n"):
        return text[:-2]
    if text.endswith("\n"):
        return text[:-1]
    return text


class SafeBrowseClient:
    """Client for the Safe Browsing Lookup API.

    Args:
        api_key: API key (required)
        client_name: Name identifying the calling application (required)
        transport: HTTP transport (default: UrllibTransport)
        endpoint, app_version, protocol_version, debug: see ClientConfig
        sink: Diagnostic output used when debug is enabled (default: stderr)
        max_workers: Max lookups in flight at once
        **params: Extra query-string parameters, sent as-is

    Raises:
        ConfigurationError: api_key or client_name missing
    """

    def __init__(
        self,
        api_key: Optional[str],
        client_name: Optional[str],
        transport: Optional[Transport] = None,
        *,
        endpoint: Optional[str] = None,
        app_version: Optional[str] = None,
        protocol_version: Optional[str] = None,
        debug: bool = False,
        sink: Optional[DiagnosticSink] = None,
        max_workers: int = 5,
        **params: Any,
    ) -> None:
        config = ClientConfig.create(
            api_key,
            client_name,
            endpoint=endpoint,
            app_version=app_version,
            protocol_version=protocol_version,
            debug=debug,
            **params,
        )
        self._init(config, transport, sink, max_workers)

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        transport: Optional[Transport] = None,
        *,
        sink: Optional[DiagnosticSink] = None,
        max_workers: int = 5,
    ) -> "SafeBrowseClient":
        client = cls.__new__(cls)
        client._init(config, transport, sink, max_workers)
        return client

    @classmethod
    def from_env(
        cls,
        transport: Optional[Transport] = None,
        *,
        sink: Optional[DiagnosticSink] = None,
        max_workers: int = 5,
        **overrides: Any,
    ) -> "SafeBrowseClient":
        """Build a client from SAFE_BROWSE_* environment variables (.env aware)."""
        config = ClientConfig.from_env(**overrides)
        return cls.from_config(config, transport, sink=sink, max_workers=max_workers)

    def _init(
        self,
        config: ClientConfig,
        transport: Optional[Transport],
        sink: Optional[DiagnosticSink],
        max_workers: int,
    ) -> None:
        self.config = config
        self.transport = transport if transport is not None else UrllibTransport()
        self._sink = sink or _stderr_sink
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, int(max_workers)), thread_name_prefix="safe-browse"
        )
        self._closed = False

    # -- lifecycle -----------------------------------------------------------

    def close(self) -> None:
        """Wait for in-flight lookups, then refuse new ones (ClientClosedError)."""
        self._closed = True
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "SafeBrowseClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # -- public API ----------------------------------------------------------

    def build_request(self, target: Any) -> LookupRequest:
        """Validate `target` and build the request for it (no I/O).

        Raises:
            InvalidURLError: target missing, empty or not a valid URL
            TooManyURLsError: batch larger than the API allows
            NoValidURLError: batch without a single valid URL
        """
        if isinstance(target, (list, tuple)):
            if not target:
                raise InvalidURLError()
            self._log("Request type: POST")

            urls = prepare_batch(target)
            request = LookupRequest(
                mode="batch",
                urls=tuple(urls),
                url=build_query_url(self.config.endpoint, self.config.query_params()),
                body=encode_batch_body(urls),
            )
            self._log(f"Request URI:\n {request.url}")
            self._log(f"Request Body:\n {request.body}")
            self._log(f"Total URLs to look up after processing: {len(urls)}")
            return request

        if not isinstance(target, str) or not target:
            raise InvalidURLError()
        self._log("Request type: GET")

        if not is_valid_url(target):
            raise InvalidURLError()

        params = self.config.query_params()
        params["url"] = target
        request = LookupRequest(
            mode="single",
            urls=(target,),
            url=build_query_url(self.config.endpoint, params),
        )
        self._log(f"URL to be looked up: {request.url}")
        return request

    def lookup(
        self, target: Optional[Target] = None, on_complete: Optional[CompletionCallback] = None
    ) -> Future[LookupResult]:
        """Look up one URL (str) or many (list of str).

        Input errors raise immediately. Everything after dispatch (transport
        failures, APIResponseError) is delivered through the returned future,
        and through `on_complete(error, result)` when a callback is given.

        Raises ClientClosedError once the client has been closed.
        """
        if self._closed:
            raise ClientClosedError("Client is closed")
        request = self.build_request(target)
        try:
            future = self._executor.submit(self.execute, request)
        except RuntimeError as e:
            # close() raced with this call
            raise ClientClosedError("Client is closed") from e
        if on_complete is not None:
            future.add_done_callback(lambda f: _invoke_callback(f, on_complete))
        return future

    def lookup_sync(self, target: Target, timeout: Optional[float] = None) -> LookupResult:
        """Blocking lookup: returns the result or raises the error."""
        return self.lookup(target).result(timeout=timeout)

    def lookup_async(self, target: Target) -> "asyncio.Future[LookupResult]":
        """Awaitable lookup for asyncio callers.

        Must be called from inside a running event loop. Input errors still
        raise at call time.
        """
        loop = asyncio.get_running_loop()
        return asyncio.wrap_future(self.lookup(target), loop=loop)

    def lookup_events(self, target: Target) -> LookupEvents:
        """Event-style lookup: subscribe with `.on("success" | "error", handler)`."""
        return LookupEvents(self.lookup(target))

    # -- request execution ---------------------------------------------------

    def execute(self, request: LookupRequest) -> LookupResult:
        """Send a prepared request and interpret the response.

        Transport exceptions propagate unchanged.
        """
        self._log("Sending request...")
        if request.mode == "batch":
            response = self.transport.post(request.url, request.body or "")
        else:
            response = self.transport.get(request.url)

        self._log(f"Response Status: {response.status_code}")
        self._log(f"Raw Response Body: {response.body}")

        result = interpret_response(request, response)
        self._log("Finished.")
        return result

    def _log(self, message: str) -> None:
        if not self.config.debug:
            return
        try:
            self._sink(message)
        except Exception:  # noqa: BLE001
            pass


def interpret_response(request: LookupRequest, response: TransportResponse) -> LookupResult:
    """Classify an HTTP response and map it onto the requested URLs."""
    status = int(response.status_code)
    if status in ERROR_STATUS_CODES:
        raise APIResponseError(status, response.reason)

    if request.mode == "single":
        url = request.urls[0]
        body = _strip_trailing_newline(response.body or "")
        if status == 204 or not body:
            return LookupResult(status_code=status, data={url: VERDICT_OK})
        return LookupResult(status_code=status, data={url: body})

    if status == 204:
        return LookupResult(status_code=status, data={u: VERDICT_OK for u in request.urls})

    lines = [line.rstrip("\r") for line in _strip_trailing_newline(response.body or "").split("\n")]
    if len(lines) != len(request.urls):
        raise MalformedResponseError(
            status,
            f"expected {len(request.urls)} verdict lines, got {len(lines)}",
        )

    # The API does not echo URLs back: line N belongs to the Nth submitted URL.
    return LookupResult(status_code=status, data=dict(zip(request.urls, lines)))


def _invoke_callback(future: Future[LookupResult], callback: CompletionCallback) -> None:
    if future.cancelled():
        callback(CancelledError(), None)
        return
    error = future.exception()
    if error is not None:
        callback(error, None)
    else:
        callback(None, future.result())

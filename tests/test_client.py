"""
Tests for the lookup client (request building, response parsing, delivery).
"""

import asyncio
import threading
import unittest

from safe_browse import (
    APIResponseError,
    ClientClosedError,
    ConfigurationError,
    InvalidURLError,
    MalformedResponseError,
    NoValidURLError,
    SafeBrowseClient,
    TooManyURLsError,
    TransportError,
)
from safe_browse.config import DEFAULT_ENDPOINT
from safe_browse.transport import Transport, TransportResponse


class StubTransport(Transport):
    """Records requests and replays a canned response (or error)."""

    def __init__(self, response=None, error=None):
        self.response = response or TransportResponse(status_code=204)
        self.error = error
        self.calls = []

    def get(self, url):
        self.calls.append(("GET", url, None))
        if self.error:
            raise self.error
        return self.response

    def post(self, url, body):
        self.calls.append(("POST", url, body))
        if self.error:
            raise self.error
        return self.response


def make_client(transport=None, **kwargs):
    return SafeBrowseClient("test-key", "test-app", transport or StubTransport(), **kwargs)


class TestConstruction(unittest.TestCase):
    def test_missing_api_key(self):
        with self.assertRaises(ConfigurationError):
            SafeBrowseClient(None, "test-app", StubTransport())

    def test_empty_api_key(self):
        with self.assertRaises(ConfigurationError):
            SafeBrowseClient("", "test-app", StubTransport())

    def test_missing_client_name(self):
        with self.assertRaises(ConfigurationError):
            SafeBrowseClient("test-key", None, StubTransport())

    def test_no_network_call_on_failure(self):
        transport = StubTransport()
        with self.assertRaises(ConfigurationError):
            SafeBrowseClient("test-key", "", transport)
        self.assertEqual(transport.calls, [])

    def test_endpoint_without_scheme_rejected(self):
        with self.assertRaises(ConfigurationError):
            SafeBrowseClient("test-key", "test-app", StubTransport(), endpoint="lookup.example")

    def test_reserved_extra_param_rejected(self):
        with self.assertRaises(ConfigurationError):
            SafeBrowseClient("test-key", "test-app", StubTransport(), apikey="other")


class TestInputValidation(unittest.TestCase):
    def setUp(self):
        self.transport = StubTransport()
        self.client = make_client(self.transport)
        self.addCleanup(self.client.close)

    def test_no_argument(self):
        with self.assertRaises(InvalidURLError):
            self.client.lookup()

    def test_empty_string(self):
        with self.assertRaises(InvalidURLError):
            self.client.lookup("")

    def test_empty_list(self):
        with self.assertRaises(InvalidURLError):
            self.client.lookup([])

    def test_relative_path(self):
        with self.assertRaises(InvalidURLError):
            self.client.lookup("/relative/path")

    def test_not_a_string(self):
        with self.assertRaises(InvalidURLError):
            self.client.lookup(42)

    def test_too_many_urls(self):
        with self.assertRaises(TooManyURLsError):
            self.client.lookup(["not a url"] * 600)

    def test_no_valid_urls(self):
        with self.assertRaises(NoValidURLError):
            self.client.lookup(["/bad/1", "/bad/2"])

    def test_validation_happens_before_network(self):
        for target in (None, "", "/relative/path", ["/bad/1"], ["x"] * 501):
            with self.assertRaises(ValueError):
                self.client.lookup(target)
        self.assertEqual(self.transport.calls, [])


class TestBuildRequest(unittest.TestCase):
    def setUp(self):
        self.client = make_client()
        self.addCleanup(self.client.close)

    def test_single_request_query_string(self):
        request = self.client.build_request("http://example.com")

        self.assertEqual(request.mode, "single")
        self.assertEqual(request.method, "GET")
        self.assertIsNone(request.body)
        self.assertEqual(
            request.url,
            DEFAULT_ENDPOINT
            + "?client=test-app&apikey=test-key&appver=1.0.0&pver=3.0&url=http%3A%2F%2Fexample.com",
        )

    def test_single_request_strict_encoding(self):
        request = self.client.build_request("http://example.com/it's(here)")

        self.assertIn("%27", request.url)
        self.assertIn("%28", request.url)
        self.assertIn("%29", request.url)
        self.assertNotIn("'", request.url)

    def test_batch_sorted_and_deduplicated(self):
        request = self.client.build_request(["http://b.com", "http://a.com", "http://a.com"])

        self.assertEqual(request.mode, "batch")
        self.assertEqual(request.method, "POST")
        self.assertEqual(request.urls, ("http://a.com", "http://b.com"))
        self.assertEqual(request.body, "2\nhttp://a.com\nhttp://b.com")

    def test_batch_order_independent(self):
        a = self.client.build_request(["http://c.com", "http://a.com", "http://b.com", "http://a.com"])
        b = self.client.build_request(["http://a.com", "http://b.com", "http://c.com"])
        self.assertEqual(a.body, b.body)
        self.assertEqual(a.url, b.url)

    def test_batch_drops_invalid_entries(self):
        request = self.client.build_request(["/bad", "", "http://ok.com", None])
        self.assertEqual(request.urls, ("http://ok.com",))
        self.assertEqual(request.body, "1\nhttp://ok.com")

    def test_batch_drops_entries_with_line_breaks(self):
        request = self.client.build_request(["http://a.com\nhttp://evil.com", "http://b.com"])

        self.assertEqual(request.urls, ("http://b.com",))
        count, *lines = request.body.split("\n")
        self.assertEqual(int(count), len(lines))

    def test_single_url_with_line_break_rejected(self):
        with self.assertRaises(InvalidURLError):
            self.client.build_request("http://a.com\r\nhttp://evil.com")

    def test_batch_query_has_no_url_param(self):
        request = self.client.build_request(["http://a.com"])
        self.assertNotIn("url=", request.url.split("?", 1)[1])

    def test_batch_accepts_tuple(self):
        request = self.client.build_request(("http://a.com",))
        self.assertEqual(request.mode, "batch")

    def test_extra_params_passed_through(self):
        client = make_client(custom="x y", version="2")
        self.addCleanup(client.close)

        request = client.build_request("http://example.com")
        query = request.url.split("?", 1)[1]
        self.assertIn("custom=x%20y", query)
        self.assertIn("version=2", query)
        self.assertTrue(query.endswith("url=http%3A%2F%2Fexample.com"))

    def test_custom_endpoint_and_versions(self):
        client = make_client(endpoint="https://lookup.test/api", app_version="2.1.0", protocol_version="3.1")
        self.addCleanup(client.close)

        request = client.build_request("http://example.com")
        self.assertTrue(request.url.startswith("https://lookup.test/api?"))
        self.assertIn("appver=2.1.0", request.url)
        self.assertIn("pver=3.1", request.url)


class TestSingleLookup(unittest.TestCase):
    def test_no_content_is_ok(self):
        transport = StubTransport(TransportResponse(status_code=204))
        with make_client(transport) as client:
            result = client.lookup_sync("http://example.com")

        self.assertEqual(result.status_code, 204)
        self.assertEqual(result.data, {"http://example.com": "ok"})
        self.assertEqual(transport.calls[0][0], "GET")

    def test_verdict_from_body(self):
        transport = StubTransport(TransportResponse(status_code=200, body="malware\n"))
        with make_client(transport) as client:
            result = client.lookup_sync("http://example.com")

        self.assertEqual(result.status_code, 200)
        self.assertEqual(result.data, {"http://example.com": "malware"})

    def test_multi_category_verdict_kept_raw(self):
        transport = StubTransport(TransportResponse(status_code=200, body="malware,phishing\r\n"))
        with make_client(transport) as client:
            result = client.lookup_sync("http://example.com")

        self.assertEqual(result.data["http://example.com"], "malware,phishing")
        self.assertEqual(result.categories("http://example.com"), {"malware", "phishing"})


class TestBatchLookup(unittest.TestCase):
    def test_no_content_means_all_ok(self):
        transport = StubTransport(TransportResponse(status_code=204))
        with make_client(transport) as client:
            result = client.lookup_sync(["http://b.com", "http://a.com", "http://a.com"])

        self.assertEqual(result.data, {"http://a.com": "ok", "http://b.com": "ok"})
        method, _, body = transport.calls[0]
        self.assertEqual(method, "POST")
        self.assertEqual(body, "2\nhttp://a.com\nhttp://b.com")

    def test_positional_mapping(self):
        transport = StubTransport(TransportResponse(status_code=200, body="ok\nmalware"))
        with make_client(transport) as client:
            result = client.lookup_sync(["http://a.com", "http://b.com"])

        self.assertEqual(result.data, {"http://a.com": "ok", "http://b.com": "malware"})

    def test_positional_mapping_follows_sorted_order(self):
        transport = StubTransport(TransportResponse(status_code=200, body="phishing\nok\n"))
        with make_client(transport) as client:
            result = client.lookup_sync(["http://z.com", "http://a.com"])

        self.assertEqual(result.data, {"http://a.com": "phishing", "http://z.com": "ok"})
        self.assertEqual(result.flagged(), {"http://a.com": "phishing"})

    def test_dropped_urls_reported_as_missing(self):
        transport = StubTransport(TransportResponse(status_code=204))
        submitted = ["http://a.com", "/bad"]
        with make_client(transport) as client:
            result = client.lookup_sync(submitted)

        self.assertEqual(result.missing(submitted), ["/bad"])

    def test_line_count_mismatch(self):
        transport = StubTransport(TransportResponse(status_code=200, body="malware"))
        with make_client(transport) as client:
            with self.assertRaises(MalformedResponseError) as ctx:
                client.lookup_sync(["http://a.com", "http://b.com"])

        self.assertIsInstance(ctx.exception, APIResponseError)
        self.assertEqual(ctx.exception.status_code, 200)


class TestErrors(unittest.TestCase):
    def test_api_error_statuses(self):
        for status, reason in ((400, "Bad Request"), (401, "Unauthorized"), (503, "Service Unavailable")):
            transport = StubTransport(TransportResponse(status_code=status, reason=reason))
            with make_client(transport) as client:
                with self.assertRaises(APIResponseError) as ctx:
                    client.lookup_sync("http://example.com")

            self.assertEqual(ctx.exception.status_code, status)
            self.assertEqual(ctx.exception.message, reason)
            # Never retried
            self.assertEqual(len(transport.calls), 1)

    def test_api_error_delivered_through_future(self):
        transport = StubTransport(TransportResponse(status_code=401, reason="Unauthorized"))
        with make_client(transport) as client:
            future = client.lookup(["http://a.com"])
            error = future.exception(timeout=5)

        self.assertIsInstance(error, APIResponseError)
        self.assertEqual(error.status_code, 401)

    def test_transport_error_passed_through_unchanged(self):
        boom = TransportError("connection refused")
        transport = StubTransport(error=boom)
        with make_client(transport) as client:
            with self.assertRaises(TransportError) as ctx:
                client.lookup_sync("http://example.com")

        self.assertIs(ctx.exception, boom)

    def test_other_transport_exception_passed_through(self):
        boom = ConnectionResetError("reset")
        with make_client(StubTransport(error=boom)) as client:
            future = client.lookup("http://example.com")
            self.assertIs(future.exception(timeout=5), boom)


class TestCallbackDelivery(unittest.TestCase):
    def _run(self, transport, target):
        calls = []
        done = threading.Event()

        def on_complete(error, result):
            calls.append((error, result))
            done.set()

        with make_client(transport) as client:
            future = client.lookup(target, on_complete)
            future.exception(timeout=5)

        self.assertTrue(done.wait(5))
        return calls

    def test_success(self):
        calls = self._run(StubTransport(TransportResponse(status_code=204)), "http://example.com")

        self.assertEqual(len(calls), 1)
        error, result = calls[0]
        self.assertIsNone(error)
        self.assertEqual(result.data, {"http://example.com": "ok"})

    def test_error(self):
        calls = self._run(StubTransport(TransportResponse(status_code=503)), "http://example.com")

        self.assertEqual(len(calls), 1)
        error, result = calls[0]
        self.assertIsInstance(error, APIResponseError)
        self.assertIsNone(result)

    def test_validation_error_raised_not_delivered(self):
        calls = []
        with make_client() as client:
            with self.assertRaises(InvalidURLError):
                client.lookup("/relative/path", lambda e, r: calls.append((e, r)))
        self.assertEqual(calls, [])


class TestClose(unittest.TestCase):
    def test_lookup_after_close(self):
        transport = StubTransport()
        client = make_client(transport)
        client.close()

        with self.assertRaises(ClientClosedError):
            client.lookup("http://example.com")
        self.assertEqual(transport.calls, [])

    def test_lookup_after_context_exit(self):
        with make_client() as client:
            client.lookup_sync("http://example.com")

        with self.assertRaises(ClientClosedError):
            client.lookup_sync(["http://a.com"])


class TestAsyncLookup(unittest.TestCase):
    def test_await_result(self):
        transport = StubTransport(TransportResponse(status_code=200, body="ok\nmalware"))

        async def run():
            with make_client(transport) as client:
                return await client.lookup_async(["http://a.com", "http://b.com"])

        result = asyncio.run(run())
        self.assertEqual(result.data["http://b.com"], "malware")

    def test_await_error(self):
        transport = StubTransport(TransportResponse(status_code=401))

        async def run():
            with make_client(transport) as client:
                await client.lookup_async("http://example.com")

        with self.assertRaises(APIResponseError):
            asyncio.run(run())


class TestDebugSink(unittest.TestCase):
    def test_debug_writes_diagnostics(self):
        messages = []
        transport = StubTransport(TransportResponse(status_code=200, body="ok\nmalware"))
        with make_client(transport, debug=True, sink=messages.append) as client:
            client.lookup_sync(["http://a.com", "http://b.com"])

        text = "\n".join(messages)
        self.assertIn("Request type: POST", text)
        self.assertIn("Request Body:", text)
        self.assertIn("Response Status: 200", text)
        self.assertIn("Raw Response Body: ok\nmalware", text)
        self.assertIn("Finished.", text)

    def test_no_output_without_debug(self):
        messages = []
        with make_client(sink=messages.append) as client:
            client.lookup_sync("http://example.com")
        self.assertEqual(messages, [])

    def test_failing_sink_does_not_change_outcome(self):
        def broken_sink(message):
            raise RuntimeError("sink down")

        transport = StubTransport(TransportResponse(status_code=200, body="phishing\n"))
        with make_client(transport, debug=True, sink=broken_sink) as client:
            result = client.lookup_sync("http://example.com")

        self.assertEqual(result.data, {"http://example.com": "phishing"})


class TestResult(unittest.TestCase):
    def test_to_dict(self):
        with make_client(StubTransport(TransportResponse(status_code=204))) as client:
            result = client.lookup_sync("http://example.com")

        self.assertEqual(result.to_dict(), {"statusCode": 204, "data": {"http://example.com": "ok"}})
        self.assertEqual(result.verdicts, result.data)
        self.assertTrue(result.is_ok("http://example.com"))
        self.assertEqual(result.categories("http://example.com"), frozenset())


if __name__ == "__main__":
    unittest.main()

"""
Test suite for Response construction, header parsing and field access.
"""

import logging

import httpx
import pytest

from restorch import Response, parse_header
from restorch._response import render_header


TEST_HEADER = (
    "HTTP/1.1 418 I'M A TEAPOT\r\n"
    "Access-Control-Allow-Credentials:true\r\n"
    "Access-Control-Allow-Origin: *\r\n"
    "Date: Fri, 26 Sep 2014 14:22:56 GMT\r\n"
    "Server: gunicorn/18.0\r\n"
    "X-More-Info: http://tools.ietf.org/html/rfc2324\r\n"
    "Content-Length: 135\r\n"
    "Connection: keep-alive\r\n"
)

TEST_META = {
    "url": "http://httpbin.org/status/418",
    "content_type": None,
    "http_code": 418,
    "total_time": 0.129335,
    "pretransfer_time": 0.059159,
    "is_success": True,
    "queue": False,
}


# ============================================================================
# Header Parsing
# ============================================================================

class TestParseHeader:
    """Tests for parse_header."""

    def test_splits_on_first_colon_only(self):
        headers = parse_header(TEST_HEADER)

        assert headers["X-More-Info"] == " http://tools.ietf.org/html/rfc2324"
        assert headers["Date"] == " Fri, 26 Sep 2014 14:22:56 GMT"

    def test_values_are_not_trimmed(self):
        headers = parse_header(TEST_HEADER)

        assert headers["Access-Control-Allow-Credentials"] == "true"
        assert headers["Server"] == " gunicorn/18.0"

    def test_lines_without_colon_are_skipped(self):
        headers = parse_header(TEST_HEADER)

        assert len(headers) == 7
        assert not any(label.startswith("HTTP/") for label in headers)

    def test_duplicate_label_keeps_last_value(self):
        headers = parse_header("Set-Cookie: a=1\r\nSet-Cookie: b=2\r\n")

        assert headers == {"Set-Cookie": " b=2"}

    def test_empty_blob(self):
        assert parse_header("") == {}


# ============================================================================
# Response Object
# ============================================================================

class TestResponse:
    """Tests for the Response value object."""

    def test_construct_sets_meta_and_data(self):
        response = Response(TEST_META, "teapot", TEST_HEADER)

        assert response.meta == TEST_META
        assert response.data == "teapot"
        assert response.header["Connection"] == " keep-alive"

    def test_construct_without_header(self):
        response = Response(TEST_META, "teapot")

        assert response.header == {}

    def test_get_reads_meta(self):
        response = Response(TEST_META, "teapot", TEST_HEADER)

        assert response.get("url") == TEST_META["url"]
        assert response.get("http_code") == 418

    def test_get_falls_back_to_header(self):
        response = Response(TEST_META, "teapot", TEST_HEADER)

        assert response.get("Server") == " gunicorn/18.0"

    def test_meta_takes_precedence_over_header(self):
        response = Response({"url": "meta"}, None, "url: header")

        assert response.get("url") == "meta"
        assert response.get_header("url") == " header"

    def test_unknown_key_logs_and_returns_default(self, caplog):
        response = Response(TEST_META, "teapot", TEST_HEADER)

        with caplog.at_level(logging.WARNING):
            assert response.get("emptyKey") is None
            assert response.get("emptyKey", "fallback") == "fallback"

        assert "reference to invalid response key - emptyKey" in caplog.text

    def test_explicit_lookups_do_not_fall_back(self):
        response = Response(TEST_META, "teapot", TEST_HEADER)

        assert response.get_meta("Server") is None
        assert response.get_header("http_code") is None

    def test_properties(self):
        response = Response(TEST_META, "teapot")

        assert response.is_success is True
        assert response.http_code == 418
        assert response.url == TEST_META["url"]
        assert response.total_time == pytest.approx(0.129335)
        assert response.error is None

    def test_json(self):
        assert Response({}, '{"a": [1, 2]}').json() == {"a": [1, 2]}
        assert Response({}).json() is None

    def test_json_on_non_json_body(self, caplog):
        response = Response({"url": "http://service.local/"}, "<html>oops</html>")

        with caplog.at_level(logging.WARNING):
            assert response.json() is None

        assert "response body from http://service.local/ is not JSON" in caplog.text

    def test_from_error(self):
        exc = httpx.ConnectError("connection refused")
        response = Response.from_error("http://localhost/", exc, queued=True)

        assert response.is_success is False
        assert response.http_code is None
        assert response.data is None
        assert response.meta["error_code"] == "ConnectError"
        assert response.error == "connection refused"
        assert response.meta["queue"] is True

    def test_from_httpx(self):
        request = httpx.Request("GET", "https://example.com/items?id=3")
        raw = httpx.Response(
            201,
            headers={"Server": "mock", "Content-Type": "application/json"},
            content=b'{"id": 3}',
            request=request,
        )
        raw.extensions["timings"] = {"pretransfer_time": 0.01}

        response = Response.from_httpx(raw, total_time=0.25)

        assert response.is_success is True
        assert response.http_code == 201
        assert response.url == "https://example.com/items?id=3"
        assert response.meta["content_type"] == "application/json"
        assert response.meta["size_download"] == 9
        assert response.meta["pretransfer_time"] == 0.01
        assert response.meta["connect_time"] == 0.0
        assert response.meta["queue"] is False
        assert response.get_header("Server") == " mock"
        assert response.json() == {"id": 3}

    def test_render_header_starts_with_status_line(self):
        raw = httpx.Response(404, headers={"X-Test": "a:b"})

        blob = render_header(raw)

        assert blob.startswith("HTTP/1.1 404 Not Found\r\n")
        assert parse_header(blob)["X-Test"] == " a:b"

"""Tests for naturalps.core.transport — the outbound HTTP adapter.

All tests use ``httpx.MockTransport``; no network access occurs.
"""

from __future__ import annotations

import httpx
import pytest

from naturalps.core.errors import TransportError
from naturalps.core.transport import TransportAdapter, TransportResponse


def _adapter(handler, **kwargs) -> TransportAdapter:
    return TransportAdapter(transport=httpx.MockTransport(handler), **kwargs)


class TestTransportResponse:
    def test_accessors(self):
        resp = TransportResponse(200, {"Content-Type": "application/json"}, b'{"a": 1}')
        assert resp.ok
        assert resp.status == 200
        assert resp.headers["content-type"] == "application/json"
        assert resp.text() == '{"a": 1}'
        assert resp.json() == {"a": 1}
        assert resp.content() == b'{"a": 1}'

    def test_not_ok_for_error_status(self):
        assert not TransportResponse(503, {}, b"").ok

    def test_invalid_json_raises_transport_error(self):
        with pytest.raises(TransportError, match="Invalid JSON"):
            TransportResponse(200, {}, b"<html>").json()


class TestTransportAdapter:
    def test_post_json_sends_body_and_returns_response(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["body"] = request.content
            seen["content_type"] = request.headers["content-type"]
            return httpx.Response(200, json={"ok": True})

        resp = _adapter(handler).post_json("https://api.example.com/x", {"hello": "world"})

        assert resp.json() == {"ok": True}
        assert seen["method"] == "POST"
        assert seen["content_type"] == "application/json"
        assert b'"hello"' in seen["body"]

    def test_error_status_is_returned_not_raised(self):
        resp = _adapter(lambda request: httpx.Response(500, text="boom")).request(
            "GET", "https://api.example.com/"
        )
        assert resp.status == 500
        assert resp.text() == "boom"

    def test_connection_failure_raises_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("certificate verify failed", request=request)

        with pytest.raises(TransportError, match="certificate verify failed"):
            _adapter(handler).request("GET", "https://api.example.com/path?key=secret")

    def test_error_message_does_not_leak_query_string(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransportError) as excinfo:
            _adapter(handler).request("GET", "https://api.example.com/path?key=secret")
        assert "secret" not in str(excinfo.value)

    def test_disabling_verification_is_logged(self, caplog):
        TransportAdapter(verify=False)
        assert "TLS certificate verification is DISABLED" in caplog.text

    def test_http_options_carry_timeout_and_verify(self):
        options = TransportAdapter(timeout=60.0, verify=False).http_options()
        assert options.timeout == 60000
        assert options.client_args == {"verify": False}

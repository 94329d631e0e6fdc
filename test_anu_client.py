"""
Tests for the ANU QRNG client. The service is faked with httpx.MockTransport.

Run with:  python -m pytest test_anu_client.py -v
"""

import httpx
import pytest

from anu_client import AnuClient, AnuSettings, parse_response
from qrn_commands.errors import ParseResponseError


def anu_handler(requests):
    """Well-behaved fake service that records each request."""
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        length = int(request.url.params["length"])
        return httpx.Response(200, json={
            "type": "uint8",
            "length": length,
            "data": [i % 256 for i in range(length)],
            "success": True,
        })
    return handler


def make_client(handler, **settings):
    return AnuClient(AnuSettings(**settings), transport=httpx.MockTransport(handler))


class TestFetch:

    def test_fetch_returns_requested_bytes(self):
        requests = []
        client = make_client(anu_handler(requests))
        assert client.fetch_qrn(4) == bytes([0, 1, 2, 3])
        assert len(requests) == 1
        assert requests[0].url.params["type"] == "uint8"

    def test_fetch_zero_makes_no_request(self):
        requests = []
        client = make_client(anu_handler(requests))
        assert client.fetch_qrn(0) == b""
        assert requests == []

    def test_large_requests_are_chunked(self):
        requests = []
        client = make_client(anu_handler(requests), max_request=10)
        data = client.fetch_qrn(25)
        assert len(data) == 25
        assert [int(r.url.params["length"]) for r in requests] == [10, 10, 5]

    def test_api_key_header(self):
        requests = []
        client = make_client(anu_handler(requests), api_key="secret")
        client.fetch_qrn(1)
        assert requests[0].headers["x-api-key"] == "secret"

    def test_no_api_key_header_by_default(self):
        requests = []
        client = make_client(anu_handler(requests))
        client.fetch_qrn(1)
        assert "x-api-key" not in requests[0].headers

    def test_http_error_status(self):
        client = make_client(lambda request: httpx.Response(503, text="busy"))
        with pytest.raises(ParseResponseError, match="HTTP 503"):
            client.fetch_qrn(5)

    def test_non_json_body(self):
        client = make_client(lambda request: httpx.Response(200, text="<html>nope</html>"))
        with pytest.raises(ParseResponseError, match="not valid JSON"):
            client.fetch_qrn(5)

    def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(ParseResponseError, match="Request to ANU server failed"):
            client.fetch_qrn(5)

    def test_malformed_url(self):
        client = make_client(anu_handler([]), url="http://[::1/api")
        with pytest.raises(ParseResponseError, match="Request to ANU server failed"):
            client.fetch_qrn(5)


class TestParseResponse:

    def test_valid_payload(self):
        payload = {"success": True, "data": [0, 128, 255]}
        assert parse_response(payload, 3) == [0, 128, 255]

    @pytest.mark.parametrize("payload", [
        [1, 2, 3],
        "oops",
        {"success": False, "data": [1, 2, 3]},
        {"data": [1, 2, 3]},
        {"success": True},
        {"success": True, "data": "123"},
        {"success": True, "data": [1, 2]},
        {"success": True, "data": [1, 2, 256]},
        {"success": True, "data": [1, -1, 3]},
        {"success": True, "data": [1, 2.5, 3]},
        {"success": True, "data": [1, True, 3]},
    ])
    def test_malformed_payload(self, payload):
        with pytest.raises(ParseResponseError):
            parse_response(payload, 3)

    def test_failure_message_is_passed_on(self):
        with pytest.raises(ParseResponseError, match="quota exceeded"):
            parse_response({"success": False, "message": "quota exceeded"}, 3)

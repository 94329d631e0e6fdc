#!/usr/bin/env python3
"""
ANU Quantum Random Number Client
Fetches live quantum random bytes from the ANU QRNG JSON API

The service answers with a JSON object like:

    {"type": "uint8", "length": 4, "data": [12, 200, 7, 91], "success": true}

Design principles:
- One job: turn a byte count into that many bytes, or a ParseResponseError
- Chunked: requests above the service limit are split transparently
- No retries: a failed request surfaces immediately to the caller
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from qrn_commands.errors import ParseResponseError


DEFAULT_ANU_URL = "https://qrng.anu.edu.au/API/jsonI.php"
MAX_REQUEST_BYTES = 1024  # largest 'length' the service accepts


@dataclass(frozen=True)
class AnuSettings:
    """Connection settings for the ANU service"""
    url: str = DEFAULT_ANU_URL
    api_key: Optional[str] = None
    timeout: float = 10.0
    max_request: int = MAX_REQUEST_BYTES


class AnuClient:
    """
    Synchronous ANU QRNG client

    Usage:
        client = AnuClient(AnuSettings())
        data = client.fetch_qrn(32)
    """

    def __init__(self, settings: Optional[AnuSettings] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.settings = settings or AnuSettings()
        self.transport = transport  # tests inject httpx.MockTransport here
        self.logger = logging.getLogger(__name__)

    def fetch_qrn(self, count: int) -> bytes:
        """
        Fetch count quantum random bytes

        Args:
            count: Number of bytes wanted (non-negative)

        Returns:
            Exactly count bytes

        Raises:
            ParseResponseError: request failed or the response was unusable
        """
        if count <= 0:
            return b""

        chunk_size = max(1, self.settings.max_request)
        result = bytearray()

        with httpx.Client(headers=self._headers(), timeout=self.settings.timeout,
                          transport=self.transport) as client:
            remaining = count
            while remaining > 0:
                length = min(remaining, chunk_size)
                result.extend(self._fetch_chunk(client, length))
                remaining -= length

        return bytes(result)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.settings.api_key:
            headers["x-api-key"] = self.settings.api_key
        return headers

    def _fetch_chunk(self, client: httpx.Client, length: int) -> bytes:
        self.logger.debug(f"Requesting {length} bytes from {self.settings.url}")
        try:
            r = client.get(self.settings.url, params={"length": length, "type": "uint8"})
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ParseResponseError(f"Request to ANU server failed: {e}") from e

        if r.status_code != 200:
            raise ParseResponseError(f"HTTP {r.status_code} :: {r.text}")

        try:
            payload = r.json()
        except ValueError as e:
            raise ParseResponseError(f"Response is not valid JSON: {r.text!r}") from e

        return bytes(parse_response(payload, length))


def parse_response(payload: Any, length: int) -> List[int]:
    """
    Validate a decoded ANU response and extract its byte values

    Args:
        payload: Decoded JSON document
        length: Number of values that were requested

    Returns:
        List of ints in 0..255, exactly length long
    """
    if not isinstance(payload, dict):
        raise ParseResponseError(f"Expected a JSON object, got: {payload!r}")

    if payload.get("success") is not True:
        message = payload.get("message", "server reported failure")
        raise ParseResponseError(f"Request unsuccessful: {message}")

    data = payload.get("data")
    if not isinstance(data, list):
        raise ParseResponseError(f"Missing 'data' list in response: {payload!r}")

    if len(data) != length:
        raise ParseResponseError(f"Expected {length} values, got {len(data)}")

    for value in data:
        # bool is an int subclass; reject it explicitly
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
            raise ParseResponseError(f"Value out of byte range: {value!r}")

    return data

"""Outbound HTTP transport for calls to the generation API.

:class:`TransportAdapter` owns the transport policy shared by every
generation strategy: one fixed timeout and one TLS verification setting.

- The REST strategy calls :meth:`TransportAdapter.request`, which wraps an
  ``httpx.Client`` and returns a :class:`TransportResponse`.
- The SDK strategy receives :meth:`TransportAdapter.http_options`, which
  hands the same timeout and verification setting to ``google-genai``'s own
  httpx client.  Nothing global is patched; the adapter is passed in
  explicitly.

No retries are performed and no connection pooling is configured beyond
httpx's defaults.
"""

from __future__ import annotations

import json as jsonlib
import logging
from typing import Any

import httpx
from google.genai import types

from naturalps.core.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


class TransportResponse:
    """Uniform view over an HTTP response.

    Attributes:
        status: HTTP status code.
        headers: Response headers (case-insensitive mapping).
    """

    def __init__(self, status: int, headers: httpx.Headers | dict, body: bytes) -> None:
        self.status = status
        self.headers = httpx.Headers(headers)
        self._body = body

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> TransportResponse:
        return cls(response.status_code, response.headers, response.content)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self) -> str:
        return self._body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        try:
            return jsonlib.loads(self._body)
        except ValueError as e:
            raise TransportError(f"Invalid JSON in response (status {self.status}): {e}") from e

    def content(self) -> bytes:
        return self._body


class TransportAdapter:
    """HTTP client wrapper with a fixed timeout and configurable TLS checks.

    Args:
        timeout: Timeout in seconds applied to every call.
        verify: Whether to verify TLS certificates.  ``False`` is a
            security-relevant workaround and is logged as such.
        transport: Optional ``httpx`` transport, used by tests to avoid
            real network access.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        verify: bool = True,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self.verify = verify
        self._transport = transport
        if not verify:
            logger.warning(
                "TLS certificate verification is DISABLED for generation API calls "
                "(NATURALPS_VERIFY_TLS=false)"
            )

    def request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ) -> TransportResponse:
        """Send one HTTP request.

        Args:
            method: HTTP method.
            url: Absolute URL.
            json: Optional JSON body.
            headers: Optional request headers.
            params: Optional query parameters.

        Returns:
            The response, whatever its status code.

        Raises:
            TransportError: On connection failures and timeouts.
        """
        try:
            with httpx.Client(
                timeout=self.timeout, verify=self.verify, transport=self._transport
            ) as client:
                response = client.request(method, url, json=json, headers=headers, params=params)
        except httpx.HTTPError as e:
            logger.error(f"{method} {_redact(url)} failed: {e}")
            raise TransportError(f"{method} {_redact(url)} failed: {e}") from e

        logger.debug(f"{method} {_redact(url)} -> {response.status_code}")
        return TransportResponse.from_httpx(response)

    def post_json(self, url: str, payload: Any, **kwargs) -> TransportResponse:
        return self.request(
            "POST", url, json=payload, headers={"Content-Type": "application/json"}, **kwargs
        )

    def http_options(self) -> types.HttpOptions:
        """Return ``google-genai`` HTTP options matching this adapter's policy."""
        return types.HttpOptions(
            timeout=int(self.timeout * 1000),
            client_args={"verify": self.verify},
        )


def _redact(url: str) -> str:
    """Strip the query string (which may carry the API key) from *url*."""
    return url.split("?", 1)[0]

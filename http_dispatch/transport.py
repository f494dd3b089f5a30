"""Transport - The network capability the Dispatcher executes requests with.

Anything with ``async execute(WireRequest) -> TransportResponse`` is a
transport. HttpxTransport is the default, backed by httpx.AsyncClient.
Pooling, TLS and redirect policy belong to the transport; the Dispatcher
never configures them.
"""

from __future__ import annotations

import ssl
from typing import Any, Protocol

import httpx

from http_dispatch.models import DispatcherConfig, TransportResponse, WireRequest


class Transport(Protocol):
    async def execute(self, request: WireRequest) -> TransportResponse:
        """Send the request once. Raise on any transport-level failure."""
        ...


class HttpxTransport:
    """Executes wire requests with an httpx.AsyncClient.

    Redirects are not followed, so 3xx responses reach the classifier as-is.

    Usage:
        async with HttpxTransport(timeout=10.0) as transport:
            response = await transport.execute(wire_request)
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        ca_bundle: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            client: Existing client to use. The caller keeps ownership and
                    must close it; the other arguments are ignored.
            timeout: Request timeout in seconds.
            verify_ssl: Verify server certificates.
            ca_bundle: CA bundle path for server verification.
            headers: Headers added to every request. Wire request headers
                     win on collision.
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            **self._build_client_kwargs(timeout, verify_ssl, ca_bundle, headers)
        )

    @classmethod
    def from_config(cls, config: DispatcherConfig) -> "HttpxTransport":
        return cls(
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
            ca_bundle=config.ca_bundle,
            headers=config.headers,
        )

    @staticmethod
    def _build_client_kwargs(
        timeout: float,
        verify_ssl: bool,
        ca_bundle: str | None,
        headers: dict[str, str] | None,
    ) -> dict[str, Any]:
        """Build kwargs for httpx.AsyncClient including TLS configuration."""
        kwargs: dict[str, Any] = {
            "timeout": timeout,
            "follow_redirects": False,
        }
        if headers:
            kwargs["headers"] = headers

        if ca_bundle:
            kwargs["verify"] = ssl.create_default_context(cafile=ca_bundle)
        elif not verify_ssl:
            kwargs["verify"] = False
        # else: use httpx default (True)

        return kwargs

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def execute(self, request: WireRequest) -> TransportResponse:
        """Send one request.

        Raises:
            httpx.RequestError: On timeouts, connection and protocol failures.
        """
        response = await self._client.request(
            method=request.method.value,
            url=request.url,
            headers=request.headers,
            content=request.body,
        )
        return TransportResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            content=response.content,
        )

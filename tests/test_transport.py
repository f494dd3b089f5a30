"""Tests for HttpxTransport and the full pipeline over httpx.MockTransport.

httpx.MockTransport stands in for the network, so the real client code paths
(header handling, content, status codes) run without sockets.
"""

import json

import httpx
import pytest

from http_dispatch.dispatcher import Dispatcher
from http_dispatch.errors import ClientError, TransportError, UnknownError
from http_dispatch.models import (
    ContentKind,
    DispatcherConfig,
    HTTPMethod,
    RequestDescriptor,
    WireRequest,
)
from http_dispatch.transport import HttpxTransport


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestClientKwargs:
    def test_defaults(self) -> None:
        kwargs = HttpxTransport._build_client_kwargs(30.0, True, None, None)
        assert kwargs == {"timeout": 30.0, "follow_redirects": False}

    def test_verification_disabled(self) -> None:
        kwargs = HttpxTransport._build_client_kwargs(10.0, False, None, {"X-Key": "k"})
        assert kwargs["verify"] is False
        assert kwargs["headers"] == {"X-Key": "k"}


class TestExecute:
    @pytest.mark.asyncio
    async def test_sends_wire_request(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"id": 9}, headers={"X-Trace": "t1"})

        transport = HttpxTransport(client=_client(handler))
        response = await transport.execute(
            WireRequest(
                method=HTTPMethod.POST,
                url="https://api.example.com/users",
                headers={"Content-Type": "application/json", "X-Request-Id": "r1"},
                body=b'{"name": "Ann"}',
            )
        )

        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert str(seen[0].url) == "https://api.example.com/users"
        assert seen[0].headers["x-request-id"] == "r1"
        assert seen[0].content == b'{"name": "Ann"}'

        assert response.status_code == 201
        assert json.loads(response.content) == {"id": 9}
        assert response.headers["x-trace"] == "t1"

    @pytest.mark.asyncio
    async def test_transport_errors_propagate(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        transport = HttpxTransport(client=_client(handler))
        with pytest.raises(httpx.ConnectError):
            await transport.execute(WireRequest(method=HTTPMethod.GET, url="https://x.test/"))

    @pytest.mark.asyncio
    async def test_borrowed_client_not_closed(self) -> None:
        client = _client(lambda request: httpx.Response(200))
        transport = HttpxTransport(client=client)
        await transport.aclose()
        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self) -> None:
        transport = HttpxTransport.from_config(DispatcherConfig(base_url="https://x.test"))
        async with transport:
            pass
        assert transport._client.is_closed


class TestPipelineOverHttpx:
    @pytest.mark.asyncio
    async def test_json_round_trip(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["content-type"] == "application/json"
            return httpx.Response(200, content=request.content)

        dispatcher = Dispatcher("https://api.example.com", HttpxTransport(client=_client(handler)))
        descriptor = RequestDescriptor(
            path="/echo",
            method=HTTPMethod.POST,
            default_body_fields={"a": 1, "b": 2},
            extra_body_fields={"b": 3, "c": 4},
        )
        assert await dispatcher.dispatch(descriptor) == {"a": 1, "b": 3, "c": 4}

    @pytest.mark.asyncio
    async def test_form_body_reaches_server(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["content-type"] == "application/x-www-form-urlencoded"
            return httpx.Response(200, json={"raw": request.content.decode()})

        dispatcher = Dispatcher("https://api.example.com", HttpxTransport(client=_client(handler)))
        descriptor = RequestDescriptor(
            path="/login",
            method=HTTPMethod.POST,
            content_kind=ContentKind.URL_ENCODED,
            default_body_fields={"user": "ann", "pass": "p&ss word"},
        )
        assert await dispatcher.dispatch(descriptor) == {"raw": "user=ann&pass=p%26ss+word"}

    @pytest.mark.asyncio
    async def test_redirect_not_followed(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(302, headers={"Location": "https://elsewhere.test/"})

        client = httpx.AsyncClient(
            transport=httpx.MockTransport(handler), follow_redirects=False
        )
        dispatcher = Dispatcher("https://api.example.com", HttpxTransport(client=client))
        with pytest.raises(UnknownError):
            await dispatcher.dispatch(RequestDescriptor(path="/moved"))

    @pytest.mark.asyncio
    async def test_not_found(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, content=b"no such user")

        dispatcher = Dispatcher("https://api.example.com", HttpxTransport(client=_client(handler)))
        with pytest.raises(ClientError) as exc_info:
            await dispatcher.dispatch(RequestDescriptor(path="/users/404"))
        assert exc_info.value.content == b"no such user"

    @pytest.mark.asyncio
    async def test_connect_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        dispatcher = Dispatcher("https://api.example.com", HttpxTransport(client=_client(handler)))
        with pytest.raises(TransportError) as exc_info:
            await dispatcher.dispatch(RequestDescriptor(path="/x"))
        assert isinstance(exc_info.value.cause, httpx.ConnectError)

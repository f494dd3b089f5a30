"""Pytest configuration and fixtures for http-dispatch tests.

This file provides:
- RecordingTransport: In-memory transport that records every request
- Fixtures: Shared descriptors, responses and transports
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from http_dispatch.models import (
    ContentKind,
    HTTPMethod,
    MultipartPart,
    RequestDescriptor,
    TransportResponse,
    WireRequest,
)


def make_transport_response(
    status_code: int = 200,
    body: Any = None,
    content: bytes | None = None,
    headers: dict[str, str] | None = None,
) -> TransportResponse:
    """Create a TransportResponse. ``body`` is JSON-encoded unless content is given."""
    if content is None and body is not None:
        content = json.dumps(body).encode("utf-8")
    return TransportResponse(
        status_code=status_code,
        headers=headers or {"content-type": "application/json"},
        content=content,
    )


class RecordingTransport:
    """Transport double: records requests, returns a canned response or raises.

    Set ``block`` to make execute() wait until cancelled.
    """

    def __init__(
        self,
        response: TransportResponse | None = None,
        error: Exception | None = None,
    ) -> None:
        self.response = response or make_transport_response(body={"ok": True})
        self.error = error
        self.block = False
        self.started = asyncio.Event()
        self.requests: list[WireRequest] = []

    async def execute(self, request: WireRequest) -> TransportResponse:
        self.requests.append(request)
        self.started.set()
        if self.block:
            await asyncio.Event().wait()
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def response_factory():
    return make_transport_response


@pytest.fixture
def jpeg_part() -> MultipartPart:
    return MultipartPart(
        field_name="file",
        file_name="file.jpg",
        mime_type="image/jpeg",
        content=b"\xff\xd8\xff\xe0\x00\x10JFIF\x00--not-a-boundary\r\n\xff\xd9",
    )


@pytest.fixture
def json_post() -> RequestDescriptor:
    return RequestDescriptor(
        path="/users",
        method=HTTPMethod.POST,
        content_kind=ContentKind.JSON,
        default_headers={"Accept": "application/json", "X-Client": "tests"},
        extra_headers={"X-Request-Id": "req-1"},
        default_body_fields={"role": "member", "active": True},
        extra_body_fields={"name": "Ann", "role": "admin"},
    )

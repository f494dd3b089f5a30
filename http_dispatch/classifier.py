"""Response Classifier - Maps a transport outcome to a value or a DispatchError.

    2xx           -> decoder(content), NoDataError if empty, DecodingError on failure
    4xx           -> ClientError(status, raw bytes)
    5xx           -> ServerError(status, raw bytes)
    anything else -> UnknownError

Classification never raises anything but DispatchError subclasses.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping, TypeVar

from pydantic import TypeAdapter

from http_dispatch.errors import (
    ClientError,
    DecodingError,
    NoDataError,
    ServerError,
    UnknownError,
)

T = TypeVar("T")

Decoder = Callable[[bytes], T]


def decode_json(content: bytes) -> Any:
    """Decode a body as plain JSON (dicts, lists, scalars)."""
    return json.loads(content)


def model_decoder(tp: type[T]) -> Decoder[T]:
    """Return a decoder that validates JSON bytes into ``tp`` via pydantic.

    ``tp`` may be a BaseModel subclass, a dataclass, or any annotation pydantic
    understands (``list[Item]``, ``dict[str, int]``, ...).
    """
    adapter = TypeAdapter(tp)

    def decode(content: bytes) -> T:
        return adapter.validate_json(content)

    return decode


def classify(
    status_code: int,
    headers: Mapping[str, str] | None,
    content: bytes | None,
    decoder: Decoder[T],
) -> T:
    """Classify a transport response.

    Args:
        status_code: HTTP status reported by the transport.
        headers: Response headers. Not inspected; accepted so transports can
            pass their full response through.
        content: Raw body, or None if the transport produced none.
        decoder: Decode capability for 2xx bodies.

    Returns:
        The decoded value.

    Raises:
        NoDataError, DecodingError, ClientError, ServerError, UnknownError.
    """
    # bool is an int subclass but never a status code
    if not isinstance(status_code, int) or isinstance(status_code, bool):
        raise UnknownError(status_code)

    if 200 <= status_code <= 299:
        if not content:
            raise NoDataError()
        try:
            return decoder(content)
        except Exception as e:
            raise DecodingError(e) from e

    if 400 <= status_code <= 499:
        raise ClientError(status_code, content)

    if 500 <= status_code <= 599:
        raise ServerError(status_code, content)

    raise UnknownError(status_code)

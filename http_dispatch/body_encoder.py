"""Body Encoder - Turns merged body fields or multipart parts into wire bytes.

Three strategies, selected by ContentKind:
    json        -> JSON object, application/json
    urlEncoded  -> key=value&..., percent-encoded, application/x-www-form-urlencoded
    multipart   -> multipart/form-data with a caller-supplied boundary

Each returns the payload together with the Content-Type header value that
must accompany it, so the builder never negotiates the header separately.
"""

from __future__ import annotations

import json
import uuid
from typing import Any, Sequence
from urllib.parse import urlencode

from http_dispatch.models import ContentKind, MultipartPart


class EncodeError(Exception):
    """Base class for body encoding errors."""


class UnsupportedValueError(EncodeError):
    """Raised when a value cannot be represented in the target encoding."""


class NoPartsError(EncodeError):
    """Raised when a multipart body is requested without any parts."""


def new_boundary() -> str:
    """Return a fresh multipart boundary token, unique per request."""
    return f"Boundary-{uuid.uuid4().hex.upper()}"


def stringify(value: Any) -> str:
    """String form of a field value for query strings and form bodies.

    Booleans use JSON spelling (true/false) so servers parse them the same
    way whether a field arrives in a JSON body or a form body.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def form_pairs(fields: dict[str, Any]) -> list[tuple[str, str]]:
    """Stringified (key, value) pairs in the merged map's iteration order."""
    return [(key, stringify(value)) for key, value in fields.items()]


def encode_body(
    content_kind: ContentKind,
    body_fields: dict[str, Any],
    multipart_parts: Sequence[MultipartPart] | None,
    boundary: str,
) -> tuple[bytes, str]:
    """Encode a request body.

    Args:
        content_kind: Which encoding strategy to use.
        body_fields: Merged body fields (ignored for multipart).
        multipart_parts: Ordered parts (used only for multipart).
        boundary: Boundary token (used only for multipart).

    Returns:
        Tuple of (payload bytes, Content-Type header value).

    Raises:
        UnsupportedValueError: If a JSON value is not serializable, or the
            multipart boundary is empty.
        NoPartsError: If multipart is requested with no parts.
    """
    if content_kind == ContentKind.JSON:
        return encode_json(body_fields), content_kind.header_value
    if content_kind == ContentKind.URL_ENCODED:
        return encode_urlencoded(body_fields), content_kind.header_value
    if content_kind == ContentKind.MULTIPART:
        payload = encode_multipart(multipart_parts, boundary)
        return payload, f"{content_kind.header_value}; boundary={boundary}"
    raise UnsupportedValueError(f"Unsupported content kind: {content_kind!r}")


def encode_json(body_fields: dict[str, Any]) -> bytes:
    """Serialize body fields as a JSON object (UTF-8)."""
    try:
        # allow_nan=False: NaN/Infinity are not valid JSON
        text = json.dumps(body_fields, ensure_ascii=False, allow_nan=False)
        return text.encode("utf-8")
    except (TypeError, ValueError) as e:
        # UnicodeEncodeError (lone surrogates) is a ValueError
        raise UnsupportedValueError(f"Body field is not JSON-serializable: {e}") from e


def encode_urlencoded(body_fields: dict[str, Any]) -> bytes:
    """Serialize body fields as an application/x-www-form-urlencoded body."""
    return encode_query(form_pairs(body_fields)).encode("ascii")


def encode_query(pairs: list[tuple[str, str]]) -> str:
    """Percent-encode pairs as key=value&... (form encoding, space as +)."""
    try:
        return urlencode(pairs)
    except UnicodeEncodeError as e:
        raise UnsupportedValueError(f"Field is not UTF-8 encodable: {e}") from e


def encode_multipart(
    multipart_parts: Sequence[MultipartPart] | None,
    boundary: str,
) -> bytes:
    """Build a multipart/form-data body.

    Layout per part: delimiter line, Content-Disposition, Content-Type, blank
    line, raw bytes, CRLF. Closed by ``--{boundary}--``. Part bytes are never
    inspected or re-encoded.
    """
    if not multipart_parts:
        raise NoPartsError("Multipart body requires at least one part")
    if not boundary:
        raise UnsupportedValueError("Multipart boundary must not be empty")

    body = bytearray()
    for part in multipart_parts:
        body += f"--{boundary}\r\n".encode("utf-8")
        body += (
            f'Content-Disposition: form-data; name="{part.field_name}"; '
            f'filename="{part.file_name}"\r\n'
        ).encode("utf-8")
        body += f"Content-Type: {part.mime_type}\r\n\r\n".encode("utf-8")
        body += part.content
        body += b"\r\n"
    body += f"--{boundary}--\r\n".encode("utf-8")
    return bytes(body)

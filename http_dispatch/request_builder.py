"""Request Builder - Resolves a RequestDescriptor into a WireRequest.

GET requests carry merged body fields as query parameters and never have a
body. Every other method sends merged headers plus a body from the Body
Encoder, whose Content-Type replaces any caller-supplied one.

See DESIGN.md "Request Builder" for the GET + multipart decision.
"""

from __future__ import annotations

import httpx

from http_dispatch.body_encoder import encode_body, encode_query, form_pairs, new_boundary
from http_dispatch.models import ContentKind, HTTPMethod, RequestDescriptor, WireRequest


class BuildError(Exception):
    """Base class for request build errors."""


class InvalidURLError(BuildError):
    """Raised when base URL + path is not a usable absolute URL."""


_SUPPORTED_SCHEMES = frozenset({"http", "https"})


def build_wire_request(
    descriptor: RequestDescriptor,
    base_url: str,
    boundary: str | None = None,
) -> WireRequest:
    """Build the wire request for one dispatch.

    Args:
        descriptor: The declarative request.
        base_url: Base URL the descriptor path is appended to (plain
            concatenation, no slash normalization).
        boundary: Multipart boundary. Generated when None and a multipart body
            is needed; pass one explicitly for reproducible output.

    Returns:
        Immutable WireRequest.

    Raises:
        InvalidURLError: If the resolved URL does not parse.
        EncodeError: If the body cannot be encoded.
    """
    url = resolve_url(base_url, descriptor.path)
    headers = descriptor.merged_headers

    if descriptor.method == HTTPMethod.GET:
        # Multipart parts are never sent on GET; body fields become the query.
        pairs = form_pairs(descriptor.merged_body_fields)
        if pairs:
            url = _append_query(url, encode_query(pairs))
        return WireRequest(method=descriptor.method, url=url, headers=headers)

    if descriptor.content_kind == ContentKind.MULTIPART and boundary is None:
        boundary = new_boundary()

    body, content_type = encode_body(
        descriptor.content_kind,
        descriptor.merged_body_fields,
        descriptor.multipart_parts,
        boundary or "",
    )

    headers = {k: v for k, v in headers.items() if k.lower() != "content-type"}
    headers["Content-Type"] = content_type

    return WireRequest(method=descriptor.method, url=url, headers=headers, body=body)


def resolve_url(base_url: str, path: str) -> str:
    """Concatenate base URL and path, validating the result.

    Raises:
        InvalidURLError: If the URL is malformed, relative, or not http(s).
    """
    raw = base_url + path
    try:
        parsed = httpx.URL(raw)
    except httpx.InvalidURL as e:
        raise InvalidURLError(f"Invalid URL '{raw}': {e}") from e

    if parsed.scheme not in _SUPPORTED_SCHEMES or not parsed.host:
        raise InvalidURLError(f"Invalid URL '{raw}': expected an absolute http(s) URL")
    return raw


def _append_query(url: str, query: str) -> str:
    """Append an encoded query, keeping any #fragment after it."""
    url, hash_sign, fragment = url.partition("#")
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}{hash_sign}{fragment}"

"""Internal data models for http-dispatch.

All models use Pydantic v2. See DESIGN.md "Data Model" for the merge rules.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Enums
# =============================================================================


class HTTPMethod(str, Enum):
    """HTTP methods a descriptor can declare."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class ContentKind(str, Enum):
    """How merged body fields (or multipart parts) are put on the wire."""

    JSON = "json"
    URL_ENCODED = "urlEncoded"
    MULTIPART = "multipart"

    @property
    def header_value(self) -> str:
        """MIME type sent as Content-Type (multipart adds the boundary)."""
        return _CONTENT_TYPES[self]


_CONTENT_TYPES = {
    ContentKind.JSON: "application/json",
    ContentKind.URL_ENCODED: "application/x-www-form-urlencoded",
    ContentKind.MULTIPART: "multipart/form-data",
}


class LogLevel(IntEnum):
    """Diagnostic verbosity, ordered. Messages below the threshold are dropped."""

    VERBOSE = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


# =============================================================================
# Request Models
# =============================================================================


class MultipartPart(BaseModel):
    """One file part of a multipart/form-data body."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    field_name: str = Field(description="Form field name")
    file_name: str = Field(description="File name reported to the server")
    mime_type: str = Field(description="Content-Type of this part, e.g., image/jpeg")
    content: bytes = Field(description="Raw part bytes, sent verbatim")


class RequestDescriptor(BaseModel):
    """Declarative description of one logical request.

    Defaults hold what an endpoint always sends; extras hold what one call
    adds. Extras win on key collision. Subclass to pin an endpoint's fixed
    values as field defaults:

        class UploadAvatar(RequestDescriptor):
            path: str = "/avatar"
            method: HTTPMethod = HTTPMethod.POST
            content_kind: ContentKind = ContentKind.MULTIPART
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str = Field(description="Path appended to the dispatcher's base URL")
    method: HTTPMethod = Field(default=HTTPMethod.GET, description="HTTP method")
    content_kind: ContentKind = Field(
        default=ContentKind.JSON, description="Body encoding for non-GET requests"
    )
    default_headers: dict[str, str] = Field(
        default_factory=dict, description="Headers every call sends"
    )
    extra_headers: dict[str, str] | None = Field(
        default=None, description="Per-call headers, override defaults by key"
    )
    default_body_fields: dict[str, Any] = Field(
        default_factory=dict, description="Body (or query, for GET) fields every call sends"
    )
    extra_body_fields: dict[str, Any] | None = Field(
        default=None, description="Per-call body fields, override defaults by key"
    )
    multipart_parts: list[MultipartPart] | None = Field(
        default=None, description="Ordered parts for multipart bodies"
    )

    @property
    def merged_headers(self) -> dict[str, str]:
        """Header names compare case-insensitively; the extra spelling wins."""
        return _merge_headers(self.default_headers, self.extra_headers)

    @property
    def merged_body_fields(self) -> dict[str, Any]:
        return _merge(self.default_body_fields, self.extra_body_fields)


def _merge(defaults: dict[str, Any], extra: dict[str, Any] | None) -> dict[str, Any]:
    """Left-biased union: extra wins, overridden keys keep the default's position."""
    merged = dict(defaults)
    if extra:
        merged.update(extra)
    return merged


def _merge_headers(defaults: dict[str, str], extra: dict[str, str] | None) -> dict[str, str]:
    """Like _merge, but "accept" and "Accept" are the same key."""
    merged = dict(defaults)
    for key, value in (extra or {}).items():
        existing = next((k for k in merged if k.lower() == key.lower()), None)
        if existing is not None and existing != key:
            # rename in place so the header keeps its position
            merged = {(key if k == existing else k): v for k, v in merged.items()}
        merged[key] = value
    return merged


class WireRequest(BaseModel):
    """Fully resolved, transport-ready request. Built once per dispatch."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    method: HTTPMethod = Field(description="HTTP method")
    url: str = Field(description="Absolute URL, including the query string for GET")
    headers: dict[str, str] = Field(default_factory=dict, description="Final header set")
    body: bytes | None = Field(default=None, description="Encoded body, None for GET")


class TransportResponse(BaseModel):
    """Status, headers and bytes returned by a transport."""

    model_config = ConfigDict(extra="forbid")

    status_code: int = Field(description="HTTP status code")
    headers: dict[str, str] = Field(default_factory=dict, description="Response headers")
    content: bytes | None = Field(default=None, description="Raw response body")


# =============================================================================
# Runtime Configuration Models
# =============================================================================


class DispatcherConfig(BaseModel):
    """Configuration for a Dispatcher backed by the default httpx transport."""

    model_config = ConfigDict(extra="forbid")

    base_url: str = Field(description="Base URL every descriptor path is appended to")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Diagnostic threshold")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify server certificates")
    ca_bundle: str | None = Field(default=None, description="Path to a CA bundle")
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Headers the transport adds to every request (supports ${ENV_VAR})",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def parse_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            if v.isdigit():
                return int(v)
            try:
                return LogLevel[v.upper()]
            except KeyError:
                valid = ", ".join(level.name.lower() for level in LogLevel)
                raise ValueError(f"unknown log level '{v}' (valid: {valid})") from None
        return v

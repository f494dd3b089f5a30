"""Dispatch errors - the closed taxonomy every failed dispatch raises.

Each error is terminal: nothing in the pipeline retries or substitutes a
fallback value. Callers switch on the class (or on ``error.kind``) and read
the carried context (status code, raw bytes, underlying cause) to decide how
to recover.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Discriminator shared by every DispatchError subclass."""

    INVALID_REQUEST = "invalid_request"
    TRANSPORT_ERROR = "transport_error"
    NO_DATA = "no_data"
    DECODING_ERROR = "decoding_error"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    UNKNOWN_ERROR = "unknown_error"


class DispatchError(Exception):
    """Base class for dispatch errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN_ERROR


class InvalidRequestError(DispatchError):
    """Raised when a descriptor cannot be built into a wire request.

    No transport call has been made when this is raised.
    """

    kind = ErrorKind.INVALID_REQUEST

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"Invalid request: {cause}")
        self.cause = cause


class TransportError(DispatchError):
    """Raised when the transport fails before producing a response."""

    kind = ErrorKind.TRANSPORT_ERROR

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"Network error: {cause}")
        self.cause = cause


class NoDataError(DispatchError):
    """Raised for a 2xx response with an empty body."""

    kind = ErrorKind.NO_DATA

    def __init__(self) -> None:
        super().__init__("No data received.")


class DecodingError(DispatchError):
    """Raised when a 2xx body fails to decode into the expected type."""

    kind = ErrorKind.DECODING_ERROR

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"Decoding error: {cause}")
        self.cause = cause


class HTTPStatusError(DispatchError):
    """Base for 4xx/5xx responses. The raw body is kept unmodified."""

    _label = "HTTP error"

    def __init__(self, status_code: int, content: bytes | None) -> None:
        super().__init__(f"{self._label}: {status_code}")
        self.status_code = status_code
        self.content = content


class ClientError(HTTPStatusError):
    kind = ErrorKind.CLIENT_ERROR
    _label = "Client error"


class ServerError(HTTPStatusError):
    kind = ErrorKind.SERVER_ERROR
    _label = "Server error"


class UnknownError(DispatchError):
    """Raised for any outcome outside the documented status ranges."""

    kind = ErrorKind.UNKNOWN_ERROR

    def __init__(self, status_code: object = None) -> None:
        super().__init__("An unknown error occurred.")
        self.status_code = status_code

"""Diagnostic Emitter - Human-readable request/response output for debugging.

Messages are gated by a LogLevel threshold and written through the stdlib
``http_dispatch`` logger. The emitter holds no mutable state, so concurrent
dispatches can share one instance.
"""

from __future__ import annotations

import logging
import shlex
from typing import Mapping

from http_dispatch.errors import DispatchError, ServerError, TransportError
from http_dispatch.models import HTTPMethod, LogLevel, WireRequest

logger = logging.getLogger("http_dispatch")

_LOGGING_LEVELS = {
    LogLevel.VERBOSE: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


def to_curl_command(request: WireRequest) -> str:
    """Render a shell command that replays the request with curl.

    The body is included only when it is valid UTF-8; binary bodies (e.g.,
    image parts in multipart uploads) are left out.
    """
    parts = ["curl", shlex.quote(request.url)]
    if request.method != HTTPMethod.GET:
        parts += ["-X", request.method.value]
    for key, value in request.headers.items():
        parts += ["-H", shlex.quote(f"{key}: {value}")]
    if request.body:
        try:
            body_text = request.body.decode("utf-8")
        except UnicodeDecodeError:
            body_text = None
        if body_text is not None:
            parts += ["--data", shlex.quote(body_text)]
    return " ".join(parts)


class DiagnosticEmitter:
    """Emits dispatch diagnostics at or above a configured threshold.

    Usage:
        emitter = DiagnosticEmitter(LogLevel.VERBOSE)
        emitter.on_request_built(wire_request)
    """

    def __init__(
        self,
        log_level: LogLevel = LogLevel.INFO,
        log: logging.Logger | None = None,
    ) -> None:
        self._log_level = LogLevel(log_level)
        self._logger = log or logger

    @property
    def log_level(self) -> LogLevel:
        return self._log_level

    def enabled_for(self, level: LogLevel) -> bool:
        return level >= self._log_level

    def on_request_built(self, request: WireRequest) -> None:
        self._emit(LogLevel.INFO, f"[Request] {request.method.value} {request.url}")
        if self.enabled_for(LogLevel.VERBOSE):
            self._emit(LogLevel.VERBOSE, f"[cURL Command] {to_curl_command(request)}")

    def on_response_received(
        self,
        status_code: int,
        headers: Mapping[str, str] | None,
        content: bytes | None,
    ) -> None:
        self._emit(LogLevel.INFO, f"[Response] {status_code}")
        if content is not None and self.enabled_for(LogLevel.VERBOSE):
            text = content.decode("utf-8", errors="replace")
            self._emit(LogLevel.VERBOSE, f"[Response Data] {text}")

    def on_dispatch_failed(self, error: DispatchError) -> None:
        # Server and network faults are not the caller's doing
        if isinstance(error, (TransportError, ServerError)):
            level = LogLevel.ERROR
        else:
            level = LogLevel.WARNING
        self._emit(level, f"[Dispatch Error] {error}")

    def _emit(self, level: LogLevel, message: str) -> None:
        if not self.enabled_for(level):
            return
        self._logger.log(_LOGGING_LEVELS[level], message)

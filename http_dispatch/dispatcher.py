"""Dispatcher - Builds, sends and classifies one declarative request.

Pipeline per call:
    build_wire_request -> on_request_built -> transport.execute
        -> on_response_received -> classify

Every failure reaches the caller as a DispatchError subclass. Nothing is
retried, cached, or defaulted. See DESIGN.md "Dispatcher" for the rationale
behind wrapping every transport exception.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from http_dispatch.body_encoder import EncodeError, new_boundary
from http_dispatch.classifier import Decoder, classify, decode_json, model_decoder
from http_dispatch.diagnostics import DiagnosticEmitter
from http_dispatch.errors import DispatchError, InvalidRequestError, TransportError
from http_dispatch.models import (
    DispatcherConfig,
    LogLevel,
    RequestDescriptor,
    TransportResponse,
    WireRequest,
)
from http_dispatch.request_builder import BuildError, build_wire_request
from http_dispatch.transport import HttpxTransport, Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Dispatcher:
    """Single entry point for executing RequestDescriptors.

    Base URL, transport and emitter are fixed at construction, so one
    instance can serve any number of concurrent dispatches.

    Usage:
        dispatcher = Dispatcher("https://api.example.com", transport)
        user = await dispatcher.dispatch(GetUser(path="/users/1"), response_type=User)

    Or owning an httpx transport built from config:
        async with Dispatcher.from_config(config) as dispatcher:
            data = await dispatcher.dispatch(descriptor)
    """

    def __init__(
        self,
        base_url: str,
        transport: Transport,
        log_level: LogLevel = LogLevel.INFO,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            base_url: Prefix for every descriptor path.
            transport: Network capability used for execution.
            log_level: Diagnostic threshold (ignored when emitter is given).
            emitter: Diagnostic emitter. Defaults to one at log_level.
        """
        self._base_url = base_url
        self._transport = transport
        self._emitter = emitter or DiagnosticEmitter(log_level)
        self._owned_transport: HttpxTransport | None = None

    @classmethod
    def from_config(cls, config: DispatcherConfig) -> "Dispatcher":
        """Create a dispatcher that owns an HttpxTransport built from config."""
        transport = HttpxTransport.from_config(config)
        dispatcher = cls(config.base_url, transport, log_level=config.log_level)
        dispatcher._owned_transport = transport
        return dispatcher

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def log_level(self) -> LogLevel:
        return self._emitter.log_level

    async def __aenter__(self) -> "Dispatcher":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the transport if this dispatcher created it."""
        if self._owned_transport is not None:
            await self._owned_transport.aclose()

    async def dispatch(
        self,
        descriptor: RequestDescriptor,
        decoder: Decoder[T] | None = None,
        *,
        response_type: type[T] | None = None,
    ) -> T:
        """Execute a descriptor and return the decoded 2xx body.

        Args:
            descriptor: The request to send.
            decoder: Decode capability for the response body. Defaults to
                     plain JSON decoding.
            response_type: Alternative to decoder: a type validated with
                           pydantic (BaseModel, list[Model], ...).

        Returns:
            The decoded response body.

        Raises:
            ValueError: If both decoder and response_type are given.
            InvalidRequestError: Descriptor could not be built; nothing was sent.
            TransportError: Transport failed before producing a response.
            NoDataError, DecodingError, ClientError, ServerError, UnknownError:
                See classifier.classify.
        """
        if decoder is not None and response_type is not None:
            raise ValueError("Pass either decoder or response_type, not both")
        if response_type is not None:
            decoder = model_decoder(response_type)
        elif decoder is None:
            decoder = decode_json

        try:
            return await self._run(descriptor, decoder)
        except DispatchError as e:
            self._notify(self._emitter.on_dispatch_failed, e)
            raise

    async def _run(self, descriptor: RequestDescriptor, decoder: Decoder[T]) -> T:
        try:
            request = build_wire_request(descriptor, self._base_url, new_boundary())
        except (BuildError, EncodeError) as e:
            raise InvalidRequestError(e) from e

        self._notify(self._emitter.on_request_built, request)

        response = await self._execute(request)

        self._notify(
            self._emitter.on_response_received,
            response.status_code,
            response.headers,
            response.content,
        )

        return classify(response.status_code, response.headers, response.content, decoder)

    async def _execute(self, request: WireRequest) -> TransportResponse:
        """Invoke the transport exactly once.

        CancelledError derives from BaseException and passes through untouched.
        """
        try:
            return await self._transport.execute(request)
        except Exception as e:
            raise TransportError(e) from e

    def _notify(self, hook: Callable[..., None], *args: Any) -> None:
        """Call an emitter hook. Diagnostics never affect the dispatch outcome."""
        try:
            hook(*args)
        except Exception:
            logger.exception("Diagnostic emitter %s failed", getattr(hook, "__name__", hook))

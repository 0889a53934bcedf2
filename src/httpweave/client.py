"""Execution engine for httpweave requests.

This module provides the HttpClient class, which turns immutable ``Request``
snapshots into ``Response`` objects. A call chain is driven as one coroutine:
pre-send middleware, body rendering, the transport exchange raced against
the request timeout, redirect hops built as fresh snapshots, response
decompression, and finally the post-completion middleware.
"""

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any, Self

import httpx
from httpx._decoders import ContentDecoder, DeflateDecoder, GZipDecoder

from .body import PendingBody, render_body, resolve_body
from .config import HttpWeaveSettings, get_settings
from .exceptions import (
    HttpStatusError,
    InvalidArgumentError,
    RedirectLimitError,
    RequestTimeoutError,
    SerializationError,
    TransportFailureError,
)
from .log_config import logger
from .middleware import Middleware, MiddlewareRegistry
from .models import Transport, TransportCall
from .request import ACCEPT_ENCODING, Request, normalize_url
from .response import Response, ResponseMode
from .transport import HttpxTransport
from .types import Capability, HttpMethod, Phase


class ExecutionState(StrEnum):
    """States a call chain moves through."""

    CONFIGURED = "configured"
    SENDING = "sending"
    AWAITING_RESPONSE = "awaiting_response"
    REDIRECTING = "redirecting"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass
class CallChain:
    """An original request plus every redirect hop it generates."""

    origin: Request
    state: ExecutionState = ExecutionState.CONFIGURED
    history: list[httpx.URL] = field(default_factory=list)

    def transition(self, state: ExecutionState) -> None:
        logger.debug(f"{self.origin}: {self.state} -> {state}")
        self.state = state


_DECODERS: dict[str, type[ContentDecoder]] = {
    "gzip": GZipDecoder,
    "deflate": DeflateDecoder,
}


def _decoder_for(content_encoding: str | None) -> ContentDecoder | None:
    """Pick httpx's decoder for the encodings requested by ``Accept-Encoding``."""
    decoder_cls = _DECODERS.get((content_encoding or "").strip().lower())
    return decoder_cls() if decoder_cls is not None else None


class HttpClient:
    """Asynchronous HTTP client executing requests through a middleware pipeline.

    The client owns the middleware registry and the transport. Requests are
    created through it so they carry the client's capability set, then
    handed back to ``send``, which resolves exactly once per call chain.

    Key behaviour:
    - Pre-send middleware runs once per hop, post-completion middleware once
      per successful call chain.
    - Redirects are followed sequentially, each hop a fresh request snapshot,
      up to ``settings.max_redirects`` hops.
    - The request timeout applies to each hop and aborts the in-flight call.
    - No failure is retried; see ``httpweave.retry`` for an opt-in policy.

    Attributes:
        _settings: Client-wide defaults.
        _registry: The registered middleware.
        _transport: Transport used to open calls.
        _should_close_transport: Whether this instance owns the transport.
    """

    def __init__(
        self,
        middleware: Iterable[Middleware] | MiddlewareRegistry = (),
        *,
        settings: HttpWeaveSettings | None = None,
        transport: Transport | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the HttpClient.

        Args:
            middleware: Middleware to register, or a prepared registry.
            settings: Client-wide defaults; loaded from the environment if None.
            transport: Optional transport; an ``HttpxTransport`` is created if None.
            http_client: Optional ``httpx.AsyncClient`` for the default transport.
        """
        self._settings = settings or get_settings()
        self._registry = (
            middleware
            if isinstance(middleware, MiddlewareRegistry)
            else MiddlewareRegistry(middleware)
        )
        self._should_close_transport = transport is None
        self._transport: Transport = transport or HttpxTransport(
            http_client, self._settings
        )
        logger.debug(
            f"HttpClient initialized with middleware: {sorted(self._registry.capabilities)}"
        )

    @property
    def middleware(self) -> MiddlewareRegistry:
        return self._registry

    @property
    def settings(self) -> HttpWeaveSettings:
        return self._settings

    @property
    def user_agent(self) -> str:
        return self._settings.user_agent

    def request(
        self,
        method: str,
        url: str | httpx.URL,
        *,
        headers: dict[str, str] | None = None,
        query: dict[str, Any] | None = None,
        body: Any = None,
        timeout: float | None = None,
        follow_redirects: bool | None = None,
        compress: bool = False,
        stream: bool = False,
    ) -> Request:
        """Build a request bound to this client's capabilities.

        Raises:
            InvalidArgumentError: For a malformed URL, method or timeout.
            MissingCapabilityError: If a flag or form body needs middleware
                that is not registered.
        """
        return Request.create(
            url,
            method=method,
            headers=headers,
            query=query,
            body=body,
            timeout=timeout if timeout is not None else self._settings.default_timeout,
            follow_redirects=(
                self._settings.follow_redirects
                if follow_redirects is None
                else follow_redirects
            ),
            compress=compress,
            stream=stream,
            capabilities=self._registry.capabilities,
        )

    def get(self, url: str | httpx.URL, **options: Any) -> Request:
        return self.request(HttpMethod.GET, url, **options)

    def head(self, url: str | httpx.URL, **options: Any) -> Request:
        return self.request(HttpMethod.HEAD, url, **options)

    def post(self, url: str | httpx.URL, **options: Any) -> Request:
        return self.request(HttpMethod.POST, url, **options)

    def put(self, url: str | httpx.URL, **options: Any) -> Request:
        return self.request(HttpMethod.PUT, url, **options)

    def delete(self, url: str | httpx.URL, **options: Any) -> Request:
        return self.request(HttpMethod.DELETE, url, **options)

    def options(self, url: str | httpx.URL, **options: Any) -> Request:
        return self.request(HttpMethod.OPTIONS, url, **options)

    def trace(self, url: str | httpx.URL, **options: Any) -> Request:
        return self.request(HttpMethod.TRACE, url, **options)

    def connect(self, url: str | httpx.URL, **options: Any) -> Request:
        return self.request(HttpMethod.CONNECT, url, **options)

    async def fetch(self, method: str, url: str | httpx.URL, **options: Any) -> Response:
        """Build and send a request in one step."""
        return await self.send(self.request(method, url, **options))

    async def send(self, request: Request) -> Response:
        """Execute a request, following redirects when it asks to.

        Args:
            request: The request snapshot to execute. It is never modified.

        Returns:
            Response: The successful terminal response of the call chain.

        Raises:
            TransportFailureError: Connection-level failure on the final hop.
            SerializationError: The response stream broke or failed to decode.
            HttpStatusError: The terminal status code is outside 2xx.
            RequestTimeoutError: A hop did not complete within ``request.timeout``.
            RedirectLimitError: More than ``settings.max_redirects`` hops.
        """
        chain = CallChain(origin=request)
        hop = request
        while True:
            self._run_phase(Phase.PRE_SEND, hop)
            if isinstance(hop.body, PendingBody):
                hop = replace(
                    hop, body=await resolve_body(hop.body, hop.capabilities)
                )

            outcome = await self._attempt(hop, chain)
            if isinstance(outcome, Response):
                break

            if len(chain.history) >= self._settings.max_redirects:
                chain.transition(ExecutionState.FAILED)
                self._log.error(
                    f"Redirect limit of {self._settings.max_redirects} reached at {hop.url}"
                )
                raise RedirectLimitError(
                    self._settings.max_redirects, method=hop.method, url=str(hop.url)
                )
            chain.transition(ExecutionState.REDIRECTING)
            chain.history.append(hop.url)
            logger.info(f"Following redirect from {hop.url} to {outcome}")
            hop = replace(hop, url=outcome)

        self._run_phase(Phase.POST_COMPLETION, outcome)
        chain.transition(ExecutionState.COMPLETED)
        return outcome

    @property
    def _log(self) -> Any:
        return self._registry.get(Capability.LOGGER) or logger

    def _effective(self, capability: Capability, requested: bool) -> bool:
        forced = self._registry.get(capability)
        return forced if isinstance(forced, bool) else requested

    def _run_phase(self, phase: Phase, target: Request | Response) -> None:
        if phase is Phase.PRE_SEND:
            message = f'Attempting to make a request to "{target}"'
            if self._registry.has(Capability.LOGGER):
                self._log.info(message)
            else:
                logger.debug(message)

        for ware in self._registry.filter(phase):
            ware.intertwine(self, target)

    async def _attempt(self, hop: Request, chain: CallChain) -> Response | httpx.URL:
        """Perform one physical attempt, raced against the hop's timeout.

        Returns:
            Response | httpx.URL: The terminal response, or the absolute URL
                of the next hop when a redirect is to be followed.
        """
        headers = hop.headers.copy()
        if "user-agent" not in headers:
            headers["user-agent"] = self._settings.user_agent
        compress = self._effective(Capability.COMPRESS, hop.compress)
        if compress and "accept-encoding" not in headers:
            headers["accept-encoding"] = ACCEPT_ENCODING
        content = render_body(hop.body, headers)

        logger.trace(f"Request Headers: {headers}")
        call = self._transport.open(hop.method, hop.url, headers, content)
        chain.transition(ExecutionState.SENDING)

        timer = asyncio.timeout(hop.timeout)
        try:
            async with timer:
                return await self._exchange(call, hop, chain, compress)
        except TimeoutError:
            if not timer.expired():
                raise
            chain.transition(ExecutionState.TIMED_OUT)
            await call.abort()
            self._log.error(f"Request to {hop.url} timed out after {hop.timeout}s")
            raise RequestTimeoutError(
                str(hop.url), hop.timeout, method=hop.method
            ) from None

    async def _exchange(
        self, call: TransportCall, hop: Request, chain: CallChain, compress: bool
    ) -> Response | httpx.URL:
        try:
            head = await call.receive_head()
        except (httpx.TransportError, OSError) as exc:
            await call.aclose()
            chain.transition(ExecutionState.FAILED)
            message = f"Unable to make a {hop.method} request to {hop.url} ({exc})"
            self._log.error(message)
            raise TransportFailureError(message, method=hop.method, url=str(hop.url)) from exc

        chain.transition(ExecutionState.AWAITING_RESPONSE)
        logger.debug(f"Received response: {head.status_code} for {hop.url}")
        logger.trace(f"Response Headers: {head.headers}")

        location = head.headers.get("location")
        if location is not None and hop.follow_redirects:
            try:
                target = normalize_url(hop.url.join(location))
            except (httpx.InvalidURL, InvalidArgumentError) as exc:
                await call.aclose()
                chain.transition(ExecutionState.FAILED)
                message = f"Invalid redirect location {location!r} from {hop.method} {hop.url} ({exc})"
                self._log.error(message)
                raise TransportFailureError(
                    message, method=hop.method, url=str(hop.url)
                ) from exc
            await self._discard(call, hop)
            return target

        streaming = self._effective(Capability.STREAM, hop.streaming)
        if streaming:
            mode = ResponseMode.STREAMING
        elif self._registry.has(Capability.BLOB):
            mode = ResponseMode.BLOB
        else:
            mode = ResponseMode.BUFFERED
        response = Response(
            head.status_code,
            head.headers,
            url=hop.url,
            reason_phrase=head.reason_phrase,
            mode=mode,
            history=chain.history,
        )

        decoder = _decoder_for(head.headers.get("content-encoding")) if compress else None
        try:
            async for chunk in call.aiter_chunks():
                response.add_chunk(decoder.decode(chunk) if decoder else chunk)
            if decoder is not None:
                response.add_chunk(decoder.flush())
        except (httpx.HTTPError, OSError) as exc:
            await call.aclose()
            chain.transition(ExecutionState.FAILED)
            message = f"Tried to read the response body, was unsuccessful ({exc})"
            self._log.error(f"{message} for {hop.method} {hop.url}")
            raise SerializationError(message, method=hop.method, url=str(hop.url)) from exc

        await call.aclose()
        response.mark_complete()

        if not response.successful:
            chain.transition(ExecutionState.FAILED)
            self._log.error(f"{hop.method} {hop.url} failed with status {response.status}")
            raise HttpStatusError(
                response.status_code,
                response.reason_phrase,
                method=hop.method,
                url=str(hop.url),
                response=response,
            )
        return response

    async def _discard(self, call: TransportCall, hop: Request) -> None:
        """Drain and release a redirect response without parsing its body."""
        try:
            async for _ in call.aiter_chunks():
                pass
        except (httpx.HTTPError, OSError) as exc:
            logger.warning(f"Failed to drain redirect response from {hop.url}: {exc}")
        await call.aclose()

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._should_close_transport:
            await self._transport.aclose()
            logger.debug(f"HttpClient transport closed. Client ID: {id(self)}.")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        await self.aclose()

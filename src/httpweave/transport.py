# httpweave/transport.py
"""Default transport built on ``httpx.AsyncClient``."""

import ssl
from collections.abc import AsyncIterator

import certifi
import httpx

from .config import HttpWeaveSettings, get_settings
from .log_config import logger
from .models import ResponseHead


class HttpxCall:
    """One streamed exchange over an ``httpx.AsyncClient``.

    Attributes:
        aborted: Whether ``abort`` ran before the call was closed.
    """

    def __init__(self, client: httpx.AsyncClient, request: httpx.Request):
        self._client = client
        self._request = request
        self._response: httpx.Response | None = None
        self._closed = False
        self.aborted = False

    async def receive_head(self) -> ResponseHead:
        self._response = await self._client.send(self._request, stream=True)
        return ResponseHead(
            status_code=self._response.status_code,
            reason_phrase=self._response.reason_phrase,
            headers=self._response.headers,
        )

    async def aiter_chunks(self) -> AsyncIterator[bytes]:
        """Yield raw body chunks.

        Responses that httpx already loaded into memory (as in-memory mock
        transports produce them) are yielded as a single, already decoded,
        chunk.
        """
        if self._response is None:
            raise RuntimeError("receive_head() must be awaited before reading the body")
        if self._response.is_stream_consumed:
            if self._response.content:
                yield self._response.content
            return
        async for chunk in self._response.aiter_raw():
            yield chunk

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._response is not None:
            await self._response.aclose()

    async def abort(self) -> None:
        if self._closed or self.aborted:
            return
        self.aborted = True
        logger.debug(f"Aborting in-flight call to {self._request.url}")
        await self.aclose()


class HttpxTransport:
    """Transport that sends requests through an ``httpx.AsyncClient``.

    Requests are built as standalone ``httpx.Request`` objects, so the
    client's own default headers (``Accept-Encoding`` in particular) never
    leak in, and bodies are read with ``aiter_raw`` so decompression stays
    the engine's decision.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        settings: HttpWeaveSettings | None = None,
    ):
        self._settings = settings or get_settings()
        self._should_close_client = http_client is None
        self._http_client = http_client or self._create_default_http_client()

    def _create_default_http_client(self) -> httpx.AsyncClient:
        """Create a default httpx.AsyncClient.

        Timeouts and redirects are handled by the engine, so both are turned
        off at the httpx level.
        """
        verify_ssl: ssl.SSLContext | bool = self._settings.verify_ssl
        if self._settings.verify_ssl:
            try:
                verify_ssl = ssl.create_default_context(cafile=certifi.where())
                logger.debug("Using certifi SSL context.")
            except (OSError, ssl.SSLError):
                verify_ssl = True
                logger.warning(
                    "certifi bundle failed to load. Using default SSL verification."
                )

        return httpx.AsyncClient(
            timeout=None,
            follow_redirects=False,
            verify=verify_ssl,
        )

    def open(
        self,
        method: str,
        url: httpx.URL,
        headers: httpx.Headers,
        content: bytes,
    ) -> HttpxCall:
        request = httpx.Request(method, url, headers=headers, content=content or None)
        return HttpxCall(self._http_client, request)

    async def aclose(self) -> None:
        if self._should_close_client and not self._http_client.is_closed:
            await self._http_client.aclose()
            logger.debug("HttpxTransport internal HTTP client closed.")

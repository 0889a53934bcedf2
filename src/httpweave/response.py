# httpweave/response.py
"""The response object assembled by the execution engine."""

import json
from collections import deque
from collections.abc import AsyncIterator
from enum import StrEnum
from http import HTTPStatus
from typing import Any

import httpx

from .body import Blob
from .exceptions import ResponseModeError


class ResponseMode(StrEnum):
    """How a response exposes its body. Fixed when the response is created."""

    BUFFERED = "buffered"
    STREAMING = "streaming"
    BLOB = "blob"


class Response:
    """An HTTP response fed by the engine with body chunks in arrival order.

    In buffered and blob mode the chunks are accumulated and exposed as one
    payload. In streaming mode they are handed out once, in order, through
    ``aiter_bytes``.

    Attributes:
        status_code: Terminal HTTP status code.
        reason_phrase: Reason phrase from the status line.
        headers: Case-insensitive response headers.
        url: URL of the hop that produced this response.
        mode: The body representation chosen at construction.
        history: URLs of the redirect hops followed before this response.
    """

    def __init__(
        self,
        status_code: int,
        headers: httpx.Headers,
        *,
        url: httpx.URL,
        reason_phrase: str = "",
        mode: ResponseMode = ResponseMode.BUFFERED,
        history: list[httpx.URL] | None = None,
    ):
        self.status_code = status_code
        self.reason_phrase = reason_phrase or _default_reason(status_code)
        self.headers = headers
        self.url = url
        self.mode = mode
        self.history: list[httpx.URL] = list(history or [])
        self._chunks: deque[bytes] = deque()
        self._complete = False

    @property
    def status(self) -> str:
        return f"{self.status_code} {self.reason_phrase}".rstrip()

    @property
    def successful(self) -> bool:
        return HTTPStatus.OK <= self.status_code < HTTPStatus.MULTIPLE_CHOICES

    @property
    def complete(self) -> bool:
        return self._complete

    def add_chunk(self, chunk: bytes) -> None:
        if chunk:
            self._chunks.append(chunk)

    def mark_complete(self) -> None:
        self._complete = True

    @property
    def content(self) -> bytes:
        """The accumulated body. Not available in streaming mode."""
        if self.mode is ResponseMode.STREAMING:
            raise ResponseModeError(
                "Response body is exposed as a stream, use aiter_bytes()",
                url=str(self.url),
            )
        return b"".join(self._chunks)

    def text(self, encoding: str | None = None) -> str:
        return self.content.decode(encoding or self.charset or "utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.content)

    def blob(self) -> Blob:
        if self.mode is not ResponseMode.BLOB:
            raise ResponseModeError(
                f"Response was read in {self.mode} mode, not blob mode",
                url=str(self.url),
            )
        return Blob(self.content, self.headers.get("content-type"))

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        """Yield the body chunks in arrival order, consuming them."""
        if self.mode is not ResponseMode.STREAMING:
            raise ResponseModeError(
                f"Response was read in {self.mode} mode, not streaming mode",
                url=str(self.url),
            )
        while self._chunks:
            yield self._chunks.popleft()

    @property
    def charset(self) -> str | None:
        content_type = self.headers.get("content-type", "")
        for param in content_type.split(";")[1:]:
            key, _, value = param.strip().partition("=")
            if key.lower() == "charset" and value:
                return value.strip('"')
        return None

    def __repr__(self) -> str:
        return f"<Response [{self.status}] {self.mode}>"


def _default_reason(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""

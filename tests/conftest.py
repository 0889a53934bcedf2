# tests/conftest.py
import asyncio

import httpx
import pytest

from httpweave.config import HttpWeaveSettings
from httpweave.models import ResponseHead


class FakeCall:
    """In-memory TransportCall recording how the engine drives it."""

    def __init__(
        self,
        status_code: int = 200,
        headers: dict[str, str] | None = None,
        chunks: list[bytes] | None = None,
        *,
        reason_phrase: str = "",
        hang: bool = False,
        head_error: BaseException | None = None,
        body_error: BaseException | None = None,
    ):
        self.head = ResponseHead(status_code, reason_phrase, httpx.Headers(headers))
        self.chunks = chunks or []
        self.hang = hang
        self.head_error = head_error
        self.body_error = body_error
        self.abort_count = 0
        self.close_count = 0

    async def receive_head(self) -> ResponseHead:
        if self.hang:
            await asyncio.Event().wait()
        if self.head_error is not None:
            raise self.head_error
        return self.head

    async def aiter_chunks(self):
        for chunk in self.chunks:
            yield chunk
        if self.body_error is not None:
            raise self.body_error

    async def aclose(self) -> None:
        self.close_count += 1

    async def abort(self) -> None:
        self.abort_count += 1


class FakeTransport:
    """Transport handing out prepared FakeCalls in order."""

    def __init__(self, *calls: FakeCall):
        self.calls = list(calls)
        self.opened: list[tuple[str, httpx.URL, httpx.Headers, bytes]] = []
        self.closed = False

    def open(self, method, url, headers, content) -> FakeCall:
        self.opened.append((method, url, headers, content))
        return self.calls.pop(0)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def settings() -> HttpWeaveSettings:
    """Fixture for deterministic HttpWeaveSettings."""
    return HttpWeaveSettings(user_agent="httpweave-tests/1.0", max_redirects=5)


@pytest.fixture
def fake_call():
    """Factory fixture for FakeCall instances."""
    return FakeCall


@pytest.fixture
def fake_transport():
    """Factory fixture for FakeTransport instances."""
    return FakeTransport

# httpweave/models.py
"""Core protocols for the transport layer of the httpweave engine.

The execution engine never talks to sockets directly. It opens calls on a
``Transport`` and drives each ``TransportCall`` through a fixed sequence of
suspension points: receive the head, read body chunks in arrival order, then
close. A timeout aborts the call instead. Any object satisfying these
protocols can stand in for the default httpx-backed transport, which is what
the test-suite does to simulate servers that never answer.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx


@dataclass(frozen=True)
class ResponseHead:
    """Status line and headers of a response, delivered before any body chunk."""

    status_code: int
    reason_phrase: str
    headers: httpx.Headers


@runtime_checkable
class TransportCall(Protocol):
    """A single in-flight exchange opened by a Transport.

    Opening a call performs no I/O; the request is transmitted when
    ``receive_head`` is first awaited.
    """

    async def receive_head(self) -> ResponseHead:
        """Send the request and wait for the response status and headers.

        Returns:
            ResponseHead: The status code, reason phrase and headers.

        Raises:
            httpx.TransportError: On connection-level failures (DNS lookup,
                refused or reset connections).
        """
        ...

    def aiter_chunks(self) -> AsyncIterator[bytes]:
        """Yield the raw, still encoded, body chunks in arrival order.

        Raises:
            httpx.HTTPError: If the body stream breaks while reading.
        """
        ...

    async def aclose(self) -> None:
        """Release the call after its body has been fully consumed."""
        ...

    async def abort(self) -> None:
        """Cancel the call. Must be a no-op once the call is closed or aborted."""
        ...


@runtime_checkable
class Transport(Protocol):
    """Opens calls against remote hosts.

    The URL carries scheme, host, port and path+query; the transport is
    responsible for TLS and connection management.
    """

    def open(
        self,
        method: str,
        url: httpx.URL,
        headers: httpx.Headers,
        content: bytes,
    ) -> TransportCall:
        """Prepare a call without performing any I/O.

        Args:
            method: Uppercase HTTP method.
            url: Absolute URL to send the request to.
            headers: The final, frozen header set for this attempt.
            content: The encoded request body, possibly empty.

        Returns:
            TransportCall: The call, ready to be driven by the engine.
        """
        ...

    async def aclose(self) -> None:
        """Close any pooled connections held by the transport."""
        ...

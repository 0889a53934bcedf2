# httpweave/middleware.py
"""Middleware registry and the built-in capability middleware.

A middleware is identified by a unique name. It may take part in one of the
two dispatch phases by carrying a hook, and it may carry a value that other
parts of the engine read by name (the ``logger`` middleware's value is the
logger to use; a boolean value on ``stream`` or ``compress`` overrides the
per-request flag for the whole client). Registering a middleware under a
capability name is the only thing that unlocks that capability.
"""

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Self

from .exceptions import InvalidArgumentError
from .log_config import logger
from .types import Capability, Phase

if TYPE_CHECKING:
    from .client import HttpClient


@dataclass(frozen=True)
class Middleware:
    """A named unit of optional behaviour.

    Attributes:
        name: Unique registry key; capability middleware use a ``Capability`` name.
        phase: Dispatch phase the hook runs in, or None for value-only middleware.
        hook: Callable invoked with ``(client, request)`` before each hop or
            ``(client, response)`` after a successful call chain.
        value: Arbitrary payload exposed through ``MiddlewareRegistry.get``.
    """

    name: str
    phase: Phase | None = None
    hook: Callable[..., None] | None = None
    value: Any = None

    def __post_init__(self) -> None:
        if not self.name:
            raise InvalidArgumentError("Middleware name must not be empty")
        if (self.phase is None) != (self.hook is None):
            raise InvalidArgumentError(
                f'Middleware "{self.name}" needs both a phase and a hook, or neither'
            )

    def intertwine(self, client: "HttpClient", target: Any) -> None:
        """Run the hook. Exceptions propagate unchanged."""
        if self.hook is not None:
            self.hook(client, target)


class MiddlewareRegistry:
    """Ordered, name-keyed collection of middleware for a single client.

    Registration happens while the client is being wired up; during
    execution the registry is only read.
    """

    def __init__(self, middleware: Iterable[Middleware] = ()):
        self._entries: dict[str, Middleware] = {}
        for ware in middleware:
            self.add(ware)

    def add(self, middleware: Middleware) -> Self:
        if middleware.name in self._entries:
            logger.warning(
                f'Middleware "{middleware.name}" is already registered, replacing it.'
            )
        self._entries[middleware.name] = middleware
        logger.debug(
            f'Registered middleware "{middleware.name}" (phase: {middleware.phase})'
        )
        return self

    def has(self, name: str) -> bool:
        return name in self._entries

    def get(self, name: str) -> Any | None:
        """Return the value carried by the named middleware, or None."""
        entry = self._entries.get(name)
        return entry.value if entry is not None else None

    def filter(self, phase: Phase) -> list[Middleware]:
        """Return the middleware taking part in ``phase``, in registration order."""
        return [ware for ware in self._entries.values() if ware.phase == phase]

    @property
    def capabilities(self) -> frozenset[str]:
        return frozenset(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


def logger_middleware(**extra: Any) -> Middleware:
    """Route the engine's request and failure log lines through a bound logger.

    Args:
        **extra: Context bound onto the loguru logger (e.g. ``service="billing"``).
    """
    return Middleware(Capability.LOGGER, value=logger.bind(**extra))


def compress_middleware(force: bool | None = None) -> Middleware:
    """Allow requests to ask for and decode gzip/deflate responses.

    Args:
        force: When a boolean, overrides every request's compression flag.
    """
    return Middleware(Capability.COMPRESS, value=force)


def stream_middleware(force: bool | None = None) -> Middleware:
    """Allow responses to be exposed as a live byte stream.

    Args:
        force: When a boolean, overrides every request's streaming flag.
    """
    return Middleware(Capability.STREAM, value=force)


def form_middleware() -> Middleware:
    """Allow ``FormData`` payloads to be passed to ``Request.with_body``."""
    logger.info(
        "Enabled Forms middleware, FormData payloads can now be passed to Request.with_body"
    )
    return Middleware(Capability.FORM, value=True)


def blob_middleware() -> Middleware:
    """Expose successful response bodies as ``Blob`` values."""
    return Middleware(Capability.BLOB, value=True)

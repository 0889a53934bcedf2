# httpweave/types.py
"""Core type definitions shared across the httpweave engine.

This module defines the HTTP method enumeration, the dispatch phases a
middleware can take part in, the names of the built-in capabilities and the
type aliases for middleware hooks.
"""

from collections.abc import Callable
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .client import HttpClient
    from .request import Request
    from .response import Response


class HttpMethod(StrEnum):
    """The fixed set of methods a Request may use, in canonical uppercase."""

    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"
    CONNECT = "CONNECT"


class Phase(StrEnum):
    """Fixed points in execution at which a middleware hook runs."""

    PRE_SEND = "pre_send"
    """Runs once per physical attempt, including once per redirect hop."""

    POST_COMPLETION = "post_completion"
    """Runs once per call chain, only after a successful terminal response."""


class Capability(StrEnum):
    """Names of the middleware that unlock optional request behaviour."""

    STREAM = "stream"
    COMPRESS = "compress"
    FORM = "form"
    BLOB = "blob"
    LOGGER = "logger"


PreSendHook = Callable[["HttpClient", "Request"], None]
"""Type alias for a pre-send hook.

Pre-send hooks are called with the owning client and the immutable request
snapshot about to be transmitted, once per hop. They are intended for side
effects such as logging or client-wide bookkeeping.

Args:
    client (HttpClient): The client executing the call chain.
    request (Request): The snapshot being sent on this hop.
Return:
    None: Exceptions raised by the hook propagate to the caller unchanged.
"""

PostCompletionHook = Callable[["HttpClient", "Response"], None]
"""Type alias for a post-completion hook.

Post-completion hooks are called once per call chain, after the terminal
response has been fully read and classified as successful, and before the
caller observes it.

Args:
    client (HttpClient): The client executing the call chain.
    response (Response): The successful terminal response.
Return:
    None: Exceptions raised by the hook propagate to the caller unchanged.
"""

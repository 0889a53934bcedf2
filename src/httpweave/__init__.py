"""httpweave: asynchronous outbound HTTP request engine.

Requests are built declaratively as immutable snapshots and executed by an
``HttpClient`` over a pluggable transport. Cross-cutting behaviour such as
logging, response decompression, streaming and form encoding is unlocked by
registering named middleware, which also take part in the two dispatch
phases: before every send and after a successful completion.
"""

__version__ = "0.1.0"

from . import (
    body,
    client,
    config,
    exceptions,
    log_config,
    middleware,
    models,
    request,
    response,
    retry,
    transport,
    types,
)
from .body import Blob, FormData
from .client import HttpClient
from .exceptions import (
    ErrorKind,
    HttpStatusError,
    HttpWeaveError,
    InvalidArgumentError,
    MissingCapabilityError,
    RedirectLimitError,
    RequestTimeoutError,
    SerializationError,
    TransportFailureError,
)
from .middleware import Middleware, MiddlewareRegistry
from .request import Request
from .response import Response, ResponseMode
from .types import Capability, HttpMethod, Phase

__all__ = [
    "__version__",
    "body",
    "client",
    "config",
    "exceptions",
    "log_config",
    "middleware",
    "models",
    "request",
    "response",
    "retry",
    "transport",
    "types",
    "Blob",
    "Capability",
    "ErrorKind",
    "FormData",
    "HttpClient",
    "HttpMethod",
    "HttpStatusError",
    "HttpWeaveError",
    "InvalidArgumentError",
    "Middleware",
    "MiddlewareRegistry",
    "MissingCapabilityError",
    "Phase",
    "RedirectLimitError",
    "Request",
    "RequestTimeoutError",
    "Response",
    "ResponseMode",
    "SerializationError",
    "TransportFailureError",
]

"""Custom exception classes for the httpweave library."""

from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .response import Response


class ErrorKind(IntEnum):
    """Stable numeric codes tagging every httpweave failure.

    Callers that implement their own retry policy are expected to branch on
    these codes rather than on exception class names.
    """

    INVALID_ARGUMENT = 1001
    MISSING_CAPABILITY = 1002
    SERIALIZATION_FAILURE = 1003
    TRANSPORT_FAILURE = 1004
    TIMEOUT = 1005
    HTTP_STATUS = 1006
    REDIRECT_LIMIT = 1007
    RESPONSE_MODE = 1008


class HttpWeaveError(Exception):
    """Base exception class for all httpweave errors."""

    kind: ErrorKind = ErrorKind.TRANSPORT_FAILURE

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        url: str | None = None,
        response: "Response | None" = None,
    ):
        """Initializes the base exception.

        Args:
            message: The error message.
            method: HTTP method of the request that failed, if any.
            url: URL of the request that failed, if any.
            response: Optional Response associated with the error.
        """
        super().__init__(message)
        self.message = message
        self.method = method
        self.url = url
        self.response = response

    def __str__(self) -> str:
        context: list[str] = []
        if self.method is not None and self.url is not None:
            context.append(f"{self.method} {self.url}")
        elif self.url is not None:
            context.append(f"URL: {self.url}")
        if self.response is not None:
            context.append(f"Status: {self.response.status_code}")
        if context:
            return f"{self.message} ({', '.join(context)})"
        return self.message


class InvalidArgumentError(HttpWeaveError):
    """Raised synchronously when a request is configured with a malformed value.

    Covers malformed URLs, unknown methods and non-positive or non-numeric
    timeouts. Never raised once I/O has started.
    """

    kind = ErrorKind.INVALID_ARGUMENT


class MissingCapabilityError(HttpWeaveError):
    """Raised when a flag is enabled without its middleware being registered."""

    kind = ErrorKind.MISSING_CAPABILITY

    def __init__(self, capability: str):
        super().__init__(f'Missing the "{capability}" middleware')
        self.capability = capability


class TransportFailureError(HttpWeaveError):
    """Represents a connection-level failure (DNS, connection refused, reset)."""

    kind = ErrorKind.TRANSPORT_FAILURE


class SerializationError(HttpWeaveError):
    """Represents a failure while reading or decoding the response stream."""

    kind = ErrorKind.SERIALIZATION_FAILURE


class HttpStatusError(HttpWeaveError):
    """Represents a terminal status code outside the 2xx range."""

    kind = ErrorKind.HTTP_STATUS

    def __init__(
        self,
        status_code: int,
        reason: str,
        *,
        method: str | None = None,
        url: str | None = None,
        response: "Response | None" = None,
    ):
        super().__init__(
            f"Request failed with status {status_code} {reason}".rstrip(),
            method=method,
            url=url,
            response=response,
        )
        self.status_code = status_code
        self.reason = reason


class RequestTimeoutError(HttpWeaveError):
    """Represents a request that did not complete within its configured timeout.

    Named to stay clear of the builtin ``TimeoutError`` raised by asyncio,
    which the engine translates into this class.
    """

    kind = ErrorKind.TIMEOUT

    def __init__(self, url: str, timeout: float, *, method: str | None = None):
        super().__init__(
            f"Request to {url} timed out after {timeout}s", method=method, url=url
        )
        self.timeout = timeout


class RedirectLimitError(HttpWeaveError):
    """Raised when a call chain exceeds the configured number of redirect hops."""

    kind = ErrorKind.REDIRECT_LIMIT

    def __init__(self, max_redirects: int, *, method: str | None = None, url: str | None = None):
        super().__init__(
            f"Exceeded the maximum of {max_redirects} redirects",
            method=method,
            url=url,
        )
        self.max_redirects = max_redirects


class ResponseModeError(HttpWeaveError):
    """Raised when a response body is read in a way its mode does not support."""

    kind = ErrorKind.RESPONSE_MODE

# httpweave/request.py
"""Immutable description of an outbound HTTP call.

Every fluent method returns a new ``Request`` and leaves the receiver
untouched, so a request can safely be reused as a template, and redirect
hops derive fresh snapshots instead of mutating the original.
"""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from numbers import Real
from typing import Any, Self

import httpx

from .body import EMPTY, EncodedBody, MultipartBody, encode_body
from .exceptions import InvalidArgumentError, MissingCapabilityError
from .types import Capability, HttpMethod

ACCEPT_ENCODING = "gzip, deflate"


def normalize_url(url: Any) -> httpx.URL:
    """Turn a URL value or string into an absolute http(s) ``httpx.URL``.

    Raises:
        InvalidArgumentError: If ``url`` is not a string or URL value, or does
            not parse to an absolute http(s) URL with a host.
    """
    if isinstance(url, httpx.URL):
        parsed = url
    elif isinstance(url, str):
        try:
            parsed = httpx.URL(url)
        except httpx.InvalidURL as exc:
            raise InvalidArgumentError(f"Malformed URL {url!r}: {exc}") from exc
    else:
        raise InvalidArgumentError(
            f"Malformed URL; must be a str or httpx.URL, got {type(url).__name__}"
        )
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise InvalidArgumentError(
            f"URL must be absolute with an http or https scheme, got {str(parsed)!r}"
        )
    return parsed


def normalize_method(method: Any) -> HttpMethod:
    if not isinstance(method, str):
        raise InvalidArgumentError(
            f"HTTP method must be a string, got {type(method).__name__}"
        )
    try:
        return HttpMethod(method.upper())
    except ValueError as exc:
        raise InvalidArgumentError(f"Unsupported HTTP method {method!r}") from exc


def validate_timeout(timeout: Any) -> float:
    if isinstance(timeout, bool) or not isinstance(timeout, Real):
        raise InvalidArgumentError(f"Timeout must be a number, got {timeout!r}")
    if not math.isfinite(timeout) or timeout <= 0:
        raise InvalidArgumentError(
            f"Timeout must be a finite positive number of seconds, got {timeout!r}"
        )
    return float(timeout)


@dataclass(frozen=True)
class Request:
    """A configured, not yet executed, HTTP request.

    Attributes:
        url: Absolute URL, query included.
        method: Canonical uppercase method.
        headers: Case-insensitive headers, private to this snapshot. Fluent
            methods copy before writing.
        body: The early-pass encoded body.
        timeout: Seconds before each hop is aborted, or None.
        follow_redirects: Chase ``location`` headers with new hops.
        compress: Ask for and decode gzip/deflate responses.
        streaming: Expose the response body as a stream.
        capabilities: Names of the middleware registered on the owning client.
    """

    url: httpx.URL
    method: HttpMethod = HttpMethod.GET
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: EncodedBody = EMPTY
    timeout: float | None = None
    follow_redirects: bool = False
    compress: bool = False
    streaming: bool = False
    capabilities: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        # every snapshot, including those built by replace(), owns its headers
        object.__setattr__(self, "headers", httpx.Headers(self.headers))

    @classmethod
    def create(
        cls,
        url: str | httpx.URL,
        *,
        method: str = HttpMethod.GET,
        headers: Mapping[str, str] | None = None,
        query: Mapping[str, Any] | None = None,
        body: Any = None,
        timeout: float | None = None,
        follow_redirects: bool = False,
        compress: bool = False,
        stream: bool = False,
        capabilities: Iterable[str] = (),
    ) -> Self:
        """Build a request, validating every argument before any I/O.

        Raises:
            InvalidArgumentError: For a malformed URL, method or timeout.
            MissingCapabilityError: If ``compress``, ``stream`` or a form body
                is requested without its middleware registered.
        """
        request = cls(
            url=normalize_url(url),
            method=normalize_method(method),
            headers=httpx.Headers(headers),
            follow_redirects=follow_redirects,
            capabilities=frozenset(capabilities),
        )
        if query:
            request = request.with_query(query)
        if body is not None:
            request = request.with_body(body)
        if timeout is not None:
            request = request.with_timeout(timeout)
        if compress:
            request = request.compressed()
        if stream:
            request = request.streamed()
        return request

    def _require(self, capability: Capability) -> None:
        if capability not in self.capabilities:
            raise MissingCapabilityError(capability)

    def with_query(self, name: str | Mapping[str, Any], value: Any = None) -> Self:
        """Merge query parameters into the URL; the last write for a key wins."""
        items = name.items() if isinstance(name, Mapping) else [(name, value)]
        url = self.url
        for key, val in items:
            url = url.copy_set_param(key, val)
        return replace(self, url=url)

    def with_header(self, name: str | Mapping[str, str], value: str | None = None) -> Self:
        """Merge headers; later values overwrite earlier ones for the same key."""
        items = name.items() if isinstance(name, Mapping) else [(name, value)]
        headers = self.headers.copy()
        for key, val in items:
            headers[key] = str(val)
        return replace(self, headers=headers)

    def with_body(self, payload: Any) -> Self:
        """Attach a payload, replacing any previous body.

        Multipart payloads also set ``content-length`` to the size of the
        encoded buffer, replacing any value set earlier.
        """
        body = encode_body(payload, self.capabilities)
        headers = self.headers
        if isinstance(body, MultipartBody):
            headers = headers.copy()
            headers["content-length"] = str(len(body.content))
        elif isinstance(self.body, MultipartBody) and "content-length" in headers:
            headers = headers.copy()
            del headers["content-length"]
        return replace(self, body=body, headers=headers)

    def with_timeout(self, timeout: float) -> Self:
        return replace(self, timeout=validate_timeout(timeout))

    def with_url(self, url: str | httpx.URL) -> Self:
        return replace(self, url=normalize_url(url))

    def follow(self, enabled: bool = True) -> Self:
        return replace(self, follow_redirects=enabled)

    def compressed(self) -> Self:
        """Ask for compressed responses. Requires the ``compress`` middleware."""
        self._require(Capability.COMPRESS)
        headers = self.headers
        if "accept-encoding" not in headers:
            headers = headers.copy()
            headers["accept-encoding"] = ACCEPT_ENCODING
        return replace(self, compress=True, headers=headers)

    def streamed(self) -> Self:
        """Expose the response as a stream. Requires the ``stream`` middleware."""
        self._require(Capability.STREAM)
        return replace(self, streaming=True)

    def __str__(self) -> str:
        return f"{self.method} {self.url}"

# httpweave/body.py
"""Request body encoding.

Payloads are resolved in two passes. ``encode_body`` runs when the body is
attached to a request and maps an arbitrary payload onto a closed set of
variants, detecting forms and blobs early because they have header side
effects. ``render_body`` runs once per attempt, after every header has been
merged, and turns the variant into bytes while deciding the content-type.
"""

import inspect
import json
from collections.abc import Awaitable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx
from httpx._multipart import MultipartStream
from pydantic import BaseModel

from .exceptions import InvalidArgumentError, MissingCapabilityError
from .log_config import logger
from .types import Capability


class Blob:
    """Binary payload with an optional content type.

    Used both as a request body (it is unwrapped to its raw bytes) and as the
    body representation of responses read in blob mode.
    """

    def __init__(self, data: bytes, content_type: str | None = None):
        self._data = bytes(data)
        self.content_type = content_type

    def raw(self) -> bytes:
        return self._data

    @property
    def size(self) -> int:
        return len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Blob):
            return NotImplemented
        return self._data == other._data and self.content_type == other.content_type

    def __repr__(self) -> str:
        return f"Blob(size={self.size}, content_type={self.content_type!r})"


class FormData:
    """A multipart/form-data payload made of plain fields and files.

    Encoding is delegated to httpx's multipart encoder, so file values accept
    everything httpx accepts for ``files=``: raw bytes, a file object or a
    ``(filename, content[, content_type])`` tuple.
    """

    def __init__(
        self,
        fields: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
    ):
        self.fields: dict[str, Any] = dict(fields or {})
        self.files: dict[str, Any] = dict(files or {})

    def append(self, name: str, value: Any) -> "FormData":
        self.fields[name] = value
        return self

    def attach(self, name: str, file: Any) -> "FormData":
        self.files[name] = file
        return self

    def encode(self) -> tuple[bytes, str]:
        """Encode the form into a single buffer.

        Returns:
            tuple[bytes, str]: The multipart buffer and the matching
                ``content-type`` value, boundary included.
        """
        # httpx.Request would urlencode a form without files
        stream = MultipartStream(data=self.fields, files=self.files)
        return b"".join(stream), stream.get_headers()["Content-Type"]


@dataclass(frozen=True)
class EmptyBody:
    """No body is transmitted."""


@dataclass(frozen=True)
class TextBody:
    text: str


@dataclass(frozen=True)
class BytesBody:
    data: bytes


@dataclass(frozen=True)
class JsonBody:
    """A structured value serialised to JSON at transmission time."""

    value: Any = field(hash=False, compare=True)


@dataclass(frozen=True)
class MultipartBody:
    content: bytes
    content_type: str


@dataclass(frozen=True, eq=False)
class PendingBody:
    """A body whose payload is still being produced.

    The engine awaits it once, before the first attempt, and re-encodes the
    result; redirect hops reuse the resolved body.
    """

    awaitable: Awaitable[Any]


EncodedBody = EmptyBody | TextBody | BytesBody | JsonBody | MultipartBody | PendingBody

EMPTY = EmptyBody()


def _dump_json(value: Any) -> bytes:
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"Body is not JSON serializable: {exc}") from exc


def encode_body(payload: Any, capabilities: Iterable[str]) -> EncodedBody:
    """Resolve an arbitrary payload into its encoded variant.

    Args:
        payload: The value handed to ``Request.with_body``.
        capabilities: Names of the middleware registered on the owning client.

    Returns:
        EncodedBody: The variant to store on the request.

    Raises:
        MissingCapabilityError: If a FormData payload is given without the
            ``form`` middleware registered.
        InvalidArgumentError: If a mapping payload is not JSON serializable.
    """
    if payload is None:
        return EMPTY
    if isinstance(payload, str):
        return TextBody(payload)
    if isinstance(payload, bytes | bytearray | memoryview):
        return BytesBody(bytes(payload))
    if isinstance(payload, Blob):
        return BytesBody(payload.raw())
    if isinstance(payload, FormData):
        if Capability.FORM not in capabilities:
            raise MissingCapabilityError(Capability.FORM)
        content, content_type = payload.encode()
        return MultipartBody(content, content_type)
    if isinstance(payload, Mapping):
        value = dict(payload)
        _dump_json(value)
        return JsonBody(value)
    if isinstance(payload, BaseModel):
        return JsonBody(payload.model_dump(mode="json"))
    if inspect.isawaitable(payload):
        return PendingBody(payload)
    logger.debug(f"Payload of type {type(payload).__name__} carries no body")
    return EMPTY


async def resolve_body(body: EncodedBody, capabilities: Iterable[str]) -> EncodedBody:
    """Await a pending body until a concrete variant is produced."""
    while isinstance(body, PendingBody):
        body = encode_body(await body.awaitable, capabilities)
    return body


def render_body(body: EncodedBody, headers: httpx.Headers) -> bytes:
    """Serialise a resolved body and settle its content-type.

    ``headers`` must be the per-attempt copy; it is updated in place so the
    content-type is recomputed on every attempt rather than accumulated.

    Args:
        body: A resolved (non-pending) body variant.
        headers: The header set for the current attempt.

    Returns:
        bytes: The bytes to transmit.
    """
    match body:
        case MultipartBody(content=content, content_type=content_type):
            headers["content-type"] = content_type
            return content
        case JsonBody(value=value):
            if "content-type" not in headers:
                headers["content-type"] = "application/json"
            return _dump_json(value)
        case TextBody(text=text):
            return text.encode("utf-8")
        case BytesBody(data=data):
            return data
        case PendingBody():
            raise RuntimeError("Pending bodies must be resolved before rendering")
        case _:
            return b""

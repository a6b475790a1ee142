"""Data models for the fetch layer."""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field


class FetchMethod(str, Enum):
    """HTTP methods accepted by fetch."""

    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    CONNECT = "CONNECT"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"


class FetchCache(str, Enum):
    """Cache modes. Anything but DEFAULT is sent as a Cache-Control value."""

    DEFAULT = "default"
    NO_CACHE = "no-cache"
    NO_STORE = "no-store"


class FetchRedirect(str, Enum):
    """Redirect modes.

    - FOLLOW: Follow redirects transparently
    - ERROR: Send a single request and report 3xx responses as redirected
    """

    FOLLOW = "follow"
    ERROR = "error"


class BodyKind(str, Enum):
    """Variants a request body can take."""

    UNSUPPORTED = "unsupported"
    TEXT = "text"
    RAW = "raw"
    STREAM = "stream"
    WRITER = "writer"


class Readable(Protocol):
    """Pull-style body source."""

    def read(self, size: int = -1, /) -> bytes: ...


class BodySink(Protocol):
    """Destination handed to push-style body writers."""

    def write(self, data: bytes | str, /) -> None: ...


BodyWriter = Callable[[BodySink], None]


@dataclass(frozen=True)
class FetchBody:
    """Request body tagged with its variant.

    Build one with ``new_body`` for untyped input, or with the explicit
    variant constructors when the caller already knows the kind.
    """

    kind: BodyKind
    value: Any
    length: int = -1

    @classmethod
    def text(cls, value: str) -> "FetchBody":
        """Create a text body."""
        return cls(BodyKind.TEXT, value, len(value.encode("utf-8")))

    @classmethod
    def raw(cls, value: bytes) -> "FetchBody":
        """Create a raw bytes body."""
        return cls(BodyKind.RAW, bytes(value), len(value))

    @classmethod
    def stream(cls, value: Readable, length: int) -> "FetchBody":
        """Create a stream body of a declared length.

        Streams without a positive declared length cannot be sent and
        yield an unsupported body.
        """
        if length <= 0:
            return cls(BodyKind.UNSUPPORTED, value, length)
        return cls(BodyKind.STREAM, value, length)

    @classmethod
    def writer(cls, value: BodyWriter) -> "FetchBody":
        """Create a push-style body produced by a writer callback."""
        return cls(BodyKind.WRITER, value)

    @property
    def is_supported(self) -> bool:
        """Check if the body can be attached to a request."""
        return self.kind != BodyKind.UNSUPPORTED


class FetchParams(BaseModel):
    """Caller-facing request parameters.

    ``method``, ``redirect`` and ``cache`` accept arbitrary strings; they
    are coerced to their enumerations by ``normalize_params``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    method: str = Field(default="", description="HTTP method, case-insensitive")
    redirect: str = Field(default="", description="Redirect mode")
    cache: str = Field(default="", description="Cache mode")
    body: FetchBody | None = Field(default=None, description="Request body")
    headers: dict[str, str] | None = Field(
        default=None, description="Request headers, applied verbatim"
    )

"""Fetch response with single-consumption body conversions."""

import json as jsonlib
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Generic, TypeVar

from pydantic import PydanticSchemaGenerationError, TypeAdapter, ValidationError

from futurefetch.features.fetch.errors import BodyAlreadyUsedError, DecodeError
from futurefetch.features.fetch.promise import rejected, resolved


T = TypeVar("T")

DEFAULT_TEXT_ENCODING = "utf-8"


class ConsumeOnce(Generic[T]):
    """Cell holding a value that can be taken exactly once."""

    def __init__(self, value: T) -> None:
        self._value: T | None = value
        self._taken = False
        self._lock = threading.Lock()

    @property
    def taken(self) -> bool:
        """Check if the value has been taken."""
        return self._taken

    def take(self) -> T:
        """Move the value out of the cell.

        Returns:
            The held value.

        Raises:
            BodyAlreadyUsedError: If the value was already taken.
        """
        with self._lock:
            if self._taken:
                raise BodyAlreadyUsedError
            value = self._value
            self._value = None
            self._taken = True
        return value  # type: ignore[return-value]


@dataclass
class FetchResponse:
    """Completed HTTP response.

    The body is owned by the response until one of ``raw``, ``text``,
    ``json`` or ``reader`` moves it out. Every later conversion returns a
    future rejected with BodyAlreadyUsedError.
    """

    ok: bool
    redirected: bool
    status: int
    status_text: str
    url: str
    headers: dict[str, str]
    body: ConsumeOnce[bytes] = field(repr=False)
    encoding: str | None = None

    @classmethod
    def build(
        cls,
        *,
        ok: bool,
        redirected: bool,
        status: int,
        status_text: str,
        url: str,
        headers: dict[str, str],
        body: bytes,
        encoding: str | None = None,
    ) -> "FetchResponse":
        """Create a response owning a copy of the body buffer."""
        return cls(
            ok=ok,
            redirected=redirected,
            status=status,
            status_text=status_text,
            url=url,
            headers=headers,
            body=ConsumeOnce(bytes(body)),
            encoding=encoding,
        )

    @property
    def body_used(self) -> bool:
        """Check if the body has been consumed."""
        return self.body.taken

    def raw(self) -> "Future[bytes]":
        """Take the body as bytes."""
        try:
            return resolved(self.body.take())
        except BodyAlreadyUsedError as e:
            return rejected(e)

    def text(self) -> "Future[str]":
        """Take the body decoded as text.

        Uses the charset announced by the response, UTF-8 otherwise.
        Undecodable bytes are replaced rather than failing.
        """
        try:
            content = self.body.take()
        except BodyAlreadyUsedError as e:
            return rejected(e)
        return resolved(content.decode(self._text_encoding(), errors="replace"))

    def json(self, target: Any = None) -> "Future[Any]":
        """Take the body parsed as JSON.

        Args:
            target: Optional type (pydantic model, dataclass, typed
                container) to validate the decoded value into.

        Returns:
            Future with the decoded value, rejected with DecodeError on
            malformed, too deeply nested or non-conforming content, or
            when ``target`` is not a type that can be validated into.
        """
        try:
            content = self.body.take()
        except BodyAlreadyUsedError as e:
            return rejected(e)

        try:
            if target is None:
                value = jsonlib.loads(content)
            else:
                value = TypeAdapter(target).validate_json(content)
        except (
            ValueError,
            ValidationError,
            TypeError,
            RecursionError,
            PydanticSchemaGenerationError,
        ) as e:
            # Unsupported targets and overly nested documents reject too
            error = DecodeError(f"Failed to decode body: {e}")
            error.__cause__ = e
            return rejected(error)

        return resolved(value)

    def reader(self) -> "Future[BytesIO]":
        """Take the body as a seekable reader."""
        try:
            return resolved(BytesIO(self.body.take()))
        except BodyAlreadyUsedError as e:
            return rejected(e)

    def _text_encoding(self) -> str:
        if self.encoding:
            try:
                "".encode(self.encoding)
            except LookupError:
                return DEFAULT_TEXT_ENCODING
            return self.encoding
        return DEFAULT_TEXT_ENCODING

"""Classification of untyped request body values."""

from typing import Any

from futurefetch.features.fetch.models import BodyKind, FetchBody


def new_body(value: Any, length: int = -1) -> FetchBody:
    """Classify a body value into one of the supported variants.

    Checks run in a fixed order: text, raw bytes, readable stream, push
    writer. Byte sequences are matched before streams so that a bytes
    object exposing ``read`` is still sent as raw content.

    A readable stream needs a positive ``length``. With the default of
    -1 (unknown) or any other value below 1 it is classified UNSUPPORTED,
    so its request fails with InvalidBodyError before any network
    activity. Use a writer callback to send a body of unknown length.

    Args:
        value: Body value supplied by the caller.
        length: Declared byte count, required for streams and ignored
            for the other variants.

    Returns:
        FetchBody tagged with its variant, UNSUPPORTED when nothing matched.
    """
    if isinstance(value, str):
        return FetchBody(BodyKind.TEXT, value, length)

    if isinstance(value, (bytes, bytearray, memoryview)):
        return FetchBody(BodyKind.RAW, bytes(value), length)

    if callable(getattr(value, "read", None)):
        return FetchBody.stream(value, length)

    if callable(value):
        return FetchBody.writer(value)

    return FetchBody(BodyKind.UNSUPPORTED, value, length)

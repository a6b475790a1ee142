"""futurefetch: single-shot HTTP requests returning futures."""

from futurefetch.features.fetch import (
    BodyAlreadyUsedError,
    DecodeError,
    FetchBody,
    FetchError,
    Fetcher,
    FetchParams,
    FetchResponse,
    InvalidBodyError,
    TransportError,
    all_of,
    fetch,
    init_from_settings,
    new_body,
)


__all__ = [
    "BodyAlreadyUsedError",
    "DecodeError",
    "FetchBody",
    "FetchError",
    "Fetcher",
    "FetchParams",
    "FetchResponse",
    "InvalidBodyError",
    "TransportError",
    "all_of",
    "fetch",
    "init_from_settings",
    "new_body",
]

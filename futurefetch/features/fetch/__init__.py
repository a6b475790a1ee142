"""Non-blocking HTTP fetch modeled on the browser fetch API.

This module provides:
- A ``fetch`` entry point returning a future per request
- Silent coercion of method, cache and redirect parameters
- Text, raw, stream and writer request bodies
- Responses whose body can be materialized exactly once
- Header redaction and metrics for observability
"""

from futurefetch.features.fetch.body import new_body
from futurefetch.features.fetch.client import (
    Fetcher,
    fetch,
    get_default_fetcher,
    init_from_settings,
)
from futurefetch.features.fetch.config import FetchConfig
from futurefetch.features.fetch.constants import (
    DEFAULT_CHUNK_SIZE,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    HTTP_STATUS_REDIRECT_MAX,
    HTTP_STATUS_REDIRECT_MIN,
    MAX_REDIRECTS,
)
from futurefetch.features.fetch.errors import (
    BodyAlreadyUsedError,
    DecodeError,
    FetchError,
    FetchErrorClass,
    InvalidBodyError,
    TransportError,
)
from futurefetch.features.fetch.executor import RequestExecutor
from futurefetch.features.fetch.metrics import FetchMetrics
from futurefetch.features.fetch.models import (
    BodyKind,
    FetchBody,
    FetchCache,
    FetchMethod,
    FetchParams,
    FetchRedirect,
)
from futurefetch.features.fetch.normalize import normalize_params
from futurefetch.features.fetch.promise import all_of, rejected, resolved, then, wait
from futurefetch.features.fetch.redact import redact_headers, redact_url_credentials
from futurefetch.features.fetch.response import ConsumeOnce, FetchResponse


__all__ = [
    # Client
    "Fetcher",
    "fetch",
    "get_default_fetcher",
    "init_from_settings",
    "RequestExecutor",
    # Config
    "FetchConfig",
    # Models
    "BodyKind",
    "FetchBody",
    "FetchCache",
    "FetchMethod",
    "FetchParams",
    "FetchRedirect",
    "FetchResponse",
    "ConsumeOnce",
    "new_body",
    "normalize_params",
    # Errors
    "FetchError",
    "FetchErrorClass",
    "InvalidBodyError",
    "TransportError",
    "DecodeError",
    "BodyAlreadyUsedError",
    # Futures
    "all_of",
    "rejected",
    "resolved",
    "then",
    "wait",
    # Constants
    "HTTP_STATUS_OK_MIN",
    "HTTP_STATUS_OK_MAX",
    "HTTP_STATUS_REDIRECT_MIN",
    "HTTP_STATUS_REDIRECT_MAX",
    "MAX_REDIRECTS",
    "DEFAULT_CHUNK_SIZE",
    # Metrics
    "FetchMetrics",
    # Redaction
    "redact_headers",
    "redact_url_credentials",
]

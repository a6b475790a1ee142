"""Error types for the fetch layer."""

from enum import Enum

import httpx


class FetchErrorClass(str, Enum):
    """Classification of fetch errors for metrics and logging.

    - INVALID_BODY: Request body did not match a supported variant
    - NETWORK_TIMEOUT: Request timed out
    - CONNECTION_ERROR: Could not establish connection
    - TOO_MANY_REDIRECTS: Redirect hop cap exceeded
    - PROTOCOL_ERROR: Malformed HTTP exchange
    - INVALID_URL: URL could not be parsed or has no supported scheme
    - RESPONSE_SIZE_EXCEEDED: Response exceeded max size limit
    - DECODE_ERROR: Response body could not be decoded
    - BODY_ALREADY_USED: Response body was already materialized
    - UNKNOWN: Unclassified error
    """

    INVALID_BODY = "INVALID_BODY"
    NETWORK_TIMEOUT = "NETWORK_TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    TOO_MANY_REDIRECTS = "TOO_MANY_REDIRECTS"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    INVALID_URL = "INVALID_URL"
    RESPONSE_SIZE_EXCEEDED = "RESPONSE_SIZE_EXCEEDED"
    DECODE_ERROR = "DECODE_ERROR"
    BODY_ALREADY_USED = "BODY_ALREADY_USED"
    UNKNOWN = "UNKNOWN"


class FetchError(Exception):
    """Base exception for fetch errors.

    Provides structured error information for logging and future rejection.
    """

    def __init__(self, error_class: FetchErrorClass, message: str) -> None:
        """Initialize the fetch error.

        Args:
            error_class: Classification of the error.
            message: Human-readable error message.
        """
        super().__init__(message)
        self.error_class = error_class
        self.message = message

    def to_dict(self) -> dict[str, str]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error_class": self.error_class.value,
            "message": self.message,
        }


class InvalidBodyError(FetchError):
    """Request body value matched no supported variant.

    Raised before any network activity takes place.
    """

    def __init__(self, value: object) -> None:
        """Initialize the invalid body error.

        Args:
            value: The offending body value.
        """
        super().__init__(FetchErrorClass.INVALID_BODY, f"Invalid body: {value!r}")
        self.value = value


class TransportError(FetchError):
    """The HTTP transport failed to complete the exchange."""


class DecodeError(FetchError):
    """Response body could not be decoded into the requested shape."""

    def __init__(self, message: str) -> None:
        super().__init__(FetchErrorClass.DECODE_ERROR, message)


class BodyAlreadyUsedError(FetchError):
    """Response body was already consumed by an earlier conversion."""

    def __init__(self) -> None:
        super().__init__(FetchErrorClass.BODY_ALREADY_USED, "Body already used")


def classify_transport_error(exc: Exception) -> TransportError:
    """Wrap an httpx failure into a classified TransportError.

    Args:
        exc: Exception raised by httpx.

    Returns:
        TransportError carrying the original exception as its cause.
    """
    if isinstance(exc, httpx.TimeoutException):
        error_class = FetchErrorClass.NETWORK_TIMEOUT
        message = f"Request timed out: {exc}"
    elif isinstance(exc, httpx.ConnectError):
        error_class = FetchErrorClass.CONNECTION_ERROR
        message = f"Connection failed: {exc}"
    elif isinstance(exc, httpx.TooManyRedirects):
        error_class = FetchErrorClass.TOO_MANY_REDIRECTS
        message = f"Too many redirects: {exc}"
    elif isinstance(exc, (httpx.InvalidURL, httpx.UnsupportedProtocol)):
        error_class = FetchErrorClass.INVALID_URL
        message = f"Invalid URL: {exc}"
    elif isinstance(exc, httpx.ProtocolError):
        error_class = FetchErrorClass.PROTOCOL_ERROR
        message = f"Protocol error: {exc}"
    elif isinstance(exc, httpx.StreamError):
        # A streamed request body cannot be replayed for a redirect
        error_class = FetchErrorClass.PROTOCOL_ERROR
        message = f"Stream error: {exc}"
    else:
        error_class = FetchErrorClass.UNKNOWN
        message = f"Unexpected error: {exc}"

    error = TransportError(error_class, message)
    error.__cause__ = exc
    return error

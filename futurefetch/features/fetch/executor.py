"""Request execution over httpx."""

import queue
import threading
import time
from collections.abc import Generator, Iterator
from io import BytesIO

import httpx
import structlog

from futurefetch.features.fetch.config import FetchConfig
from futurefetch.features.fetch.constants import (
    CACHE_CONTROL_HEADER,
    DEFAULT_CHUNK_SIZE,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    HTTP_STATUS_REDIRECT_MAX,
    HTTP_STATUS_REDIRECT_MIN,
    MAX_REDIRECTS,
    UNKNOWN_STATUS_TEXT,
)
from futurefetch.features.fetch.errors import (
    FetchError,
    FetchErrorClass,
    InvalidBodyError,
    TransportError,
    classify_transport_error,
)
from futurefetch.features.fetch.metrics import FetchMetrics
from futurefetch.features.fetch.models import (
    BodyKind,
    BodyWriter,
    FetchBody,
    FetchCache,
    FetchParams,
    FetchRedirect,
    Readable,
)
from futurefetch.features.fetch.normalize import normalize_params
from futurefetch.features.fetch.redact import redact_headers, redact_url_credentials
from futurefetch.features.fetch.response import FetchResponse


logger = structlog.get_logger()

RequestContent = str | bytes | Iterator[bytes] | None

_END_OF_BODY = object()

# Chunks a writer may queue ahead of the transport
WRITER_QUEUE_MAXSIZE = 16

# How often a blocked writer re-checks whether the request was abandoned
WRITER_POLL_SECONDS = 0.05


class BodyWriterClosedError(Exception):
    """Raised into a writer callback once its request is no longer sending."""


def _put_until_closed(
    chunks: "queue.Queue[object]", item: object, closed: threading.Event
) -> bool:
    """Queue an item, giving up once ``closed`` is set.

    Returns:
        True if the item was queued.
    """
    while not closed.is_set():
        try:
            chunks.put(item, timeout=WRITER_POLL_SECONDS)
        except queue.Full:
            continue
        return True
    return False


class _QueueSink:
    """Body sink handed to writer callbacks, feeding a bounded chunk queue."""

    def __init__(self, chunks: "queue.Queue[object]", closed: threading.Event) -> None:
        self._chunks = chunks
        self._closed = closed

    def write(self, data: bytes | str) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        if self._closed.is_set():
            raise BodyWriterClosedError("Request body is no longer being sent")
        if data and not _put_until_closed(self._chunks, bytes(data), self._closed):
            raise BodyWriterClosedError("Request body is no longer being sent")


def iter_stream(source: Readable, length: int) -> Iterator[bytes]:
    """Read exactly ``length`` bytes from a readable source in chunks.

    Args:
        source: Object exposing ``read(size)``.
        length: Declared number of bytes to send.

    Yields:
        Body chunks.

    Raises:
        TransportError: If the source ends before the declared length.
    """
    remaining = length
    while remaining > 0:
        chunk = source.read(min(DEFAULT_CHUNK_SIZE, remaining))
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        if not chunk:
            msg = f"Body stream ended after {length - remaining} of {length} bytes"
            raise TransportError(FetchErrorClass.PROTOCOL_ERROR, msg)
        chunk = chunk[:remaining]
        remaining -= len(chunk)
        yield chunk


def iter_writer(writer: BodyWriter) -> Iterator[bytes]:
    """Turn a push-style writer callback into a pull iterator.

    The writer runs on a helper thread and its writes are yielded as
    they arrive. The queue between them is bounded, so a writer faster
    than the transport blocks. An exception raised by the writer is
    re-raised once the chunks written before it have been yielded.

    When the iterator is closed before the body ends, for instance
    because the transport failed, the writer's next ``write`` raises
    BodyWriterClosedError and the helper thread is joined.

    Args:
        writer: Callback receiving a sink with a ``write`` method.

    Yields:
        Body chunks.
    """
    chunks: queue.Queue[object] = queue.Queue(maxsize=WRITER_QUEUE_MAXSIZE)
    closed = threading.Event()
    failures: list[Exception] = []

    def _produce() -> None:
        try:
            writer(_QueueSink(chunks, closed))
        except Exception as e:  # noqa: BLE001
            failures.append(e)
        finally:
            _put_until_closed(chunks, _END_OF_BODY, closed)

    thread = threading.Thread(target=_produce, name="fetch-body-writer", daemon=True)
    thread.start()

    try:
        while True:
            chunk = chunks.get()
            if chunk is _END_OF_BODY:
                break
            yield chunk  # type: ignore[misc]
    finally:
        closed.set()
        while True:
            try:
                chunks.get_nowait()
            except queue.Empty:
                break
        thread.join()

    if failures:
        raise failures[0]


class RequestExecutor:
    """Runs a single HTTP exchange and builds a FetchResponse.

    A transport client is created for each call and closed on every exit
    path. No retries are attempted.
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            config: Fetch configuration.
            transport: Optional httpx transport, mainly for tests.
        """
        self._config = config or FetchConfig()
        self._transport = transport
        self._metrics = FetchMetrics.get_instance()
        self._log = logger.bind(component="fetch")

    def execute(self, url: str, params: FetchParams | None = None) -> FetchResponse:
        """Execute a request.

        Args:
            url: Target URL.
            params: Request parameters, normalized before use.

        Returns:
            FetchResponse owning a copy of the response body.

        Raises:
            InvalidBodyError: If the body matched no supported variant.
            TransportError: If the HTTP exchange failed.
        """
        params = normalize_params(params)
        start_time_ns = time.perf_counter_ns()
        log = self._log.bind(
            url=redact_url_credentials(url),
            method=params.method,
            redirect=params.redirect,
            cache=params.cache,
        )

        try:
            content, body_headers = self._prepare_body(params.body)
        except InvalidBodyError as e:
            self._metrics.record_failure(e.error_class)
            log.warning("invalid_body", **e.to_dict())
            raise

        headers = self._build_headers(params, body_headers)
        log.debug("fetch_start", headers=redact_headers(dict(headers.items())))

        try:
            response = self._send(url, params, headers, content)
        except FetchError as e:
            self._metrics.record_failure(e.error_class)
            log.info("fetch_failed", **e.to_dict())
            raise

        duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
        self._metrics.record_duration(duration_ms)
        log.info(
            "fetch_complete",
            status_code=response.status,
            redirected=response.redirected,
            final_url=redact_url_credentials(response.url),
            duration_ms=round(duration_ms, 2),
        )
        return response

    def _prepare_body(
        self, body: FetchBody | None
    ) -> tuple[RequestContent, dict[str, str]]:
        """Map a body variant to httpx content.

        Args:
            body: Request body, or None.

        Returns:
            Tuple of content and extra headers the variant requires.

        Raises:
            InvalidBodyError: If the body is unsupported.
        """
        if body is None:
            return None, {}

        if body.kind == BodyKind.TEXT:
            return body.value, {}
        if body.kind == BodyKind.RAW:
            return body.value, {}
        if body.kind == BodyKind.STREAM:
            return iter_stream(body.value, body.length), {
                "Content-Length": str(body.length)
            }
        if body.kind == BodyKind.WRITER:
            return iter_writer(body.value), {}

        raise InvalidBodyError(body.value)

    def _build_headers(
        self, params: FetchParams, body_headers: dict[str, str]
    ) -> httpx.Headers:
        """Build request headers.

        Caller headers are applied in order, so the last of two keys that
        differ only by case wins.

        Args:
            params: Normalized parameters.
            body_headers: Headers required by the body variant.

        Returns:
            Request headers.
        """
        headers = httpx.Headers()
        for key, value in (params.headers or {}).items():
            headers[key] = value

        if params.cache != FetchCache.DEFAULT.value:
            headers[CACHE_CONTROL_HEADER] = params.cache

        for key, value in body_headers.items():
            headers[key] = value

        return headers

    def _send(
        self,
        url: str,
        params: FetchParams,
        headers: httpx.Headers,
        content: RequestContent,
    ) -> FetchResponse:
        """Dispatch the request and copy the response out of the transport.

        Args:
            url: Target URL.
            params: Normalized parameters.
            headers: Request headers.
            content: Request content.

        Returns:
            FetchResponse for the exchange.

        Raises:
            TransportError: If the exchange failed.
        """
        follow = params.redirect == FetchRedirect.FOLLOW.value

        try:
            with httpx.Client(
                transport=self._transport,
                timeout=self._config.timeout_seconds,
                max_redirects=MAX_REDIRECTS,
                headers={"User-Agent": self._config.user_agent},
            ) as client:
                request = client.build_request(
                    params.method, url, headers=headers, content=content
                )
                response = client.send(request, follow_redirects=follow, stream=True)
                try:
                    body = self._read_body(response)
                finally:
                    response.close()
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            raise classify_transport_error(e) from e
        except FetchError:
            raise
        except Exception as e:  # noqa: BLE001
            raise classify_transport_error(e) from e
        finally:
            if isinstance(content, Generator):
                content.close()

        status = response.status_code
        redirected = False
        if not follow:
            redirected = HTTP_STATUS_REDIRECT_MIN <= status < HTTP_STATUS_REDIRECT_MAX

        self._metrics.record_request(status, len(body), redirected)

        return FetchResponse.build(
            ok=HTTP_STATUS_OK_MIN <= status < HTTP_STATUS_OK_MAX,
            redirected=redirected,
            status=status,
            status_text=httpx.codes.get_reason_phrase(status) or UNKNOWN_STATUS_TEXT,
            url=str(response.url),
            headers=self._collect_headers(response.headers),
            body=body,
            encoding=response.charset_encoding,
        )

    def _read_body(self, response: httpx.Response) -> bytes:
        """Read the response body, enforcing the configured size limit.

        Args:
            response: Streaming HTTP response.

        Returns:
            Response body bytes.

        Raises:
            TransportError: If the size limit is exceeded.
        """
        buffer = BytesIO()
        total_read = 0
        max_size = self._config.max_response_size_bytes

        for chunk in response.iter_bytes(chunk_size=DEFAULT_CHUNK_SIZE):
            total_read += len(chunk)
            if max_size is not None and total_read > max_size:
                msg = (
                    f"Response size exceeded limit of {max_size} bytes "
                    f"(read {total_read} bytes)"
                )
                raise TransportError(FetchErrorClass.RESPONSE_SIZE_EXCEEDED, msg)
            buffer.write(chunk)

        return buffer.getvalue()

    def _collect_headers(self, headers: httpx.Headers) -> dict[str, str]:
        """Flatten response headers, keeping their original casing.

        Repeated headers keep the last value.
        """
        encoding = headers.encoding
        return {
            key.decode(encoding): value.decode(encoding) for key, value in headers.raw
        }

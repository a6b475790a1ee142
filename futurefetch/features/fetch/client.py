"""Non-blocking fetch entry point."""

import itertools
import sys
import threading
import uuid
from concurrent.futures import Future
from typing import TextIO

import httpx
import structlog

from futurefetch.features.fetch.config import FetchConfig
from futurefetch.features.fetch.executor import RequestExecutor
from futurefetch.features.fetch.models import FetchParams
from futurefetch.features.fetch.response import FetchResponse
from futurefetch.features.observability.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging_from_settings,
)
from futurefetch.settings import AppSettings, get_settings


logger = structlog.get_logger()

_worker_ids = itertools.count(1)


class Fetcher:
    """Issues fetches on dedicated worker threads.

    Every call to ``fetch`` starts its own thread, so concurrent fetches
    share no mutable state and complete in whatever order the network
    allows.
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            config: Fetch configuration.
            transport: Optional httpx transport, mainly for tests.
        """
        self._config = config or FetchConfig()
        self._transport = transport

    @property
    def config(self) -> FetchConfig:
        """Configuration used for new fetches."""
        return self._config

    def fetch(
        self, url: str, params: FetchParams | None = None
    ) -> "Future[FetchResponse]":
        """Start a fetch and return its pending result.

        Args:
            url: Target URL.
            params: Request parameters; invalid enumerations are coerced.

        Returns:
            Future resolved with the FetchResponse, or rejected with
            InvalidBodyError or TransportError.
        """
        future: Future[FetchResponse] = Future()
        future.set_running_or_notify_cancel()

        thread = threading.Thread(
            target=self._run,
            args=(future, url, params),
            name=f"fetch-worker-{next(_worker_ids)}",
            daemon=True,
        )
        thread.start()
        return future

    def _run(
        self,
        future: "Future[FetchResponse]",
        url: str,
        params: FetchParams | None,
    ) -> None:
        bind_request_context(uuid.uuid4().hex)
        try:
            executor = RequestExecutor(self._config, self._transport)
            response = executor.execute(url, params)
        except Exception as e:  # noqa: BLE001
            logger.debug("fetch_rejected", error=str(e), error_type=type(e).__name__)
            future.set_exception(e)
        else:
            future.set_result(response)
        finally:
            clear_request_context()


_default_fetcher: Fetcher | None = None
_default_lock = threading.Lock()


def get_default_fetcher() -> Fetcher:
    """Get the shared fetcher configured from environment settings."""
    global _default_fetcher  # noqa: PLW0603
    with _default_lock:
        if _default_fetcher is None:
            _default_fetcher = Fetcher(FetchConfig.from_settings(get_settings()))
        return _default_fetcher


def fetch(url: str, params: FetchParams | None = None) -> "Future[FetchResponse]":
    """Fetch a URL without blocking the caller.

    Args:
        url: Target URL.
        params: Request parameters.

    Returns:
        Future resolved with the FetchResponse.
    """
    return get_default_fetcher().fetch(url, params)


def init_from_settings(
    settings: AppSettings | None = None,
    log_output: TextIO = sys.stderr,
) -> Fetcher:
    """Configure logging and the shared fetcher from settings.

    Applications call this once at startup. ``FETCH_LOG_LEVEL`` and
    ``FETCH_LOG_JSON`` select the log level and renderer, the remaining
    ``FETCH_`` variables configure the fetcher that module-level
    ``fetch`` uses from then on.

    Args:
        settings: Settings to apply, read from the environment if omitted.
        log_output: Stream receiving log output.

    Returns:
        The installed default fetcher.
    """
    global _default_fetcher  # noqa: PLW0603
    settings = settings or get_settings()
    configure_logging_from_settings(
        settings.log_level, json_format=settings.log_json, output=log_output
    )
    fetcher = Fetcher(FetchConfig.from_settings(settings))
    with _default_lock:
        _default_fetcher = fetcher
    return fetcher

"""Unit tests for the non-blocking Fetcher."""

import io
import threading
import time
from collections.abc import Generator

import httpx
import pytest
import structlog

from futurefetch.features.fetch import client
from futurefetch.features.fetch.body import new_body
from futurefetch.features.fetch.client import (
    Fetcher,
    fetch,
    get_default_fetcher,
    init_from_settings,
)
from futurefetch.features.fetch.errors import (
    FetchErrorClass,
    InvalidBodyError,
    TransportError,
)
from futurefetch.features.fetch.models import BodySink, FetchParams
from futurefetch.features.fetch.promise import all_of, then, wait
from futurefetch.features.fetch.response import FetchResponse
from futurefetch.features.observability.logging import get_logger
from futurefetch.settings import AppSettings


URL = "http://example.test/"


class CountingTransport(httpx.MockTransport):
    """Mock transport counting how many requests reach it."""

    def __init__(self) -> None:
        self.calls = 0
        self._lock = threading.Lock()
        super().__init__(self._respond)

    def _respond(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.calls += 1
        delay_ms = int(request.url.params.get("delay_ms", "0"))
        time.sleep(delay_ms / 1000.0)
        return httpx.Response(200, text=f"{request.method} {request.url.path}")


class TestFetcher:
    """Tests for Fetcher.fetch."""

    def test_returns_before_completion(self) -> None:
        """Test that fetch hands back a pending future immediately."""
        release = threading.Event()

        def _blocking(request: httpx.Request) -> httpx.Response:
            release.wait(timeout=5)
            return httpx.Response(200, text="released")

        fetcher = Fetcher(transport=httpx.MockTransport(_blocking))

        future = fetcher.fetch(URL)

        assert future.done() is False
        release.set()
        response = wait(future, timeout=5)
        assert isinstance(response, FetchResponse)
        assert wait(response.text()) == "released"

    def test_invalid_body_rejects_without_network(self) -> None:
        """Test that unsupported bodies reject before any transport call."""
        transport = CountingTransport()
        fetcher = Fetcher(transport=transport)

        future = fetcher.fetch(URL, FetchParams(method="POST", body=new_body(12345)))

        with pytest.raises(InvalidBodyError, match="12345"):
            wait(future, timeout=5)
        assert transport.calls == 0

    def test_transport_error_rejects(self) -> None:
        """Test that transport failures reject the future."""

        def _refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        fetcher = Fetcher(transport=httpx.MockTransport(_refuse))

        with pytest.raises(TransportError) as exc_info:
            wait(fetcher.fetch(URL), timeout=5)

        assert exc_info.value.error_class == FetchErrorClass.CONNECTION_ERROR

    def test_writer_error_rejects(self) -> None:
        """Test that a failing body writer rejects with a transport error."""

        def _write(sink: BodySink) -> None:
            raise RuntimeError("no data")

        fetcher = Fetcher(transport=CountingTransport())

        with pytest.raises(TransportError) as exc_info:
            wait(fetcher.fetch(URL, FetchParams(method="POST", body=new_body(_write))), timeout=5)

        assert exc_info.value.error_class == FetchErrorClass.UNKNOWN
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert "no data" in str(exc_info.value)

    def test_then_chaining(self) -> None:
        """Test chaining a callback onto a fetch."""
        fetcher = Fetcher(transport=CountingTransport())

        status = then(fetcher.fetch(URL, FetchParams(method="delete")), lambda r: r.status)

        assert wait(status, timeout=5) == 200


class TestConcurrentFetches:
    """Tests for fetches running in parallel."""

    def test_all_of_preserves_input_order(self) -> None:
        """Test that combined results follow input order."""
        transport = CountingTransport()
        fetcher = Fetcher(transport=transport)
        delays = [300, 100, 200, 0]

        futures = [
            fetcher.fetch(f"{URL}item/{index}?delay_ms={delay}")
            for index, delay in enumerate(delays)
        ]
        responses = wait(all_of(futures), timeout=10)

        assert [r.url.split("?")[0] for r in responses] == [
            f"{URL}item/{index}" for index in range(len(delays))
        ]
        assert all(r.ok for r in responses)
        assert transport.calls == len(delays)

    def test_fetches_run_in_parallel(self) -> None:
        """Test that concurrent fetches overlap instead of queueing."""
        fetcher = Fetcher(transport=CountingTransport())

        start = time.perf_counter()
        futures = [fetcher.fetch(f"{URL}?delay_ms=300") for _ in range(4)]
        wait(all_of(futures), timeout=10)
        elapsed = time.perf_counter() - start

        assert elapsed < 1.0

    def test_responses_are_independent(self) -> None:
        """Test that consuming one response leaves the others intact."""
        fetcher = Fetcher(transport=CountingTransport())

        first, second = wait(all_of([fetcher.fetch(URL), fetcher.fetch(URL)]), timeout=5)
        wait(first.raw())

        assert first.body_used is True
        assert second.body_used is False
        assert wait(second.text()) == "GET /"


class TestDefaultFetcher:
    """Tests for the module-level entry point."""

    def test_default_fetcher_shared(self) -> None:
        """Test that the default fetcher is created once."""
        assert get_default_fetcher() is get_default_fetcher()

    def test_module_fetch_rejects_invalid_body(self) -> None:
        """Test the module-level fetch without touching the network."""
        future = fetch(URL, FetchParams(body=new_body(object())))

        with pytest.raises(InvalidBodyError):
            wait(future, timeout=5)


class TestInitFromSettings:
    """Tests for settings-driven startup."""

    @pytest.fixture(autouse=True)
    def restore_defaults(self, monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
        """Isolate the shared fetcher and logging configuration."""
        monkeypatch.setattr(client, "_default_fetcher", None)
        yield
        structlog.reset_defaults()

    def test_installs_default_fetcher(self) -> None:
        """Test that module-level fetch uses the configured fetcher."""
        settings = AppSettings(  # type: ignore[call-arg]
            _env_file=None, user_agent="startup/1.0", timeout_seconds=3.0
        )

        fetcher = init_from_settings(settings, log_output=io.StringIO())

        assert get_default_fetcher() is fetcher
        assert fetcher.config.user_agent == "startup/1.0"
        assert fetcher.config.timeout_seconds == 3.0

    def test_applies_log_level_and_format(self) -> None:
        """Test that the log settings select level and JSON rendering."""
        output = io.StringIO()
        settings = AppSettings(  # type: ignore[call-arg]
            _env_file=None, log_level="warning", log_json=True
        )

        init_from_settings(settings, log_output=output)
        get_logger().info("hidden")
        get_logger().warning("shown", status_code=500)

        assert "hidden" not in output.getvalue()
        assert '"event": "shown"' in output.getvalue()

    def test_reads_environment_when_no_settings(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that FETCH_ variables are read when settings are omitted."""
        monkeypatch.setenv("FETCH_USER_AGENT", "env-agent/2.0")
        monkeypatch.setenv("FETCH_LOG_JSON", "false")

        fetcher = init_from_settings(log_output=io.StringIO())

        assert fetcher.config.user_agent == "env-agent/2.0"

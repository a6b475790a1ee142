"""Helpers over ``concurrent.futures.Future``.

Fetch results and body conversions are delivered as standard futures.
These helpers provide the resolve/reject, chaining and all-of-N pieces
callers need on top of them.
"""

import threading
from collections.abc import Callable, Sequence
from concurrent.futures import CancelledError, Future
from typing import Any, TypeVar


T = TypeVar("T")
R = TypeVar("R")


def resolved(value: T) -> "Future[T]":
    """Create a future already resolved with a value."""
    future: Future[T] = Future()
    future.set_result(value)
    return future


def rejected(error: BaseException) -> "Future[Any]":
    """Create a future already rejected with an error."""
    future: Future[Any] = Future()
    future.set_exception(error)
    return future


def _failure(source: "Future[Any]") -> BaseException | None:
    """Error a settled future failed with, treating cancellation as one."""
    if source.cancelled():
        return CancelledError()
    return source.exception()


def wait(future: "Future[T]", timeout: float | None = None) -> T:
    """Block until the future settles.

    Args:
        future: Future to wait on.
        timeout: Optional deadline in seconds.

    Returns:
        The resolved value.

    Raises:
        The rejection error, or TimeoutError if the deadline passes.
    """
    return future.result(timeout=timeout)


def then(future: "Future[T]", callback: Callable[[T], R]) -> "Future[R]":
    """Chain a callback onto a future's resolved value.

    Rejections skip the callback and propagate. A cancelled source
    rejects the chained future with CancelledError. An exception raised by
    the callback rejects the chained future.

    Args:
        future: Source future.
        callback: Function applied to the resolved value.

    Returns:
        Future settled with the callback result.
    """
    chained: Future[R] = Future()

    def _on_done(source: "Future[T]") -> None:
        error = _failure(source)
        if error is not None:
            chained.set_exception(error)
            return
        try:
            chained.set_result(callback(source.result()))
        except Exception as e:  # noqa: BLE001
            chained.set_exception(e)

    future.add_done_callback(_on_done)
    return chained


def all_of(futures: Sequence["Future[T]"]) -> "Future[list[T]]":
    """Combine futures into one resolving with all values in input order.

    Rejects with the first error observed, CancelledError for a
    cancelled input. Completion order does not affect the order of the
    result list.

    Args:
        futures: Futures to combine.

    Returns:
        Future resolved with the list of values.
    """
    combined: Future[list[T]] = Future()
    results: list[Any] = [None] * len(futures)
    remaining = len(futures)
    lock = threading.Lock()

    if remaining == 0:
        combined.set_result([])
        return combined

    def _make_callback(index: int) -> Callable[["Future[T]"], None]:
        def _on_done(source: "Future[T]") -> None:
            nonlocal remaining
            error = _failure(source)
            with lock:
                if combined.done():
                    return
                if error is not None:
                    combined.set_exception(error)
                    return
                results[index] = source.result()
                remaining -= 1
                if remaining == 0:
                    combined.set_result(list(results))

        return _on_done

    for index, future in enumerate(futures):
        future.add_done_callback(_make_callback(index))

    return combined

"""Bounded, order-preserving concurrency and throttled progress reporting.

``p_map`` hides ``ThreadPoolExecutor`` mechanics behind a single call: at most
``concurrency`` mapper calls run at once and results come back in input order,
whatever order they complete in.

``ProgressThrottle`` gates an ``on_progress`` callback by comparing against the
last time it fired; it is best-effort and makes no exactly-once promise for
the first or last update.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TypeVar

from .logging_setup import get_logger

InT = TypeVar("InT")
OutT = TypeVar("OutT")

_logger = get_logger("statement_ingest.concurrency")


def p_map(
    iterable: Iterable[InT],
    mapper: Callable[[InT], OutT],
    *,
    concurrency: int,
    stop_on_error: bool = True,
) -> list[OutT]:
    """Map ``iterable`` through ``mapper`` on at most ``concurrency`` threads.

    Results keep the input order. With ``stop_on_error`` the first failure in
    input order is re-raised and queued calls are cancelled; otherwise every
    call runs and failures are raised together as an ``ExceptionGroup``.
    """

    if not isinstance(concurrency, int) or concurrency < 1:
        raise ValueError("concurrency must be a positive integer")

    items = list(iterable)
    if not items:
        return []

    results: list[OutT] = []
    errors: list[Exception] = []
    with ThreadPoolExecutor(max_workers=concurrency, thread_name_prefix="p_map") as pool:
        futures: list[Future[OutT]] = [pool.submit(mapper, item) for item in items]
        for fut in futures:
            try:
                results.append(fut.result())
            except Exception as e:  # noqa: BLE001
                if stop_on_error:
                    pool.shutdown(wait=False, cancel_futures=True)
                    raise
                errors.append(e)

    if errors:
        raise ExceptionGroup("p_map: one or more mapper calls failed", errors)
    return results


class ProgressThrottle:
    """Forward progress to ``callback`` at most once per ``interval`` seconds.

    The last-sent timestamp starts at construction, so the first report is
    only forwarded once ``interval`` has elapsed since the run began. Callback
    errors are logged and swallowed; progress is advisory.
    """

    def __init__(
        self,
        callback: Callable[[int], object] | None,
        *,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._callback = callback
        self._interval = interval
        self._clock = clock
        self._last_sent = clock()

    def report(self, processed: int) -> bool:
        """Forward ``processed`` if the interval elapsed; return whether it was sent."""

        if self._callback is None:
            return False
        now = self._clock()
        if now - self._last_sent < self._interval:
            return False
        self._last_sent = now
        try:
            self._callback(processed)
        except Exception as e:  # noqa: BLE001 - progress is best-effort
            _logger.warning(
                "progress:callback_failed processed=%d error=%s", processed, e.__class__.__name__
            )
        return True


__all__ = ["ProgressThrottle", "p_map"]

"""Categorization orchestration for deferred transactions.

Public API:
    - :func:`partition_transactions`
    - :func:`categorize_deferred`
    - :class:`BatchCategorizer` (collaborator protocol)

Deferred transactions are cut into fixed-size batches and dispatched in
windows of up to ``concurrency`` batches through :func:`p_map`. A batch that
fails (collaborator exception or a response of the wrong shape) degrades to
fallback items for exactly its own transactions; other batches are untouched.
Results come back in batch-dispatch order, not original transaction order.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol

from .categories import FALLBACK_CATEGORY
from .concurrency import ProgressThrottle, p_map
from .config import BATCH_SIZE, CONCURRENCY, PROGRESS_INTERVAL_SEC
from .logging_setup import get_logger
from .models import BatchItem, CanonicalTransaction, CategorizedItem

_logger = get_logger("statement_ingest.categorize")

_FORCED_CONFIDENCE = 1.0
_FALLBACK_CONFIDENCE = 0.0
_BATCH_SOURCE = "csv"

type RawResult = Mapping[str, Any] | CategorizedItem


class BatchCategorizer(Protocol):
    """Collaborator that categorizes one batch: ``batch-in -> batch-out``.

    May raise; the orchestrator treats any exception as a failure of that
    batch alone. Retries and circuit breaking are the collaborator's concern.
    """

    def categorize_batch(self, items: Sequence[BatchItem]) -> Sequence[RawResult]: ...


def partition_transactions(
    transactions: Sequence[CanonicalTransaction],
) -> tuple[list[CategorizedItem], list[BatchItem]]:
    """Split transactions into forced results and batch items for the collaborator.

    Forced transactions become :class:`CategorizedItem` with confidence 1.0;
    every other transaction becomes a :class:`BatchItem` whose ``idx`` points
    back into ``transactions``.
    """

    forced: list[CategorizedItem] = []
    deferred: list[BatchItem] = []
    for idx, tx in enumerate(transactions):
        if tx.forced_category is not None:
            forced.append(
                CategorizedItem(
                    idx=idx,
                    shop=tx.merchant,
                    category=tx.forced_category.value,
                    amount=tx.amount,
                    confidence=_FORCED_CONFIDENCE,
                )
            )
        else:
            deferred.append(
                BatchItem(
                    idx=idx,
                    text=f"{tx.merchant} {tx.amount}",
                    date=tx.date,
                    source=_BATCH_SOURCE,
                )
            )
    return forced, deferred


def fallback_item(idx: int, tx: CanonicalTransaction) -> CategorizedItem:
    return CategorizedItem(
        idx=idx,
        shop=tx.merchant,
        category=FALLBACK_CATEGORY.value,
        amount=tx.amount,
        confidence=_FALLBACK_CONFIDENCE,
    )


def _chunk[T](seq: Sequence[T], size: int) -> list[Sequence[T]]:
    return [seq[i : i + size] for i in range(0, len(seq), size)]


def _align_batch(
    batch_index: int,
    batch: Sequence[BatchItem],
    raw_results: Sequence[RawResult],
    transactions: Sequence[CanonicalTransaction],
) -> list[CategorizedItem]:
    """Validate collaborator output and align it to the batch by ``idx``.

    Results for indices outside the batch are dropped; batch items without a
    result get the fallback. Raises when the response is not a list.
    """

    if not isinstance(raw_results, (list, tuple)):
        raise TypeError(f"expected a list of results, got {type(raw_results).__name__}")

    expected = {item.idx for item in batch}
    by_idx: dict[int, CategorizedItem] = {}
    for raw in raw_results:
        item = raw if isinstance(raw, CategorizedItem) else CategorizedItem.model_validate(raw)
        if item.idx not in expected:
            _logger.warning("categorize:unexpected_idx batch=%d idx=%d", batch_index, item.idx)
            continue
        by_idx.setdefault(item.idx, item)

    missing = [item.idx for item in batch if item.idx not in by_idx]
    if missing:
        _logger.warning("categorize:missing_results batch=%d count=%d", batch_index, len(missing))
    return [by_idx.get(b.idx) or fallback_item(b.idx, transactions[b.idx]) for b in batch]


def _categorize_one_batch(
    batch_index: int,
    batch: Sequence[BatchItem],
    categorizer: BatchCategorizer,
    transactions: Sequence[CanonicalTransaction],
) -> list[CategorizedItem]:
    t0 = time.perf_counter()
    try:
        raw_results = categorizer.categorize_batch(list(batch))
        out = _align_batch(batch_index, batch, raw_results, transactions)
    except Exception as e:  # noqa: BLE001 - failure is local to the batch
        dt_ms = (time.perf_counter() - t0) * 1000.0
        _logger.warning(
            "categorize:batch_failed batch=%d items=%d latency_ms=%.2f error=%s",
            batch_index,
            len(batch),
            dt_ms,
            e.__class__.__name__,
        )
        return [fallback_item(b.idx, transactions[b.idx]) for b in batch]

    dt_ms = (time.perf_counter() - t0) * 1000.0
    _logger.info(
        "categorize:batch_done batch=%d items=%d latency_ms=%.2f",
        batch_index,
        len(out),
        dt_ms,
    )
    return out


def categorize_deferred(
    items: Sequence[BatchItem],
    transactions: Sequence[CanonicalTransaction],
    categorizer: BatchCategorizer,
    *,
    batch_size: int = BATCH_SIZE,
    concurrency: int = CONCURRENCY,
    on_progress: Callable[[int], object] | None = None,
    progress_interval: float = PROGRESS_INTERVAL_SEC,
    clock: Callable[[], float] = time.monotonic,
) -> list[CategorizedItem]:
    """Categorize ``items`` in bounded concurrent batches.

    Parameters
    ----------
    items:
        Batch items for deferred transactions; ``idx`` indexes ``transactions``.
    transactions:
        The parsed transactions, used for fallback merchant and amount.
    categorizer:
        The :class:`BatchCategorizer` collaborator.
    batch_size, concurrency:
        Items per collaborator call and the maximum number of calls in flight.
    on_progress:
        Receives the cumulative processed count after a window completes,
        throttled to one call per ``progress_interval`` seconds.

    Returns
    -------
    list[CategorizedItem]
        One result per input item, in batch-dispatch order.
    """

    if not items:
        return []
    if batch_size < 1 or concurrency < 1:
        raise ValueError("batch_size and concurrency must be positive integers")

    batches = list(enumerate(_chunk(items, batch_size)))
    windows = _chunk(batches, concurrency)
    throttle = ProgressThrottle(on_progress, interval=progress_interval, clock=clock)
    _logger.info(
        "categorize:start items=%d batches=%d windows=%d",
        len(items),
        len(batches),
        len(windows),
    )

    def _map_batch(indexed: tuple[int, Sequence[BatchItem]]) -> list[CategorizedItem]:
        batch_index, batch = indexed
        return _categorize_one_batch(batch_index, batch, categorizer, transactions)

    results: list[CategorizedItem] = []
    for window_index, window in enumerate(windows):
        for batch_results in p_map(window, _map_batch, concurrency=concurrency):
            results.extend(batch_results)
        sent = throttle.report(len(results))
        _logger.debug(
            "categorize:window_done window=%d processed=%d progress_sent=%s",
            window_index,
            len(results),
            sent,
        )

    return results


__all__ = [
    "BatchCategorizer",
    "categorize_deferred",
    "fallback_item",
    "partition_transactions",
]

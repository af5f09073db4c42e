"""End-to-end ingestion of one uploaded statement.

Flow: size cap, decode, parse, partition into forced and deferred, categorize
the deferred items, merge (forced first), persist with deduplication, write
the audit entry, and summarize. The only user-facing prose produced here is
the skip-reason phrase; presentation belongs to the caller.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol

from .categorize import BatchCategorizer, categorize_deferred, partition_transactions
from .config import IngestSettings
from .dialects import parse_statement
from .errors import (
    ClassifiedError,
    UploadTooLargeError,
    check_upload_size,
    classify_database_error,
    classify_error,
)
from .logging_setup import get_logger
from .models import BatchResult, BreakdownEntry, ExpenseInput, ParseResult
from .summary import (
    build_category_breakdown,
    build_shop_breakdown,
    count_ai_fallbacks,
    format_skipped_stats,
    merge_categorized,
)

AUDIT_ACTION_BATCH_CREATE = "BATCH_CREATE"

_logger = get_logger("statement_ingest.pipeline")


class IngestStatus(StrEnum):
    COMPLETED = "completed"
    NOTHING_FOUND = "nothing_found"
    REJECTED = "rejected"
    FAILED = "failed"


class ExpenseStore(Protocol):
    """Persistence collaborator with transactional batch semantics."""

    def create_expenses_batch(self, inputs: Sequence[ExpenseInput]) -> BatchResult: ...

    def create_audit_log(
        self,
        action: str,
        details: Mapping[str, Any],
        user_id: str | None,
        subject_id: str | None = None,
    ) -> None: ...


@dataclass(frozen=True, slots=True)
class IngestSummary:
    created_count: int
    duplicate_count: int
    total_count: int
    category_breakdown: tuple[BreakdownEntry, ...] = ()
    shop_breakdown: tuple[BreakdownEntry, ...] = ()
    skipped_info_text: str = ""
    ai_fallback_count: int = 0


@dataclass(frozen=True, slots=True)
class IngestOutcome:
    status: IngestStatus
    bank: str | None = None
    summary: IngestSummary | None = None
    error: ClassifiedError | None = None
    line_errors: tuple[str, ...] = field(default_factory=tuple)


def decode_statement(content: bytes) -> str:
    """Decode upload bytes as UTF-8 (BOM tolerated), falling back to CP1250."""

    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        _logger.info("ingest:decode_fallback encoding=cp1250")
        return content.decode("cp1250", errors="replace")


def _audit_details(
    parsed: ParseResult, result: BatchResult, file_name: str | None
) -> dict[str, Any]:
    return {
        "bank": parsed.bank,
        "total_transactions": len(parsed.transactions),
        "created": len(result.created),
        "duplicates": len(result.duplicates),
        "skipped": parsed.skipped.as_dict(),
        "file_name": file_name,
    }


def _run(
    content: bytes,
    *,
    file_name: str | None,
    user: str,
    categorizer: BatchCategorizer,
    store: ExpenseStore,
    on_progress: Callable[[int], object] | None,
    settings: IngestSettings,
) -> IngestOutcome:
    parsed = parse_statement(decode_statement(content), user_display_name=user)
    skipped_text = format_skipped_stats(parsed.skipped)
    if skipped_text:
        _logger.info("ingest:skipped bank=%s %s", parsed.bank, skipped_text)

    if not parsed.transactions:
        _logger.info("ingest:nothing_found bank=%s file=%s", parsed.bank, file_name)
        return IngestOutcome(
            status=IngestStatus.NOTHING_FOUND,
            bank=parsed.bank,
            summary=IngestSummary(0, 0, 0, skipped_info_text=skipped_text),
            line_errors=parsed.errors,
        )

    forced, deferred = partition_transactions(parsed.transactions)
    _logger.info(
        "ingest:partitioned bank=%s forced=%d deferred=%d skipped=%d",
        parsed.bank,
        len(forced),
        len(deferred),
        parsed.skipped.count,
    )
    ai_items = categorize_deferred(
        deferred,
        parsed.transactions,
        categorizer,
        batch_size=settings.batch_size,
        concurrency=settings.concurrency,
        on_progress=on_progress,
        progress_interval=settings.progress_interval_sec,
    )
    inputs = merge_categorized(
        parsed.transactions, [*forced, *ai_items], user=user, source=settings.source_tag
    )

    try:
        result = store.create_expenses_batch(inputs)
    except Exception as e:
        error = classify_database_error(e)
        _logger.error(
            "ingest:persist_failed bank=%s inputs=%d type=%s retryable=%s detail=%s",
            parsed.bank,
            len(inputs),
            error.type,
            error.retryable,
            error.technical_detail,
        )
        return IngestOutcome(
            status=IngestStatus.FAILED,
            bank=parsed.bank,
            error=error,
            line_errors=parsed.errors,
        )

    try:
        store.create_audit_log(
            AUDIT_ACTION_BATCH_CREATE, _audit_details(parsed, result, file_name), user
        )
    except Exception:
        # Expenses are already committed; the upload stands.
        _logger.exception("ingest:audit_failed bank=%s file=%s", parsed.bank, file_name)

    summary = IngestSummary(
        created_count=len(result.created),
        duplicate_count=len(result.duplicates),
        total_count=len(parsed.transactions),
        category_breakdown=build_category_breakdown(inputs),
        shop_breakdown=build_shop_breakdown(inputs),
        skipped_info_text=skipped_text,
        ai_fallback_count=count_ai_fallbacks(ai_items),
    )
    _logger.info(
        "ingest:done bank=%s created=%d duplicates=%d total=%d ai_fallbacks=%d",
        parsed.bank,
        summary.created_count,
        summary.duplicate_count,
        summary.total_count,
        summary.ai_fallback_count,
    )
    return IngestOutcome(
        status=IngestStatus.COMPLETED,
        bank=parsed.bank,
        summary=summary,
        line_errors=parsed.errors,
    )


def ingest_statement(
    content: bytes,
    *,
    declared_size: int,
    file_name: str | None,
    user: str,
    categorizer: BatchCategorizer,
    store: ExpenseStore,
    on_progress: Callable[[int], object] | None = None,
    settings: IngestSettings | None = None,
) -> IngestOutcome:
    """Ingest one uploaded statement and report the outcome.

    Never raises for expected failures: oversized uploads are ``rejected``,
    persistence errors are ``failed`` with a classified error, and anything
    unexpected is logged with its traceback and reported as ``failed``.
    """

    settings = settings or IngestSettings.from_env()
    try:
        check_upload_size(declared_size, len(content), settings.max_upload_bytes)
    except UploadTooLargeError as e:
        _logger.warning("ingest:rejected file=%s size=%d limit=%d", file_name, e.size, e.limit)
        return IngestOutcome(
            status=IngestStatus.REJECTED,
            error=classify_error(e),
        )

    try:
        return _run(
            content,
            file_name=file_name,
            user=user,
            categorizer=categorizer,
            store=store,
            on_progress=on_progress,
            settings=settings,
        )
    except Exception as e:
        _logger.exception("ingest:unexpected_error file=%s", file_name)
        return IngestOutcome(status=IngestStatus.FAILED, error=classify_error(e))


__all__ = [
    "AUDIT_ACTION_BATCH_CREATE",
    "ExpenseStore",
    "IngestOutcome",
    "IngestStatus",
    "IngestSummary",
    "decode_statement",
    "ingest_statement",
]

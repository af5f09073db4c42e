"""statement_ingest: bank CSV statements to categorized, deduplicated expenses."""

from __future__ import annotations

from .categories import ExpenseCategory
from .categorize import BatchCategorizer, categorize_deferred, partition_transactions
from .classifier import Classification, TransactionContext, classify
from .config import IngestSettings
from .dialects import detect_dialect, parse_statement
from .errors import ClassifiedError, ErrorType, classify_database_error, classify_error
from .models import (
    BatchItem,
    CanonicalTransaction,
    CategorizedItem,
    ExpenseInput,
    ParseResult,
    SkipReason,
    SkipStats,
)
from .pipeline import IngestOutcome, IngestStatus, IngestSummary, ingest_statement

__all__ = [
    "BatchCategorizer",
    "BatchItem",
    "CanonicalTransaction",
    "CategorizedItem",
    "Classification",
    "ClassifiedError",
    "ErrorType",
    "ExpenseCategory",
    "ExpenseInput",
    "IngestOutcome",
    "IngestSettings",
    "IngestStatus",
    "IngestSummary",
    "ParseResult",
    "SkipReason",
    "SkipStats",
    "TransactionContext",
    "categorize_deferred",
    "classify",
    "classify_database_error",
    "classify_error",
    "detect_dialect",
    "ingest_statement",
    "parse_statement",
    "partition_transactions",
]

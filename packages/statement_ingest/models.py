"""Data models for ``statement_ingest``.

Parsing produces immutable :class:`CanonicalTransaction` rows grouped in a
:class:`ParseResult`. Only transactions without a forced category travel to the
categorization collaborator, and they do so as :class:`BatchItem` views that
point back to their transaction by ``idx`` instead of copying it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date as date_type
from decimal import Decimal
from enum import StrEnum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, field_validator

from .categories import ExpenseCategory

# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class SkipReason(StrEnum):
    """Why a parsed row was deliberately kept out of the expense set."""

    INTERNAL_TRANSFER = "internal_transfer"
    ATM_WITHDRAWAL = "atm_withdrawal"
    CARD_PAYMENT = "card_payment"
    BANK_FEE = "bank_fee"
    INTEREST = "interest"
    ZEN_TOPUP = "zen_topup"
    REVOLUT_TOPUP = "revolut_topup"
    SELF_TRANSFER = "self_transfer"
    CARD_TOPUP = "card_topup"


@dataclass(frozen=True, slots=True)
class CanonicalTransaction:
    """A single expense row in bank-independent form.

    ``amount`` is always a positive magnitude with two decimal places; the
    debit/credit direction is resolved by the dialect parser. ``date`` is
    ``YYYY-MM-DD``.
    """

    date: str
    merchant: str
    amount: Decimal
    description: str
    raw_line: str
    forced_category: ExpenseCategory | None = None


@dataclass(frozen=True, slots=True)
class SkipStats:
    """Per-parse skip counters; ``reasons`` iterates in recording order."""

    count: int = 0
    reasons: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    def as_dict(self) -> dict[str, object]:
        return {"count": self.count, "reasons": dict(self.reasons)}


@dataclass(frozen=True, slots=True)
class ParseResult:
    bank: str
    transactions: tuple[CanonicalTransaction, ...]
    errors: tuple[str, ...] = ()
    skipped: SkipStats = field(default_factory=SkipStats)


# ---------------------------------------------------------------------------
# Categorization
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BatchItem:
    """Categorization input for one deferred transaction.

    ``idx`` indexes into ``ParseResult.transactions`` and is the only link back
    to the originating row.
    """

    idx: int
    text: str
    date: str
    source: str = "csv"

    def to_payload(self) -> dict[str, object]:
        return {"idx": self.idx, "text": self.text, "date": self.date, "source": self.source}


class CategorizedItem(BaseModel):
    """Typed, validated categorization result for one transaction.

    ``shop`` and ``amount`` may be omitted by the collaborator; the aggregator
    then falls back to the transaction's own merchant and amount.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", str_strip_whitespace=True)

    idx: int
    category: str
    shop: str | None = None
    amount: Decimal | None = None
    confidence: float = 0.0

    @field_validator("confidence")
    @classmethod
    def _confidence_in_unit_interval(cls, v: float) -> float:
        fv = float(v)
        if 0.0 <= fv <= 1.0:
            return fv
        raise ValueError("confidence must be within [0,1]")

    @field_validator("amount")
    @classmethod
    def _amount_magnitude(cls, v: Decimal | None) -> Decimal | None:
        if v is None:
            return None
        return abs(v).quantize(Decimal("0.01"))


# ---------------------------------------------------------------------------
# Persistence and reporting
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ExpenseInput:
    """One row to persist; the content hash is derived from it."""

    amount: Decimal
    category: str
    shop: str
    user: str
    source: str
    date: str
    raw_input: str = ""
    description: str = ""

    @property
    def date_value(self) -> date_type:
        return date_type.fromisoformat(self.date)


@dataclass(frozen=True, slots=True)
class PersistedExpense:
    """Snapshot of a stored expense row returned by batch persistence."""

    id: int
    content_hash: str
    amount: Decimal
    category: str
    shop: str
    date: str


@dataclass(frozen=True, slots=True)
class BatchResult:
    created: tuple[PersistedExpense, ...]
    duplicates: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class BreakdownEntry:
    name: str
    count: int
    amount: Decimal


__all__ = [
    "BatchItem",
    "BatchResult",
    "BreakdownEntry",
    "CanonicalTransaction",
    "CategorizedItem",
    "ExpenseInput",
    "ParseResult",
    "PersistedExpense",
    "SkipReason",
    "SkipStats",
]

"""Merging of categorized items and summaries for reporting.

Breakdowns are returned as tuples sorted by amount (descending) and then by
name, so two runs over the same input render identically.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from types import MappingProxyType

from .categories import coerce_category
from .models import BreakdownEntry, CanonicalTransaction, CategorizedItem, ExpenseInput, SkipStats

SKIP_REASON_LABELS: Mapping[str, str] = MappingProxyType(
    {
        "internal_transfer": "przelewów wewnętrznych",
        "atm_withdrawal": "wypłat z bankomatu",
        "card_payment": "spłat karty",
        "bank_fee": "opłat bankowych",
        "interest": "odsetek i podatków",
        "zen_topup": "doładowań ZEN",
        "revolut_topup": "doładowań Revolut",
        "self_transfer": "przelewów własnych",
        "card_topup": "doładowań kartą",
    }
)


def merge_categorized(
    transactions: Sequence[CanonicalTransaction],
    categorized: Iterable[CategorizedItem],
    *,
    user: str,
    source: str,
) -> list[ExpenseInput]:
    """Turn categorized items into persistence inputs, in the given order.

    A missing or non-positive amount falls back to the transaction's amount, a
    blank shop to its merchant, and an unknown category to ``Inne``.
    """

    out: list[ExpenseInput] = []
    for item in categorized:
        tx = transactions[item.idx]
        amount = item.amount if item.amount is not None and item.amount > 0 else tx.amount
        out.append(
            ExpenseInput(
                amount=amount,
                category=coerce_category(item.category).value,
                shop=(item.shop or "").strip() or tx.merchant,
                user=user,
                source=source,
                date=tx.date,
                raw_input=tx.raw_line,
                description=tx.description,
            )
        )
    return out


def _breakdown(pairs: Iterable[tuple[str, Decimal]]) -> tuple[BreakdownEntry, ...]:
    counts: dict[str, int] = {}
    totals: dict[str, Decimal] = {}
    for name, amount in pairs:
        counts[name] = counts.get(name, 0) + 1
        totals[name] = totals.get(name, Decimal("0")) + amount
    entries = [BreakdownEntry(name=n, count=counts[n], amount=totals[n]) for n in counts]
    entries.sort(key=lambda e: (-e.amount, e.name))
    return tuple(entries)


def build_category_breakdown(expenses: Iterable[ExpenseInput]) -> tuple[BreakdownEntry, ...]:
    return _breakdown((e.category, e.amount) for e in expenses)


def build_shop_breakdown(expenses: Iterable[ExpenseInput]) -> tuple[BreakdownEntry, ...]:
    return _breakdown((e.shop, e.amount) for e in expenses)


def format_skipped_stats(
    skipped: SkipStats, labels: Mapping[str, str] = SKIP_REASON_LABELS
) -> str:
    """Render skip counts as a Polish phrase; ``""`` when nothing was skipped.

    Reasons with a zero count are omitted; reasons without a label are shown
    by their key.
    """

    if skipped.count <= 0:
        return ""
    parts = [
        f"{count} {labels.get(reason, reason)}"
        for reason, count in skipped.reasons.items()
        if count > 0
    ]
    text = f"Pominięto {skipped.count} transakcji"
    return f"{text}: {', '.join(parts)}" if parts else text


def count_ai_fallbacks(items: Iterable[CategorizedItem]) -> int:
    """Number of items that fell back to the catch-all (confidence 0)."""

    return sum(1 for item in items if item.confidence == 0)


__all__ = [
    "SKIP_REASON_LABELS",
    "build_category_breakdown",
    "build_shop_breakdown",
    "count_ai_fallbacks",
    "format_skipped_stats",
    "merge_categorized",
]

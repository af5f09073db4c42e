"""Rule-based triage of parsed transactions: skip, force a category, or defer.

Rules are evaluated in a fixed order and the first match wins. Skip rules run
before forced-category rules, so a row matching both is skipped. All matching
is case-insensitive substring matching on the lower-cased fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .categories import ExpenseCategory
from .models import SkipReason

_ZERO = Decimal("0")

_INTERNAL_TRANSFER_MARKERS: tuple[str, ...] = ("przelew wewnętrzny", "przelew wewnetrzny")
_WITHDRAWAL_MARKERS: tuple[str, ...] = ("wypłata", "wyplata", "withdrawal")
_ATM_MARKERS: tuple[str, ...] = ("bankoma", "atm")
_CARD_REPAYMENT_MARKERS: tuple[str, ...] = (
    "spł.karty",
    "spl.karty",
    "spłata karty",
    "splata karty",
    "spłata zadłużenia karty",
)
_BANK_FEE_TYPES: frozenset[str] = frozenset({"prowizja", "commission"})
_TAX_MARKERS: tuple[str, ...] = ("podatek",)
_INTEREST_MARKERS: tuple[str, ...] = ("odsetki", "kapitalizacja")
_OWN_TRANSFER_MARKERS: tuple[str, ...] = ("przelew własny", "przelew wlasny", "own transfer")
_INVESTMENT_MARKERS: tuple[str, ...] = ("xtb.com", "xtb s.a.")
_TICKET_MARKERS: tuple[str, ...] = ("bilet",)
_PHONE_TOPUP_MARKERS: tuple[str, ...] = ("doładowanie telefonu", "doladowanie telefonu")

# Checked in order: a description mentioning both resolves to the first.
_WALLET_TOPUP_PROVIDERS: tuple[tuple[str, SkipReason], ...] = (
    ("zen.com", SkipReason.ZEN_TOPUP),
    ("revolut", SkipReason.REVOLUT_TOPUP),
)


@dataclass(frozen=True, slots=True)
class TransactionContext:
    """Fields a dialect exposes for classification.

    ``amount`` is signed: debits are negative, credits positive.
    """

    transaction_type: str = ""
    recipient: str = ""
    description: str = ""
    amount: Decimal = _ZERO


@dataclass(frozen=True, slots=True)
class Classification:
    """Outcome of :func:`classify`; at most one of the fields is set."""

    skip_reason: SkipReason | None = None
    forced_category: ExpenseCategory | None = None

    @property
    def deferred(self) -> bool:
        return self.skip_reason is None and self.forced_category is None


_DEFER = Classification()


def _contains_any(haystack: str, needles: tuple[str, ...]) -> bool:
    return any(n in haystack for n in needles)


def _is_own_named_account(recipient: str, user_display_name: str | None) -> bool:
    if not user_display_name:
        return False
    tokens = user_display_name.lower().split()
    if len(tokens) < 2:
        return False
    return all(t in recipient for t in tokens)


def _skip_reason(ctx: TransactionContext, user_display_name: str | None) -> SkipReason | None:
    tx_type = ctx.transaction_type.lower()
    recipient = ctx.recipient.lower()
    description = ctx.description.lower()
    parties = f"{recipient} {description}"

    if _contains_any(tx_type, _INTERNAL_TRANSFER_MARKERS):
        return SkipReason.INTERNAL_TRANSFER
    if _contains_any(tx_type, _WITHDRAWAL_MARKERS) and _contains_any(tx_type, _ATM_MARKERS):
        return SkipReason.ATM_WITHDRAWAL
    if _contains_any(tx_type, _CARD_REPAYMENT_MARKERS):
        return SkipReason.CARD_PAYMENT
    if tx_type.strip() in _BANK_FEE_TYPES:
        return SkipReason.BANK_FEE
    if _contains_any(tx_type, _TAX_MARKERS) and ctx.amount < _ZERO:
        return SkipReason.INTEREST
    if _contains_any(tx_type, _INTEREST_MARKERS) and ctx.amount > _ZERO:
        return SkipReason.INTEREST
    for marker, reason in _WALLET_TOPUP_PROVIDERS:
        if marker in parties:
            return reason
    if _contains_any(description, _OWN_TRANSFER_MARKERS):
        return SkipReason.SELF_TRANSFER
    if _is_own_named_account(recipient, user_display_name):
        return SkipReason.SELF_TRANSFER
    return None


def _forced_category(ctx: TransactionContext) -> ExpenseCategory | None:
    tx_type = ctx.transaction_type.lower()
    parties = f"{ctx.recipient.lower()} {ctx.description.lower()}"

    if _contains_any(parties, _INVESTMENT_MARKERS):
        return ExpenseCategory.INVESTMENTS
    if _contains_any(tx_type, _TICKET_MARKERS):
        return ExpenseCategory.TRANSPORT
    if _contains_any(tx_type, _PHONE_TOPUP_MARKERS):
        return ExpenseCategory.SUBSCRIPTIONS
    return None


def classify(
    context: TransactionContext, *, user_display_name: str | None = None
) -> Classification:
    """Decide whether a transaction is skipped, force-categorized, or deferred.

    ``user_display_name`` enables the own-account heuristic: a recipient that
    contains every whitespace token of a name with at least two tokens is
    treated as a transfer to oneself.
    """

    reason = _skip_reason(context, user_display_name)
    if reason is not None:
        return Classification(skip_reason=reason)
    forced = _forced_category(context)
    if forced is not None:
        return Classification(forced_category=forced)
    return _DEFER


__all__ = ["Classification", "TransactionContext", "classify"]

from __future__ import annotations

from decimal import Decimal

import pytest

from statement_ingest.categories import ExpenseCategory
from statement_ingest.classifier import TransactionContext, classify
from statement_ingest.models import SkipReason


def _ctx(tx_type: str = "", recipient: str = "", description: str = "", amount: str = "-10.00"):
    return TransactionContext(
        transaction_type=tx_type,
        recipient=recipient,
        description=description,
        amount=Decimal(amount),
    )


@pytest.mark.parametrize(
    ("ctx", "reason"),
    [
        (_ctx("PRZELEW WEWNĘTRZNY"), SkipReason.INTERNAL_TRANSFER),
        (_ctx("Przelew wewnetrzny przychodzący", amount="10.00"), SkipReason.INTERNAL_TRANSFER),
        (_ctx("WYPŁATA Z BANKOMATU"), SkipReason.ATM_WITHDRAWAL),
        (_ctx("WYPŁATA W BANKOMACIE"), SkipReason.ATM_WITHDRAWAL),
        (_ctx("ATM withdrawal"), SkipReason.ATM_WITHDRAWAL),
        (_ctx("SPŁATA KARTY KREDYTOWEJ"), SkipReason.CARD_PAYMENT),
        (_ctx("Commission"), SkipReason.BANK_FEE),
        (_ctx("PODATEK OD ODSETEK"), SkipReason.INTEREST),
        (_ctx("ODSETKI", amount="0.42"), SkipReason.INTEREST),
        (_ctx("PRZELEW", recipient="ZEN.COM UAB"), SkipReason.ZEN_TOPUP),
        (_ctx("PRZELEW", description="Top-up Revolut"), SkipReason.REVOLUT_TOPUP),
        (_ctx("PRZELEW", description="Przelew własny"), SkipReason.SELF_TRANSFER),
    ],
)
def test_skip_rules(ctx: TransactionContext, reason: SkipReason) -> None:
    verdict = classify(ctx)

    assert verdict.skip_reason == reason
    assert verdict.forced_category is None
    assert not verdict.deferred


def test_withdrawal_without_atm_marker_is_not_skipped() -> None:
    assert classify(_ctx("WYPŁATA W KASIE")).deferred


def test_fee_type_must_match_exactly() -> None:
    assert classify(_ctx(" PROWIZJA ")).skip_reason == SkipReason.BANK_FEE
    assert classify(_ctx("PROWIZJA ZA PRZELEW")).deferred


def test_tax_requires_debit_and_interest_requires_credit() -> None:
    assert classify(_ctx("PODATEK", amount="5.00")).deferred
    assert classify(_ctx("ODSETKI", amount="-5.00")).deferred


def test_own_named_account_requires_every_token() -> None:
    ctx = _ctx("PRZELEW ZEWNĘTRZNY", recipient="Jan Kowalski ul. Polna 1")

    assert classify(ctx, user_display_name="Jan Kowalski").skip_reason == SkipReason.SELF_TRANSFER
    assert classify(ctx, user_display_name="Jan Nowak").deferred
    # A single-token name is too weak a signal.
    assert classify(ctx, user_display_name="Jan").deferred
    assert classify(ctx).deferred


@pytest.mark.parametrize(
    ("ctx", "category"),
    [
        (_ctx("PRZELEW", recipient="XTB.COM"), ExpenseCategory.INVESTMENTS),
        (_ctx("PRZELEW", description="XTB S.A. wpłata"), ExpenseCategory.INVESTMENTS),
        (_ctx("ZAKUP BILETU"), ExpenseCategory.TRANSPORT),
        (_ctx("DOŁADOWANIE TELEFONU"), ExpenseCategory.SUBSCRIPTIONS),
    ],
)
def test_forced_categories(ctx: TransactionContext, category: ExpenseCategory) -> None:
    verdict = classify(ctx)

    assert verdict.forced_category == category
    assert verdict.skip_reason is None


def test_skip_wins_over_forced_category() -> None:
    verdict = classify(_ctx("PRZELEW WEWNĘTRZNY", recipient="XTB.COM"))

    assert verdict.skip_reason == SkipReason.INTERNAL_TRANSFER
    assert verdict.forced_category is None


def test_unmatched_is_deferred() -> None:
    verdict = classify(_ctx("ZAKUP PRZY UZYCIU KARTY", recipient="Zabka"))

    assert verdict.deferred
    assert verdict.skip_reason is None
    assert verdict.forced_category is None

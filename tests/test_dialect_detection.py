# ruff: noqa: E501
from __future__ import annotations

import pytest

from statement_ingest.dialects import UNKNOWN_DIALECT, detect_dialect

from tests.helpers.statements import (
    GENERIC_STATEMENT,
    ING_STATEMENT,
    MBANK_STATEMENT,
    MILLENNIUM_HEADER,
    REVOLUT_PL_STATEMENT,
    REVOLUT_STATEMENT,
    ZEN_STATEMENT,
)


@pytest.mark.parametrize(
    ("content", "expected"),
    [
        ('"Numer rachunku/karty","Data transakcji","Data rozliczenia","Rodzaj transakcji"', "millennium"),
        ("#Data operacji;Data księgowania;Opis operacji", "mbank"),
        ("Data operacji;Data księgowania;Opis operacji", "mbank"),
        ("Completed Date,Description,Amount,Currency", "revolut"),
        ("Rodzaj,Produkt,Data rozpoczęcia,Data zrealizowania,Opis,Kwota", "revolut-pl"),
        ('"Data waluty","Opis","Nr rachunku","Kwota"', "ing"),
        (
            "Account Statement\nTransactions:\nDate,Transaction type,Description,Settlement amount",
            "zen",
        ),
        ("Random,CSV,Headers,Data", "unknown"),
        ("", "unknown"),
    ],
)
def test_detect_dialect_from_headers(content: str, expected: str) -> None:
    assert detect_dialect(content) == expected


def test_detect_dialect_on_full_samples() -> None:
    assert detect_dialect(MILLENNIUM_HEADER + "\n") == "millennium"
    assert detect_dialect(MBANK_STATEMENT) == "mbank"
    assert detect_dialect(REVOLUT_STATEMENT) == "revolut"
    assert detect_dialect(REVOLUT_PL_STATEMENT) == "revolut-pl"
    assert detect_dialect(ING_STATEMENT) == "ing"
    assert detect_dialect(ZEN_STATEMENT) == "zen"
    assert detect_dialect(GENERIC_STATEMENT) == UNKNOWN_DIALECT


def test_detect_dialect_ignores_bom_and_case() -> None:
    content = "\ufeffCOMPLETED DATE,DESCRIPTION,AMOUNT\r\n2024-01-01,Lidl,-1.00\r\n"
    assert detect_dialect(content) == "revolut"


def test_zen_marker_without_header_is_not_zen() -> None:
    assert detect_dialect("Account Statement\nTransactions:\nSomething,Else") == "unknown"

"""ING Bank Śląski transaction history export.

ING reorders and renames columns between export variants, so columns are
located by header name rather than position. The separator is ``;`` when the
header contains one, ``,`` otherwise.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..classifier import TransactionContext
from ..models import ParseResult
from ..normalizers import extract_merchant, parse_amount
from ..tokenizer import split_line
from .base import Dialect, col, data_lines

_DATE_HEADERS: tuple[str, ...] = ("data transakcji", "data waluty")
_RECIPIENT_HEADERS: tuple[str, ...] = ("dane kontrahenta",)
_DESCRIPTION_HEADERS: tuple[str, ...] = ("tytuł", "tytul", "opis")
_AMOUNT_PREFIX = "kwota"


@dataclass(frozen=True, slots=True)
class _Columns:
    date: int
    amount: int
    recipient: int = -1
    description: int = -1


def _find(header: Sequence[str], names: tuple[str, ...]) -> int:
    for name in names:
        for i, h in enumerate(header):
            if h == name or h.startswith(name):
                return i
    return -1


def _locate_columns(header: Sequence[str]) -> _Columns:
    lowered = [h.lower() for h in header]
    date = _find(lowered, _DATE_HEADERS)
    amount = next((i for i, h in enumerate(lowered) if h.startswith(_AMOUNT_PREFIX)), -1)
    if date < 0 or amount < 0:
        raise ValueError("header is missing a date or amount column")
    return _Columns(
        date=date,
        amount=amount,
        recipient=_find(lowered, _RECIPIENT_HEADERS),
        description=_find(lowered, _DESCRIPTION_HEADERS),
    )


class IngDialect(Dialect):
    name = "ing"

    @classmethod
    def detect(cls, content: str, first_line: str) -> bool:
        return "data waluty" in first_line and "nr rachunku" in first_line

    def parse(self, content: str) -> ParseResult:
        acc = self._accumulator()
        lines = self._lines(content)
        header_line = lines[0].strip() if lines else ""
        delimiter = ";" if ";" in header_line else ","

        columns: _Columns | None = None
        with acc.line(1):
            columns = _locate_columns(split_line(header_line, delimiter))
        if columns is None:
            return acc.result()

        for line_no, line in data_lines(lines, 1):
            with acc.line(line_no):
                cols = split_line(line, delimiter)
                recipient = col(cols, columns.recipient)
                description = col(cols, columns.description)
                amount = parse_amount(col(cols, columns.amount))
                acc.emit(
                    date=col(cols, columns.date),
                    merchant=extract_merchant(recipient or description, self.aliases),
                    amount=amount,
                    description=description,
                    raw_line=line,
                    context=TransactionContext(
                        recipient=recipient,
                        description=description,
                        amount=amount,
                    ),
                )
        return acc.result()

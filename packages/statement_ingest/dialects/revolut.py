"""Revolut exports in the English and the Polish layout.

Neither layout carries a transaction-type column the classifier understands,
so rows are not classified. The Polish layout is filtered inline instead: only
completed rows of an allowed type are kept; the rest are dropped without
being counted as skips.
"""

from __future__ import annotations

from ..models import ParseResult
from ..normalizers import extract_merchant, parse_amount
from ..tokenizer import split_line
from .base import Dialect, col, data_lines

_COMPLETED_STATE = "ZAKOŃCZONO"
_ALLOWED_PL_TYPES: frozenset[str] = frozenset({"płatność kartą", "bankomat", "opłata"})


class RevolutDialect(Dialect):
    """English layout: 0 completed date, 1 description, 2 amount."""

    name = "revolut"

    @classmethod
    def detect(cls, content: str, first_line: str) -> bool:
        return "completed date" in first_line and "description" in first_line

    def parse(self, content: str) -> ParseResult:
        acc = self._accumulator()
        for line_no, line in data_lines(self._lines(content), 1):
            with acc.line(line_no):
                cols = split_line(line)
                description = col(cols, 1)
                acc.emit(
                    date=col(cols, 0),
                    merchant=extract_merchant(description, self.aliases),
                    amount=parse_amount(col(cols, 2)),
                    description=description,
                    raw_line=line,
                )
        return acc.result()


class RevolutPlDialect(Dialect):
    """Polish layout: 0 type, 3 completed date-time, 4 description, 5 amount, 8 state."""

    name = "revolut-pl"

    @classmethod
    def detect(cls, content: str, first_line: str) -> bool:
        return (
            "rodzaj" in first_line
            and "data zrealizowania" in first_line
            and "kwota" in first_line
        )

    def parse(self, content: str) -> ParseResult:
        acc = self._accumulator()
        for line_no, line in data_lines(self._lines(content), 1):
            with acc.line(line_no):
                cols = split_line(line)
                if col(cols, 8).upper() != _COMPLETED_STATE:
                    continue
                if col(cols, 0).lower() not in _ALLOWED_PL_TYPES:
                    continue
                completed = col(cols, 3)
                description = col(cols, 4)
                acc.emit(
                    date=completed.split(" ")[0] if completed else "",
                    merchant=extract_merchant(description, self.aliases),
                    amount=parse_amount(col(cols, 5)),
                    description=description,
                    raw_line=line,
                )
        return acc.result()

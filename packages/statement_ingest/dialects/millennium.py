"""Bank Millennium account history export.

Comma separated, every field quoted, header on the first line. Columns used:
1 transaction date, 3 transaction type, 5 recipient/sender, 6 description,
7 debits (negative), 8 credits.
"""

from __future__ import annotations

from ..classifier import TransactionContext
from ..models import ParseResult
from ..normalizers import extract_merchant, parse_amount
from ..tokenizer import split_line
from .base import Dialect, col, data_lines


class MillenniumDialect(Dialect):
    name = "millennium"

    @classmethod
    def detect(cls, content: str, first_line: str) -> bool:
        return "numer rachunku/karty" in first_line and "data transakcji" in first_line

    def parse(self, content: str) -> ParseResult:
        acc = self._accumulator()
        for line_no, line in data_lines(self._lines(content), 1):
            with acc.line(line_no):
                cols = split_line(line)
                recipient = col(cols, 5)
                description = col(cols, 6)
                debit = parse_amount(col(cols, 7))
                credit = parse_amount(col(cols, 8))
                signed = -abs(debit) if debit != 0 else credit

                acc.emit(
                    date=col(cols, 1),
                    merchant=extract_merchant(recipient or description, self.aliases),
                    amount=signed,
                    description=description,
                    raw_line=line,
                    context=TransactionContext(
                        transaction_type=col(cols, 3),
                        recipient=recipient,
                        description=description,
                        amount=signed,
                    ),
                )
        return acc.result()

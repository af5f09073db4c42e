"""mBank operation history export.

Semicolon separated with a preamble of account metadata; the header row starts
with ``#Data operacji``. Columns used: 0 operation date, 2 operation
description (the transaction type), 3 title, 4 sender/recipient, 6 amount.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..classifier import TransactionContext
from ..models import ParseResult
from ..normalizers import extract_merchant, parse_amount
from ..tokenizer import split_line
from .base import Dialect, col, data_lines


def _header_end(lines: Sequence[str]) -> int:
    for i, line in enumerate(lines):
        if line.startswith("#Data operacji") or "data operacji;" in line.lower():
            return i + 1
    return 0


class MBankDialect(Dialect):
    name = "mbank"

    @classmethod
    def detect(cls, content: str, first_line: str) -> bool:
        return "#data operacji" in first_line or "data operacji;" in first_line

    def parse(self, content: str) -> ParseResult:
        acc = self._accumulator()
        lines = self._lines(content)
        for line_no, line in data_lines(lines, _header_end(lines)):
            with acc.line(line_no):
                cols = split_line(line, ";")
                operation = col(cols, 2)
                title = col(cols, 3)
                recipient = col(cols, 4)
                amount = parse_amount(col(cols, 6))
                description = f"{operation} {title}".strip()

                if recipient:
                    merchant = extract_merchant(recipient, self.aliases)
                else:
                    merchant = extract_merchant(description, self.aliases)

                acc.emit(
                    date=col(cols, 0),
                    merchant=merchant,
                    amount=amount,
                    description=description,
                    raw_line=line,
                    context=TransactionContext(
                        transaction_type=operation,
                        recipient=recipient,
                        description=title,
                        amount=amount,
                    ),
                )
        return acc.result()

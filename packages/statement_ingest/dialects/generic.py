"""Best-effort parser for statements no known dialect recognizes.

Assumes a header on the first line and guesses everything else per row: the
first date-shaped field is the date, the first non-zero amount-shaped field is
the amount, and the longest remaining non-numeric field is the description.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from decimal import Decimal

from ..models import ParseResult
from ..normalizers import extract_merchant, is_amount_like, is_date_like, parse_amount
from ..tokenizer import split_line
from .base import Dialect, data_lines

_NUMERIC_RE = re.compile(r"^[\d.,\-+\s]+$")


def _guess_fields(cols: Sequence[str]) -> tuple[str, Decimal, str]:
    date = ""
    amount = Decimal("0")
    description = ""
    for field in cols:
        if is_date_like(field):
            if not date:
                date = field
            continue
        if is_amount_like(field):
            if amount == 0:
                amount = parse_amount(field)
            continue
        if len(field) > len(description) and not _NUMERIC_RE.match(field):
            description = field
    return date, amount, description


class GenericDialect(Dialect):
    name = "unknown"

    @classmethod
    def detect(cls, content: str, first_line: str) -> bool:
        return True

    def parse(self, content: str) -> ParseResult:
        acc = self._accumulator()
        lines = self._lines(content)
        first_data = lines[1] if len(lines) > 1 else ""
        delimiter = ";" if ";" in first_data else ","

        for line_no, line in data_lines(lines, 1):
            with acc.line(line_no):
                date, amount, description = _guess_fields(split_line(line, delimiter))
                acc.emit(
                    date=date,
                    merchant=extract_merchant(description, self.aliases),
                    amount=amount,
                    description=description,
                    raw_line=line,
                )
        return acc.result()

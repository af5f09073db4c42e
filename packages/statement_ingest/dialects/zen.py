"""ZEN.COM account statement export.

The CSV starts with a free-form account summary; transactions follow a
``Transactions:`` marker line and their own header, and a legal footer closes
the file. Only card payments with a negative settlement amount are expenses.
Card payments that top up another balance (a keyword in the description and
at least 50.00) are counted as ``card_topup`` skips.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from ..models import ParseResult, SkipReason
from ..normalizers import extract_merchant, parse_amount
from ..tokenizer import split_line
from .base import Dialect, col

_MARKER = "Transactions:"
_HEADER = "Date,Transaction type,Description,Settlement amount"
_FOOTER_PREFIXES: tuple[str, ...] = ("This is a computer-generated", '"ZEN.COM')
_CARD_PAYMENT = "card payment"
_TOPUP_KEYWORDS: tuple[str, ...] = ("top-up", "topup", "top up", "doładowanie", "doladowanie")
_TOPUP_MIN_AMOUNT = Decimal("50.00")


def _data_start(lines: Sequence[str]) -> int:
    for i, line in enumerate(lines):
        if line.strip() == _MARKER:
            # Marker, then the column header, then data.
            return i + 2
    return len(lines)


def _is_card_topup(description: str, magnitude: Decimal) -> bool:
    lowered = description.lower()
    return magnitude >= _TOPUP_MIN_AMOUNT and any(k in lowered for k in _TOPUP_KEYWORDS)


class ZenDialect(Dialect):
    name = "zen"

    @classmethod
    def detect(cls, content: str, first_line: str) -> bool:
        return _MARKER in content and _HEADER in content

    def parse(self, content: str) -> ParseResult:
        acc = self._accumulator()
        lines = self._lines(content)
        for i in range(_data_start(lines), len(lines)):
            line = lines[i].strip()
            if not line:
                continue
            if line.startswith(_FOOTER_PREFIXES):
                break
            with acc.line(i + 1):
                cols = split_line(line)
                if col(cols, 1).lower() != _CARD_PAYMENT:
                    continue
                amount = parse_amount(col(cols, 3))
                if amount >= 0:
                    continue
                description = col(cols, 2)
                acc.emit(
                    date=col(cols, 0),
                    merchant=extract_merchant(description, self.aliases),
                    amount=amount,
                    description=description,
                    raw_line=line,
                    skip_reason=(
                        SkipReason.CARD_TOPUP if _is_card_topup(description, -amount) else None
                    ),
                )
        return acc.result()

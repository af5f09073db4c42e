"""Shared machinery for statement dialect parsers.

Every dialect walks its data lines inside :meth:`_StatementAccumulator.line`,
which records any exception as ``"Line N: <error>"`` (1-based) and moves on, so
one malformed row never aborts the file. Rows are handed to
:meth:`_StatementAccumulator.emit`, which applies the common emission rules:

- a zero amount or an empty date drops the row silently;
- a date that does not normalize to ``YYYY-MM-DD`` is a line error;
- a classifier verdict either skips the row (counted by reason) or attaches a
  forced category.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from decimal import Decimal
from types import MappingProxyType
from typing import ClassVar

from ..aliases import MERCHANT_ALIASES
from ..classifier import TransactionContext, classify
from ..logging_setup import get_logger
from ..models import CanonicalTransaction, ParseResult, SkipReason, SkipStats
from ..normalizers import is_iso_date, normalize_date
from ..tokenizer import split_lines

_logger = get_logger("statement_ingest.dialects")


def col(cols: Sequence[str], index: int) -> str:
    """Return ``cols[index]`` or ``""`` when the row is too short."""

    return cols[index] if 0 <= index < len(cols) else ""


def data_lines(lines: Sequence[str], start: int) -> Iterator[tuple[int, str]]:
    """Yield ``(line_no, stripped_line)`` for non-blank lines from ``start``."""

    for i in range(start, len(lines)):
        line = lines[i].strip()
        if line:
            yield i + 1, line


class _StatementAccumulator:
    def __init__(self, bank: str, *, user_display_name: str | None = None) -> None:
        self.bank = bank
        self._user_display_name = user_display_name
        self._transactions: list[CanonicalTransaction] = []
        self._errors: list[str] = []
        self._skips: dict[SkipReason, int] = {}

    @contextmanager
    def line(self, line_no: int) -> Iterator[None]:
        try:
            yield
        except Exception as e:  # noqa: BLE001 - per-line isolation
            self._errors.append(f"Line {line_no}: {e}")
            _logger.debug("parse:line_error bank=%s line=%d error=%s", self.bank, line_no, e)

    def skip(self, reason: SkipReason) -> None:
        self._skips[reason] = self._skips.get(reason, 0) + 1

    def emit(
        self,
        *,
        date: str,
        merchant: str,
        amount: Decimal,
        description: str,
        raw_line: str,
        context: TransactionContext | None = None,
        skip_reason: SkipReason | None = None,
    ) -> None:
        magnitude = abs(amount)
        if magnitude == 0 or not date.strip():
            return
        iso = normalize_date(date)
        if not is_iso_date(iso):
            raise ValueError(f"unrecognized date {date!r}")

        if skip_reason is not None:
            self.skip(skip_reason)
            return
        forced = None
        if context is not None:
            verdict = classify(context, user_display_name=self._user_display_name)
            if verdict.skip_reason is not None:
                self.skip(verdict.skip_reason)
                return
            forced = verdict.forced_category

        self._transactions.append(
            CanonicalTransaction(
                date=iso,
                merchant=merchant,
                amount=magnitude,
                description=description,
                raw_line=raw_line,
                forced_category=forced,
            )
        )

    def result(self) -> ParseResult:
        # Reasons iterate in enum declaration order regardless of encounter order.
        reasons = {r.value: self._skips[r] for r in SkipReason if r in self._skips}
        skipped = SkipStats(count=sum(reasons.values()), reasons=MappingProxyType(reasons))
        _logger.info(
            "parse:done bank=%s transactions=%d errors=%d skipped=%d",
            self.bank,
            len(self._transactions),
            len(self._errors),
            skipped.count,
        )
        return ParseResult(
            bank=self.bank,
            transactions=tuple(self._transactions),
            errors=tuple(self._errors),
            skipped=skipped,
        )


class Dialect(ABC):
    """One bank export format.

    Subclasses declare ``name``, recognize their header in :meth:`detect`, and
    turn the file into a :class:`ParseResult` in :meth:`parse`.
    """

    name: ClassVar[str]

    def __init__(
        self,
        *,
        aliases: Mapping[str, str] = MERCHANT_ALIASES,
        user_display_name: str | None = None,
    ) -> None:
        self.aliases = aliases
        self.user_display_name = user_display_name

    @classmethod
    @abstractmethod
    def detect(cls, content: str, first_line: str) -> bool:
        """Return True when ``content`` is in this dialect.

        ``first_line`` is the lower-cased first line of the file.
        """

    @abstractmethod
    def parse(self, content: str) -> ParseResult: ...

    def _accumulator(self) -> _StatementAccumulator:
        return _StatementAccumulator(self.name, user_display_name=self.user_display_name)

    @staticmethod
    def _lines(content: str) -> list[str]:
        return split_lines(content)


__all__ = ["Dialect", "col", "data_lines"]

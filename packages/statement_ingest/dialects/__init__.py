"""Statement dialects: detection and dispatch.

Detectors run in a fixed order and the first match wins; the generic parser
handles everything else and reports ``bank="unknown"``.
"""

from __future__ import annotations

from collections.abc import Mapping

from ..aliases import MERCHANT_ALIASES
from ..logging_setup import get_logger
from ..models import ParseResult
from ..tokenizer import split_lines
from .base import Dialect
from .generic import GenericDialect
from .ing import IngDialect
from .mbank import MBankDialect
from .millennium import MillenniumDialect
from .revolut import RevolutDialect, RevolutPlDialect
from .zen import ZenDialect

DIALECTS: tuple[type[Dialect], ...] = (
    MillenniumDialect,
    MBankDialect,
    RevolutDialect,
    RevolutPlDialect,
    IngDialect,
    ZenDialect,
)

UNKNOWN_DIALECT = GenericDialect.name

_logger = get_logger("statement_ingest.dialects")


def _dialect_for(content: str) -> type[Dialect]:
    lines = split_lines(content)
    first_line = lines[0].lower() if lines else ""
    for dialect in DIALECTS:
        if dialect.detect(content, first_line):
            return dialect
    return GenericDialect


def detect_dialect(content: str) -> str:
    """Return the dialect identifier for ``content``; ``"unknown"`` when unmatched."""

    return _dialect_for(content).name


def parse_statement(
    content: str,
    *,
    aliases: Mapping[str, str] = MERCHANT_ALIASES,
    user_display_name: str | None = None,
) -> ParseResult:
    """Detect the dialect of ``content`` and parse it.

    ``user_display_name`` feeds the classifier's own-account transfer rule.
    """

    dialect_cls = _dialect_for(content)
    _logger.info("parse:start bank=%s", dialect_cls.name)
    dialect = dialect_cls(aliases=aliases, user_display_name=user_display_name)
    return dialect.parse(content)


__all__ = [
    "DIALECTS",
    "UNKNOWN_DIALECT",
    "Dialect",
    "GenericDialect",
    "IngDialect",
    "MBankDialect",
    "MillenniumDialect",
    "RevolutDialect",
    "RevolutPlDialect",
    "ZenDialect",
    "detect_dialect",
    "parse_statement",
]

"""Amount, date, and merchant normalization shared by all statement dialects.

Bank exports disagree on nearly everything: decimal comma vs. point, grouping
dots or spaces, currency suffixes, and several date layouts. These helpers
reduce each field to one canonical form:

- amounts become signed :class:`~decimal.Decimal` values with two decimals,
  unparseable input yields ``Decimal("0")`` rather than an error;
- dates become ``YYYY-MM-DD`` when recognized and pass through unchanged
  otherwise (callers check :func:`is_iso_date`);
- merchants are stripped of payment noise, title-cased, and resolved through
  the alias table.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .aliases import MERCHANT_ALIASES, resolve_alias

# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------

_CENT = Decimal("0.01")
_ZERO = Decimal("0")

_CURRENCY_RE = re.compile(r"(?:PLN|EUR|USD|GBP|CHF|zł|zl)\.?|[€$£]", re.IGNORECASE)
_NUMBER_RE = re.compile(r"^[+-]?\d+(?:\.\d+)?$")
# Any whitespace, including NBSP and narrow NBSP used as grouping separators.
_SPACE_RE = re.compile(r"[\s\u00a0\u202f]+")


def _clean_amount_text(raw: str) -> str:
    s = _CURRENCY_RE.sub("", raw)
    s = _SPACE_RE.sub("", s)
    if s.startswith("(") and s.endswith(")") and len(s) > 2:
        s = "-" + s[1:-1]

    has_comma = "," in s
    has_dot = "." in s
    if has_comma and has_dot:
        # Whichever separator comes last is the decimal one.
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif has_comma:
        s = s.replace(",", ".") if s.count(",") == 1 else s.replace(",", "")
    elif s.count(".") > 1:
        s = s.replace(".", "")
    return s


def parse_amount(raw: str | None) -> Decimal:
    """Parse a bank amount into a signed two-decimal ``Decimal``.

    Accepts decimal commas (``-15,50``), grouping dots or spaces
    (``1.234,56``, ``1 234,56``), and currency markers (``PLN``, ``zł``, ``€``).
    Unparseable input returns ``Decimal("0")``.
    """

    if raw is None:
        return _ZERO
    s = _clean_amount_text(str(raw))
    if not _NUMBER_RE.match(s):
        return _ZERO
    try:
        return Decimal(s).quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return _ZERO


def is_amount_like(raw: str) -> bool:
    """Return True when ``raw`` looks like a monetary amount."""

    return bool(_NUMBER_RE.match(_clean_amount_text(raw)))


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

_MONTHS: Mapping[str, int] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

_ISO_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})(?:[T ].*)?$")
_DOTTED_RE = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$")
_SLASHED_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_TEXTUAL_RE = re.compile(r"^(\d{1,2})\s+([A-Za-z]{3})\s+(\d{4})$")
_ISO_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _ymd(year: str, month: int | str, day: str) -> str:
    return f"{int(year):04d}-{int(month):02d}-{int(day):02d}"


def normalize_date(raw: str | None) -> str:
    """Normalize a statement date to ``YYYY-MM-DD``.

    Recognized layouts: ``YYYY-MM-DD`` (a trailing time is dropped),
    ``DD.MM.YYYY``, ``DD/MM/YYYY``, and ``D Mon YYYY`` with English month
    abbreviations. Anything else is returned stripped but otherwise unchanged.
    """

    if raw is None:
        return ""
    s = raw.strip()
    if m := _ISO_RE.match(s):
        return m.group(1)
    if m := _DOTTED_RE.match(s):
        return _ymd(m.group(3), m.group(2), m.group(1))
    if m := _SLASHED_RE.match(s):
        return _ymd(m.group(3), m.group(2), m.group(1))
    if m := _TEXTUAL_RE.match(s):
        month = _MONTHS.get(m.group(2).lower())
        if month is not None:
            return _ymd(m.group(3), month, m.group(1))
    return s


def is_iso_date(value: str) -> bool:
    """Return True for a real calendar date in ``YYYY-MM-DD`` form."""

    if not _ISO_ONLY_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_date_like(raw: str) -> bool:
    s = raw.strip()
    return bool(_ISO_RE.match(s) or _DOTTED_RE.match(s) or _SLASHED_RE.match(s))


# ---------------------------------------------------------------------------
# Merchants
# ---------------------------------------------------------------------------

# Applied in order; each removes one family of payment-processor noise.
_MERCHANT_NOISE: tuple[re.Pattern[str], ...] = (
    # ZEN descriptions: "Shop name      POL,POL CARD: MASTERCARD *5382"
    re.compile(r"\s{2,}[A-Z]{3},[A-Z]{3}\s+CARD:.*$", re.IGNORECASE),
    re.compile(r"\s{2,}[A-Z]{3}$"),
    # Card number suffixes: "LIDL *1234"
    re.compile(r"\s*\*\s*\d+\b"),
    # Order numbers: "nr 12345", "order #A-77", "#998"
    re.compile(r"\b(?:nr|no|order|zam(?:owienie)?)\.?\s*[#:]?\s*\d[\w/-]*", re.IGNORECASE),
    re.compile(r"#\s*\d[\w/-]*"),
    # Legal-entity suffixes
    re.compile(r"\bsp\.?\s*z\.?\s*o\.?\s*o\b\.?", re.IGNORECASE),
    re.compile(
        r"\bsp[óo][łl]ka(?:\s+(?:akcyjna|z\s*o\.?\s*o\.?|komandytowa|jawna))?",
        re.IGNORECASE,
    ),
    re.compile(r"\bS\.\s?A\.?(?=$|[\s,;])"),
    re.compile(r"\s+SA$"),
    # Trailing transaction ids mixing letters and digits: "SPOTIFY P202b79a43"
    re.compile(r"\s+(?=[A-Za-z0-9]*\d)(?=[A-Za-z0-9]*[A-Za-z])[A-Za-z0-9]{6,}$"),
    # Trailing ", 123" and ", PL" segments
    re.compile(r",\s*\d+$"),
    re.compile(r",\s*[A-Z]{2,3}$"),
)

_UNKNOWN_MERCHANT = "Unknown"


def _title_word(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


def extract_merchant(text: str, aliases: Mapping[str, str] = MERCHANT_ALIASES) -> str:
    """Derive a display merchant name from a raw description or recipient.

    Returns ``"Unknown"`` when nothing meaningful remains after cleanup.
    """

    s = (text or "").strip()
    for pattern in _MERCHANT_NOISE:
        s = pattern.sub("", s).strip()

    s = re.split(r"[,;]", s, maxsplit=1)[0]
    s = " ".join(s.split()).strip(" -.*/")
    if not s:
        return _UNKNOWN_MERCHANT

    titled = " ".join(_title_word(w) for w in s.split(" "))
    return resolve_alias(titled, aliases)


__all__ = [
    "extract_merchant",
    "is_amount_like",
    "is_date_like",
    "is_iso_date",
    "normalize_date",
    "parse_amount",
]

"""Quote-aware splitting of a single delimited statement line.

Well-formed lines follow RFC 4180 quoting via the stdlib :mod:`csv` module in
strict mode: a delimiter inside double quotes is not a field boundary and
doubled quotes are unescaped. Bank exports also carry stray quotes inside a
quoted field (``"SKLEP "U ANI""``); such lines are re-split by toggling quote
state on every ``"`` and dropping the quote characters. Only an odd number of
quotes (an unterminated field) is left as a :class:`csv.Error` for the calling
dialect parser to record as a malformed line.
"""

from __future__ import annotations

import csv

_QUOTE = '"'


def _split_toggling_quotes(line: str, delimiter: str) -> list[str]:
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    for ch in line:
        if ch == _QUOTE:
            in_quotes = not in_quotes
        elif ch == delimiter and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
    fields.append("".join(current))
    return fields


def split_line(line: str, delimiter: str = ",") -> list[str]:
    """Split ``line`` into stripped, unquoted fields.

    Blank input yields an empty list.
    """

    if not line.strip():
        return []
    try:
        reader = csv.reader([line], delimiter=delimiter, strict=True, skipinitialspace=True)
        fields = next(reader, [])
    except csv.Error:
        if line.count(_QUOTE) % 2:
            raise
        fields = _split_toggling_quotes(line, delimiter)
    return [f.strip() for f in fields]


def split_lines(content: str) -> list[str]:
    """Split file content into lines, tolerating ``\\r\\n`` and a leading BOM."""

    if content.startswith("\ufeff"):
        content = content[1:]
    return content.replace("\r\n", "\n").replace("\r", "\n").split("\n")


__all__ = ["split_line", "split_lines"]

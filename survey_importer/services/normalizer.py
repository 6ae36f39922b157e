from __future__ import annotations

from collections.abc import Mapping

"""Invisible character removal and normalized field lookup.

Spreadsheet exports regularly smuggle zero-width characters and byte order
marks into headers and cells. Every header and cell goes through
strip_invisible_chars() before it is compared or parsed.
"""

__all__ = [
    "INVISIBLE_CHARS",
    "strip_invisible_chars",
    "normalize_key",
    "get_field",
]

INVISIBLE_CHARS = (
    "\u200B",  # zero-width space
    "\u200C",  # zero-width non-joiner
    "\u200D",  # zero-width joiner
    "\uFEFF",  # byte order mark
)

_TRANSLATION = {ord(c): None for c in INVISIBLE_CHARS}


def strip_invisible_chars(value: str | None) -> str:
    """Remove zero-width characters and BOMs. None / "" -> ""."""
    if not value:
        return ""
    return value.translate(_TRANSLATION)


def normalize_key(key: str | None) -> str:
    """Header comparison key: invisible chars stripped, trimmed, upper-cased."""
    return strip_invisible_chars(key).strip().upper()


def get_field(row: Mapping[str, str | None], name: str) -> str | None:
    """Look up a reserved field by normalized header name.

    Exact key match first, then the first column whose normalized key equals
    normalize_key(name). Returns the raw (un-normalized) cell value.
    """
    if name in row:
        return row[name]
    wanted = normalize_key(name)
    for key, value in row.items():
        if normalize_key(key) == wanted:
            return value
    return None

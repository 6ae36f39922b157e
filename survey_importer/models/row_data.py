from __future__ import annotations

from typing import TypeAlias

"""RawRow type for parsed CSV rows.

A RawRow maps the header exactly as declared in the file (invisible characters
included) to the cell value. Cells missing from a short line are None.
"""

__all__ = [
    "RawRow",
]

RawRow: TypeAlias = dict[str, str | None]

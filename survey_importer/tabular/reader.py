from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from ..models.row_data import RawRow

"""CSV reader.

The first line is the header row, every following non-blank line is a data
row. Cells are kept as raw strings: no NA conversion, no trimming and no
removal of invisible characters. Normalization is left to
services.normalizer so that headers and values are cleaned in one place.

A line with more cells than the header (typically an unquoted comma in a
comment) does not reject the file: the row is kept, cut to the header width,
and a warning names it. Validation then reports whatever that cut broke.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "CsvReadError",
    "ParsedCsv",
    "parse_csv_text",
    "read_csv_file",
]


class CsvReadError(Exception):
    """Raised when the CSV file cannot be read or tokenized."""


@dataclass
class ParsedCsv:
    headers: list[str]
    rows: list[RawRow]
    warnings: list[str] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return len(self.rows)


def _cell(val: object) -> str | None:
    if val is None or (not isinstance(val, str) and pd.isna(val)):
        return None
    return str(val)


def parse_csv_text(text: str) -> ParsedCsv:
    """Parse CSV text into headers and raw rows.

    - Blank lines and rows whose cells are all empty are skipped
    - Lines shorter than the header get None for the missing cells
    - Lines longer than the header keep their first cells; the rest are dropped
      with a warning
    - Duplicate header names collapse onto one key (last cell wins)

    Raises:
        CsvReadError: the text cannot be tokenized
    """
    if not text.strip():
        return ParsedCsv(headers=[], rows=[])
    width = len(_first_line_cells(text))
    # overlong lines in file order: (cells kept, cells seen)
    cut_lines: list[tuple[list[str], int]] = []

    def _cut_bad_line(bad_line: list[str]) -> list[str]:
        cut_lines.append((bad_line[:width], len(bad_line)))
        return bad_line[:width]

    try:
        # ヘッダなしで生読み (1行目をヘッダとして後で適用)
        df = pd.read_csv(
            io.StringIO(text),
            header=None,
            engine="python",
            on_bad_lines=_cut_bad_line,
            dtype=str,
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        return ParsedCsv(headers=[], rows=[])
    except (pd.errors.ParserError, ValueError) as e:
        raise CsvReadError(f"unable to parse csv: {e}") from e

    if df.shape[0] == 0:
        return ParsedCsv(headers=[], rows=[])

    headers = [_cell(c) or "" for c in df.iloc[0].tolist()]
    rows: list[RawRow] = []
    warnings: list[str] = []
    for values in df.iloc[1:].itertuples(index=False, name=None):
        cells = [_cell(v) for v in values]
        seen = 0
        if cut_lines and _same_cells(cells, cut_lines[0][0]):
            _, seen = cut_lines.pop(0)
        if all(c is None or c.strip() == "" for c in cells):
            continue
        if seen:
            msg = (
                f"Row {len(rows) + 1}: {seen} cells but the header has {len(headers)}; "
                f"extra cells dropped (quote values that contain commas)"
            )
            logger.warning(msg)
            warnings.append(msg)
        rows.append(dict(zip(headers, cells, strict=False)))
    return ParsedCsv(headers=headers, rows=rows, warnings=warnings)


def _first_line_cells(text: str) -> list[str]:
    """Header cells, tokenized the same way read_csv sees the first line."""
    return next(csv.reader(io.StringIO(text.lstrip("\r\n"))), [])


def _same_cells(cells: list[str | None], kept: list[str]) -> bool:
    return [c or "" for c in cells] == [k or "" for k in kept]


def read_csv_file(path: Path) -> ParsedCsv:
    """Read a UTF-8 CSV file from disk.

    A leading byte order mark left on the first header is removed later by the
    normalizer.

    Raises:
        CsvReadError: file missing / unreadable / not UTF-8 / not parseable
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise CsvReadError(f"file not found: {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise CsvReadError(f"unable to read {path}: {e}") from e
    return parse_csv_text(text)

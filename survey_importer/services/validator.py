from __future__ import annotations

import re
from collections.abc import Mapping, Sequence

from ..models.validation_error import HEADER_ROW, ValidationError
from .normalizer import get_field, normalize_key, strip_invisible_chars

"""CSV header and row validation.

- Header check: an "NPS" column must exist (case, whitespace and invisible
  characters ignored). When it is missing the file is rejected and no row is
  looked at.
- Row check: NPS is required and must be an integer 0-10; Date is optional but
  must match ``D.M.YYYY H:MM`` with plausible ranges when present.

All row findings are collected (no early exit) so the caller can show the
complete list at once.
"""

__all__ = [
    "NPS_FIELD",
    "COMMENT_FIELD",
    "DATE_FIELD",
    "HEADER_FIELD",
    "DATE_PATTERN",
    "validate_headers",
    "validate_date_format",
    "validate_row",
    "validate_csv",
    "is_row_valid",
    "parse_nps",
]

NPS_FIELD = "NPS"
COMMENT_FIELD = "Comment"
DATE_FIELD = "Date"
HEADER_FIELD = "header"

NPS_MIN = 0
NPS_MAX = 10

# DD.MM.YYYY HH:MM (leading zeros optional for day, month and hour)
DATE_PATTERN = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})\s+(\d{1,2}):(\d{2})$", re.ASCII)

_NPS_PATTERN = re.compile(r"^[+-]?\d+$", re.ASCII)


def validate_headers(headers: Sequence[str]) -> str | None:
    """Return an error message when no NPS header is present, else None."""
    if NPS_FIELD not in {normalize_key(h) for h in headers}:
        return "Missing required 'NPS' column header"
    return None


def validate_date_format(date: str | None, row_index: int) -> str | None:
    """Validate a Date cell.

    Parameters:
        date: raw cell value (may contain invisible characters)
        row_index: 0-based data row index, reported 1-based

    Returns:
        Error message naming the row and the raw value, or None when valid/empty
    """
    cleaned = strip_invisible_chars(date).strip()
    if not cleaned:
        return None  # empty -> current time at submission

    invalid = (
        f"Row {row_index + 1}: Date '{date}' is invalid "
        f"(expected format: DD.MM.YYYY HH:MM)"
    )
    m = DATE_PATTERN.match(cleaned)
    if m is None:
        return invalid

    day, month, year, hour, minute = (int(g) for g in m.groups())
    if not 1 <= day <= 31:
        return invalid
    if not 1 <= month <= 12:
        return invalid
    if not 1900 <= year <= 2100:
        return invalid
    if not 0 <= hour <= 23:
        return invalid
    if not 0 <= minute <= 59:
        return invalid
    return None


def parse_nps(value: str | None) -> int | None:
    """Parse an NPS cell as a whole integer ("7", " +7 " -> 7; "7.5", "7abc" -> None).

    Range is not checked here.
    """
    cleaned = strip_invisible_chars(value).strip()
    if _NPS_PATTERN.match(cleaned) is None:
        return None
    return int(cleaned)


def validate_row(row: Mapping[str, str | None], row_index: int) -> list[ValidationError]:
    """Validate NPS and Date of one data row (0-based row_index)."""
    errors: list[ValidationError] = []
    row_no = row_index + 1

    raw_nps = get_field(row, NPS_FIELD)
    if not strip_invisible_chars(raw_nps).strip():
        errors.append(
            ValidationError(
                row=row_no,
                field=NPS_FIELD,
                message=f"Row {row_no}: NPS score is empty (required field)",
            )
        )
    else:
        score = parse_nps(raw_nps)
        if score is None or not NPS_MIN <= score <= NPS_MAX:
            errors.append(
                ValidationError(
                    row=row_no,
                    field=NPS_FIELD,
                    message=f"Row {row_no}: NPS score '{raw_nps}' is invalid (must be a number 0-10)",
                )
            )

    date_error = validate_date_format(get_field(row, DATE_FIELD), row_index)
    if date_error:
        errors.append(ValidationError(row=row_no, field=DATE_FIELD, message=date_error))

    return errors


def validate_csv(
    headers: Sequence[str], rows: Sequence[Mapping[str, str | None]]
) -> list[ValidationError]:
    """Validate a parsed file.

    Returns the single header error (row 0, field "header") when the NPS column
    is missing; otherwise every row error in file order.
    """
    header_error = validate_headers(headers)
    if header_error:
        # row checks are meaningless without an NPS column
        return [ValidationError(row=HEADER_ROW, field=HEADER_FIELD, message=header_error)]

    errors: list[ValidationError] = []
    for i, row in enumerate(rows):
        errors.extend(validate_row(row, i))
    return errors


def is_row_valid(row: Mapping[str, str | None]) -> bool:
    """True when the row has a usable NPS score (Date is not considered)."""
    score = parse_nps(get_field(row, NPS_FIELD))
    return score is not None and NPS_MIN <= score <= NPS_MAX

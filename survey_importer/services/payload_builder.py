from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from datetime import UTC, datetime

from ..models.answer_payload import AnswerPayload
from .normalizer import get_field, normalize_key, strip_invisible_chars
from .validator import COMMENT_FIELD, DATE_FIELD, DATE_PATTERN, NPS_FIELD

"""Row -> AnswerPayload mapping.

The builder does not validate. Malformed input still yields a payload (score
passed through as-is, unparseable dates replaced by the current time), so the
validator has to run first on the default path.
"""

__all__ = [
    "TIMESTAMP_FMT",
    "MAX_RESERVED_QUESTIONS",
    "RESERVED_COLUMNS",
    "format_date",
    "is_date_fallback",
    "extract_properties",
    "build_answer_payload",
]

TIMESTAMP_FMT = "%Y-%m-%d %H:%M:%S"

# [Q1]..[Q20] never become properties. Higher positions would leak into
# properties; raise this if surveys get more additional questions.
MAX_RESERVED_QUESTIONS = 20

RESERVED_COLUMNS = frozenset(
    {normalize_key(c) for c in (NPS_FIELD, COMMENT_FIELD, DATE_FIELD, "")}
    | {f"[Q{i}]" for i in range(1, MAX_RESERVED_QUESTIONS + 1)}
)

DATE_ONLY_PATTERN = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$", re.ASCII)

# Time used for date-only values; midday keeps the day stable across timezones
DATE_ONLY_TIME = "12:00:00"

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _now_str(now: Clock | None) -> str:
    return (now or _utc_now)().strftime(TIMESTAMP_FMT)


def format_date(date: str | None, now: Clock | None = None) -> str:
    """Convert a CSV Date cell to ``YYYY-MM-DD HH:MM:SS``.

    - empty / missing            -> current UTC time (second precision)
    - ``D.M.YYYY H:MM``          -> ``YYYY-MM-DD HH:MM:00``
    - ``D.M.YYYY``               -> ``YYYY-MM-DD 12:00:00``
    - anything else              -> current UTC time

    Ranges are not checked; validate_date_format() does that.
    """
    cleaned = strip_invisible_chars(date).strip()
    if not cleaned:
        return _now_str(now)

    m = DATE_PATTERN.match(cleaned)
    if m:
        day, month, year, hour, minute = m.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)} {hour.zfill(2)}:{minute}:00"

    m = DATE_ONLY_PATTERN.match(cleaned)
    if m:
        day, month, year = m.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)} {DATE_ONLY_TIME}"

    return _now_str(now)


def is_date_fallback(date: str | None) -> bool:
    """True when format_date() would replace a non-empty value with the current time."""
    cleaned = strip_invisible_chars(date).strip()
    if not cleaned:
        return False
    return DATE_PATTERN.match(cleaned) is None and DATE_ONLY_PATTERN.match(cleaned) is None


def extract_properties(row: Mapping[str, str | None]) -> dict[str, str]:
    """Collect non-reserved, non-empty columns as answer properties.

    Keys are the cleaned headers (invisible chars removed, trimmed, case kept);
    values are the cleaned cells. Reserved names are matched case-insensitively.
    Later duplicates overwrite earlier ones.
    """
    properties: dict[str, str] = {}
    for key, value in row.items():
        clean_key = strip_invisible_chars(key).strip()
        if clean_key.upper() in RESERVED_COLUMNS:
            continue
        clean_value = strip_invisible_chars(value)
        if not clean_value:
            continue
        properties[clean_key] = clean_value
    return properties


def build_answer_payload(row: Mapping[str, str | None], now: Clock | None = None) -> AnswerPayload:
    """Build the primary answer body for one row. Never raises on bad data."""
    return AnswerPayload(
        answer_score=strip_invisible_chars(get_field(row, NPS_FIELD)),
        response=strip_invisible_chars(get_field(row, COMMENT_FIELD)),
        properties=extract_properties(row),
        inserted_at=format_date(get_field(row, DATE_FIELD), now=now),
    )

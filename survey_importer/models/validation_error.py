from __future__ import annotations

import json
from dataclasses import asdict, dataclass

"""ValidationError model for CSV header / row validation results."""

__all__ = [
    "ValidationError",
    "HEADER_ROW",
]

# Row index used for file-level (header) errors
HEADER_ROW = 0


@dataclass(frozen=True)
class ValidationError:
    """A single validation finding.

    Attributes:
        row: 1-based data row number. 0 for header-level errors
        field: Offending field ("NPS", "Date" or "header")
        message: Human readable message, already prefixed with the row for row errors
    """
    row: int
    field: str
    message: str

    @property
    def is_header_error(self) -> bool:
        return self.row == HEADER_ROW

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)

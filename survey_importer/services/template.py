from __future__ import annotations

from pathlib import Path

"""Example CSV handed out to users preparing an import.

Covers the usual cases: full row, missing Date (imported with the current
time) and missing Comment.
"""

__all__ = [
    "TEMPLATE_CSV",
    "write_template",
]

TEMPLATE_CSV = (
    '"NPS","Comment","Date","customer_id","store"\n'
    '"10","Great service!","07.01.2026 10:15","12345","Berlin"\n'
    '"8","Good experience","07.01.2026 11:30","12346","Munich"\n'
    '"6","Could be better","","12347","Hamburg"\n'
    '"9","","07.01.2026 14:00","12348","Frankfurt"\n'
)


def write_template(path: Path) -> Path:
    """Write the template CSV (UTF-8) and return the path."""
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(TEMPLATE_CSV, encoding="utf-8")
    return path

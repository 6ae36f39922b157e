from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Row progress display with tqdm (TTY only).

One tqdm bar per processing pass. In non-TTY environments (CI, redirected
output) the bar is disabled so no ANSI control sequences end up in logs.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress bar over the rows of one CSV file."""

    def __init__(
        self, total_rows: int, *, description: str = "Importing rows", enabled: bool = True
    ) -> None:
        """Initialize progress tracker.

        Args:
            total_rows: Number of data rows in the pass
            description: Bar label
            enabled: False forces the bar off even on a TTY (--no-progress)
        """
        self.total_rows = total_rows
        self.description = description
        self.current_row = 0

        self.enabled = enabled and is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start_row(self, row_number: int) -> None:
        self.current_row = row_number
        if self.enabled and self.pbar is not None:
            self.pbar.set_description(f"{self.description} (row {row_number})")

    def finish_row(self, success: bool = True) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_description(self.description)

    def set_postfix(self, **kwargs: Any) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

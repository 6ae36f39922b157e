from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import RUN_LEVEL_ROW, ErrorRecord

"""Error log buffering.

- JSON Lines with a fixed key set (see ErrorRecord)
- One file per process: ``<log_dir>/errors-YYYYMMDD-HHMMSS.log`` (UTC), created lazily
- Records are kept in memory and appended on flush()
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
    "RUN_LEVEL_ROW",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """In-memory buffer for error records. Flush writes JSON Lines.

    Not thread safe; an import run is strictly sequential.
    """
    def __init__(self, log_dir: Path | None = None) -> None:
        self._records: list[ErrorRecord] = []
        self._log_dir = log_dir if log_dir is not None else LOGS_DIR
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._log_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._log_dir / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def add(self, file: str, row: int, error_type: str, message: str) -> None:
        self.append(ErrorRecord.create(file, row, error_type, message))

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the log file.

        Returns:
            Path written to, or None when there was nothing to write
        """
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .validation_error import ValidationError

"""Processing state models for one import run.

ProcessingStatus is the immutable snapshot handed to observers (CLI progress,
summary line). The orchestrator keeps its own mutable tracker and publishes a
fresh snapshot after every phase change and every processed row.
"""

__all__ = [
    "ProcessingPhase",
    "ProcessingStatus",
    "RunResult",
]


class ProcessingPhase(Enum):
    """Lifecycle of an import run.

    State transitions:
        idle → validating → (validation_failed | processing) → (complete | error)
        validation_failed → processing  (proceed anyway, invalid rows skipped)
        any → idle                      (reset / new run)
    """
    IDLE = "idle"
    VALIDATING = "validating"
    VALIDATION_FAILED = "validation_failed"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingPhase.COMPLETE, ProcessingPhase.ERROR)


@dataclass(frozen=True)
class ProcessingStatus:
    """Read-only view of an import run."""
    phase: ProcessingPhase
    total_rows: int = 0
    processed_rows: int = 0
    validation_errors: tuple[ValidationError, ...] = ()
    processing_errors: tuple[str, ...] = ()
    skipped_rows: int = 0  # rows skipped by proceed-anyway (counted in processed_rows)

    @staticmethod
    def idle() -> ProcessingStatus:
        return ProcessingStatus(phase=ProcessingPhase.IDLE)

    @property
    def success_count(self) -> int:
        return self.processed_rows - len(self.processing_errors)

    @property
    def submitted_count(self) -> int:
        """Rows actually accepted by the platform (skipped rows excluded)."""
        return self.success_count - self.skipped_rows

    @property
    def percent(self) -> int:
        if self.total_rows == 0:
            return 0
        return round(self.processed_rows / self.total_rows * 100)


@dataclass(frozen=True)
class RunResult:
    """Outcome of one processing pass."""
    status: ProcessingStatus
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    additional_submitted: int = 0
    additional_failed: int = 0
    warnings: list[str] = field(default_factory=list)

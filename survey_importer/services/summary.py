from __future__ import annotations

from ..models.processing_status import RunResult

"""SUMMARY line rendering for the CLI.

Format:
SUMMARY rows={processed}/{total} success={success} failed={failed} skipped={skipped}
additional_ok={n} additional_failed={n} elapsed_sec={elapsed} status={phase}
"""

__all__ = [
    "render_summary_line",
    "format_seconds",
]


def format_seconds(value: float) -> str:
    """Compact number formatting (no scientific notation, no trailing zeros)."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: RunResult) -> str:
    """Render a SUMMARY line from a RunResult.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from survey_importer.models.processing_status import ProcessingPhase, ProcessingStatus
        >>> t = datetime(2026, 1, 7, 10, 0, 0, tzinfo=timezone.utc)
        >>> status = ProcessingStatus(ProcessingPhase.COMPLETE, total_rows=3, processed_rows=3,
        ...                           processing_errors=("Row 2: You are unauthorized",))
        >>> render_summary_line(RunResult(status, t, t, 2.0, additional_submitted=4))
        'SUMMARY rows=3/3 success=2 failed=1 skipped=0 additional_ok=4 additional_failed=0 elapsed_sec=2 status=complete'
    """
    status = result.status
    return (
        f"SUMMARY rows={status.processed_rows}/{status.total_rows} "
        f"success={status.submitted_count} "
        f"failed={len(status.processing_errors)} "
        f"skipped={status.skipped_rows} "
        f"additional_ok={result.additional_submitted} "
        f"additional_failed={result.additional_failed} "
        f"elapsed_sec={format_seconds(result.elapsed_seconds)} "
        f"status={status.phase.value}"
    )

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from ..gateway.client import GatewayError
from ..logging.error_log import RUN_LEVEL_ROW, ErrorLogBuffer
from ..models.additional_question import AdditionalQuestion
from ..models.answer_payload import AnswerPayload
from ..models.config_models import DEFAULT_ROW_DELAY
from ..models.processing_status import ProcessingPhase, ProcessingStatus, RunResult
from ..models.row_data import RawRow
from ..models.validation_error import ValidationError
from ..tabular.reader import ParsedCsv, parse_csv_text, read_csv_file
from .additional_answers import get_additional_answers
from .normalizer import get_field
from .payload_builder import Clock, build_answer_payload, is_date_fallback
from .progress import ProgressTracker
from .validator import DATE_FIELD, NPS_FIELD, is_row_valid, validate_csv

"""Import orchestration.

One run = parse -> validate -> (stop | process). Processing walks the rows in
file order, strictly one at a time:

1. build the answer payload and submit it
2. on success, submit every non-empty additional answer (best effort)
3. count the row, publish a status snapshot, pause briefly

A failed primary submission is recorded for that row and the loop moves on.
The run ends "error" only when every row failed, otherwise "complete".
"""

__all__ = [
    "ProcessingError",
    "ImportInputError",
    "InvalidTransitionError",
    "RemoteGateway",
    "ImportOrchestrator",
]

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "You are unauthorized"


class ProcessingError(Exception):
    """Base exception for orchestration errors."""
    pass


class ImportInputError(ProcessingError):
    """Survey id or CSV file missing."""


class InvalidTransitionError(ProcessingError):
    """Requested action is not allowed in the current phase."""


class RemoteGateway(Protocol):
    def submit_answer(self, survey_id: str, payload: AnswerPayload) -> str | None: ...

    def fetch_additional_questions(self, survey_id: str) -> list[AdditionalQuestion]: ...

    def submit_additional_answer(
        self, answer_id: str, question_id: str, answer: str | list[str]
    ) -> None: ...


@dataclass
class _RunTracker:
    """Mutable progress of the current run. Only the orchestrator writes it."""
    phase: ProcessingPhase = ProcessingPhase.IDLE
    total_rows: int = 0
    processed_rows: int = 0
    skipped_rows: int = 0
    validation_errors: list[ValidationError] = field(default_factory=list)
    processing_errors: list[str] = field(default_factory=list)
    additional_submitted: int = 0
    additional_failed: int = 0
    warnings: list[str] = field(default_factory=list)

    def snapshot(self) -> ProcessingStatus:
        return ProcessingStatus(
            phase=self.phase,
            total_rows=self.total_rows,
            processed_rows=self.processed_rows,
            validation_errors=tuple(self.validation_errors),
            processing_errors=tuple(self.processing_errors),
            skipped_rows=self.skipped_rows,
        )


@dataclass(frozen=True)
class _RetainedInput:
    survey_id: str
    file_name: str
    headers: list[str]
    rows: list[RawRow]


def _describe(exc: Exception) -> str:
    """GatewayError messages already carry status and body; others get their type."""
    if isinstance(exc, GatewayError):
        return str(exc)
    return f"{type(exc).__name__}: {exc}"


def _validation_error_type(err: ValidationError) -> str:
    if err.is_header_error:
        return "HEADER_MISSING"
    if err.field == DATE_FIELD:
        return "DATE_INVALID"
    if err.field == NPS_FIELD and "is empty" in err.message:
        return "NPS_EMPTY"
    return "NPS_INVALID"


class ImportOrchestrator:
    """Drives one import run at a time and exposes its ProcessingStatus.

    Observers registered through on_status receive a fresh immutable snapshot
    after every phase change and after every processed row.
    """

    def __init__(
        self,
        gateway: RemoteGateway,
        *,
        row_delay_seconds: float = DEFAULT_ROW_DELAY,
        sleep: Callable[[float], None] = time.sleep,
        on_status: Callable[[ProcessingStatus], None] | None = None,
        error_log: ErrorLogBuffer | None = None,
        show_progress: bool = True,
        now: Clock | None = None,
    ) -> None:
        if row_delay_seconds <= 0:
            raise ValueError("row_delay_seconds must be > 0")
        self.gateway = gateway
        self.row_delay_seconds = row_delay_seconds
        self._sleep = sleep
        self._observers: list[Callable[[ProcessingStatus], None]] = []
        if on_status is not None:
            self._observers.append(on_status)
        self.error_log = error_log
        self.show_progress = show_progress
        self._now = now
        self._tracker = _RunTracker()
        self._retained: _RetainedInput | None = None
        self._file_name = "<memory>"
        self._parse_warnings: list[str] = []
        self._status = self._tracker.snapshot()

    # ------------------------------------------------------------------ state

    @property
    def status(self) -> ProcessingStatus:
        return self._status

    @property
    def can_proceed_anyway(self) -> bool:
        """True when the last submit stopped on row errors only."""
        return (
            self._status.phase == ProcessingPhase.VALIDATION_FAILED
            and self._retained is not None
            and not any(e.is_header_error for e in self._status.validation_errors)
        )

    def add_observer(self, callback: Callable[[ProcessingStatus], None]) -> None:
        self._observers.append(callback)

    def _publish(self) -> None:
        self._status = self._tracker.snapshot()
        for cb in self._observers:
            cb(self._status)

    def reset(self) -> None:
        """Back to idle; parsed rows from a failed validation are discarded."""
        self._tracker = _RunTracker()
        self._retained = None
        self._file_name = "<memory>"
        self._parse_warnings = []
        self._publish()

    # ------------------------------------------------------------------ entry points

    def submit(self, survey_id: str, source: Path | str | ParsedCsv) -> RunResult:
        """Parse, validate and (when clean) process a CSV file.

        Args:
            survey_id: Target survey public hash id
            source: CSV file path, raw CSV text or an already parsed file

        Returns:
            RunResult; status.phase is validation_failed when rows were rejected

        Raises:
            ImportInputError: blank survey id or missing file
            CsvReadError: file cannot be read or tokenized
        """
        survey_id = (survey_id or "").strip()
        if not survey_id:
            raise ImportInputError("Please enter a Survey Hash ID")
        if isinstance(source, Path):
            if not source.is_file():
                raise ImportInputError(f"Please select a CSV file (not found: {source})")
            parsed = read_csv_file(source)
            file_name = source.name
        elif isinstance(source, str):
            parsed = parse_csv_text(source)
            file_name = "<memory>"
        else:
            parsed = source
            file_name = "<memory>"

        start_time = datetime.now(UTC)
        self._tracker = _RunTracker(phase=ProcessingPhase.VALIDATING, total_rows=parsed.total_rows)
        self._retained = None
        self._file_name = file_name
        self._parse_warnings = list(parsed.warnings)
        self._tracker.warnings = list(parsed.warnings)
        self._publish()
        logger.info(f"Validating {file_name}: {parsed.total_rows} row(s)")

        errors = validate_csv(parsed.headers, parsed.rows)
        if errors:
            self._tracker.validation_errors = errors
            self._tracker.phase = ProcessingPhase.VALIDATION_FAILED
            self._retained = _RetainedInput(survey_id, file_name, parsed.headers, parsed.rows)
            for err in errors:
                self._record(err.row, _validation_error_type(err), err.message)
            self._flush_error_log()
            self._publish()
            logger.warning(f"Validation failed: {len(errors)} issue(s) found")
            return self._result(start_time)

        return self.process_rows(survey_id, parsed.rows)

    def proceed_anyway(self) -> RunResult:
        """Process the rows of the last rejected file, skipping rows without a valid NPS.

        Raises:
            InvalidTransitionError: not in validation_failed, or the failure was the
                missing NPS header (the file must be fixed and uploaded again)
        """
        if self._status.phase != ProcessingPhase.VALIDATION_FAILED or self._retained is None:
            raise InvalidTransitionError(
                f"proceed anyway is only possible after failed validation (phase={self._status.phase.value})"
            )
        if not self.can_proceed_anyway:
            raise InvalidTransitionError(
                "Missing 'NPS' column header cannot be overridden; fix the file and upload it again"
            )
        retained = self._retained
        self._file_name = retained.file_name
        logger.info(f"Proceeding anyway: invalid rows of {retained.file_name} will be skipped")
        return self.process_rows(retained.survey_id, retained.rows, skip_invalid=True)

    # ------------------------------------------------------------------ processing

    def process_rows(
        self, survey_id: str, rows: Sequence[RawRow], skip_invalid: bool = False
    ) -> RunResult:
        """Submit every row sequentially and return the final RunResult."""
        start_time = datetime.now(UTC)
        tracker = self._tracker
        tracker.phase = ProcessingPhase.PROCESSING
        tracker.total_rows = len(rows)
        tracker.processed_rows = 0
        tracker.skipped_rows = 0
        tracker.processing_errors = []
        tracker.additional_submitted = 0
        tracker.additional_failed = 0
        tracker.warnings = list(self._parse_warnings)
        self._publish()

        questions = self._fetch_questions(survey_id)

        with ProgressTracker(len(rows), enabled=self.show_progress) as progress:
            for i, row in enumerate(rows):
                row_no = i + 1
                progress.start_row(row_no)

                if skip_invalid and not is_row_valid(row):
                    logger.debug(f"Row {row_no}: skipped (invalid NPS)")
                    tracker.skipped_rows += 1
                    tracker.processed_rows += 1
                    self._publish()
                    progress.finish_row(success=False)
                    continue

                ok = self._process_row(survey_id, row, i, questions)
                tracker.processed_rows += 1
                self._publish()
                progress.finish_row(success=ok)
                progress.set_postfix(
                    ok=tracker.processed_rows - len(tracker.processing_errors) - tracker.skipped_rows,
                    failed=len(tracker.processing_errors),
                )
                self._sleep(self.row_delay_seconds)

        failed = len(tracker.processing_errors)
        # an empty file has no failed rows, so it ends complete
        if rows and failed == len(rows):
            tracker.phase = ProcessingPhase.ERROR
            logger.error(f"All {failed} row(s) failed")
        else:
            tracker.phase = ProcessingPhase.COMPLETE
            logger.info(
                f"Import complete: {tracker.processed_rows - failed} of {tracker.processed_rows} row(s) without errors"
            )
        self._flush_error_log()
        self._publish()
        return self._result(start_time)

    def _fetch_questions(self, survey_id: str) -> list[AdditionalQuestion]:
        try:
            questions = self.gateway.fetch_additional_questions(survey_id)
        except Exception as e:
            # primary answers can still be submitted without them
            msg = f"Could not fetch additional questions: {_describe(e)}"
            logger.warning(msg)
            self._tracker.warnings.append(msg)
            self._record(RUN_LEVEL_ROW, "QUESTIONS_FETCH_FAILED", _describe(e))
            return []
        logger.debug(f"{len(questions)} additional question(s)")
        return questions

    def _process_row(
        self,
        survey_id: str,
        row: RawRow,
        index: int,
        questions: Sequence[AdditionalQuestion],
    ) -> bool:
        """Submit one row. Returns False when the primary submission failed."""
        row_no = index + 1
        payload = build_answer_payload(row, now=self._now)

        raw_date = get_field(row, DATE_FIELD)
        if is_date_fallback(raw_date):
            msg = (
                f"Row {row_no}: Date '{raw_date}' is invalid, "
                f"submitting with inserted_at={payload.inserted_at}"
            )
            logger.warning(msg)
            self._tracker.warnings.append(msg)

        try:
            answer_id = self.gateway.submit_answer(survey_id, payload)
        except Exception as e:
            # any failure stays row-scoped; the loop goes on with the next row
            if isinstance(e, GatewayError) and e.is_unauthorized:
                msg = f"Row {row_no}: {UNAUTHORIZED_MESSAGE}"
                error_type = "UNAUTHORIZED"
            else:
                msg = f"Row {row_no}: {_describe(e)}"
                error_type = "SUBMIT_FAILED"
            logger.error(msg)
            self._tracker.processing_errors.append(msg)
            self._record(row_no, error_type, _describe(e))
            return False

        if answer_id and questions:
            for additional in get_additional_answers(row, questions):
                if additional.is_empty:
                    continue
                try:
                    self.gateway.submit_additional_answer(
                        answer_id, additional.question_id, additional.answer
                    )
                    self._tracker.additional_submitted += 1
                except Exception as e:
                    msg = (
                        f"Row {row_no}: failed to post additional answer "
                        f"for question {additional.question_id}: {_describe(e)}"
                    )
                    logger.warning(msg)
                    self._tracker.additional_failed += 1
                    self._tracker.warnings.append(msg)
                    self._record(row_no, "ADDITIONAL_ANSWER_FAILED", _describe(e))
        return True

    # ------------------------------------------------------------------ helpers

    def _record(self, row: int, error_type: str, message: str) -> None:
        if self.error_log is not None:
            self.error_log.add(self._file_name, row, error_type, message)

    def _flush_error_log(self) -> None:
        if self.error_log is None:
            return
        try:
            path = self.error_log.flush()
        except OSError as e:
            logger.warning(f"error log flush failed: {e}")
            return
        if path is not None:
            logger.info(f"Error details written to {path}")

    def _result(self, start_time: datetime) -> RunResult:
        end_time = datetime.now(UTC)
        return RunResult(
            status=self._status,
            start_time=start_time,
            end_time=end_time,
            elapsed_seconds=(end_time - start_time).total_seconds(),
            additional_submitted=self._tracker.additional_submitted,
            additional_failed=self._tracker.additional_failed,
            warnings=list(self._tracker.warnings),
        )

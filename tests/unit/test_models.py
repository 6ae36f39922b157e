from __future__ import annotations

import json

import pytest

from survey_importer.models import (
    AdditionalAnswer,
    AdditionalQuestion,
    ProcessingPhase,
    ProcessingStatus,
    ValidationError,
)


def test_processing_status_idle():
    status = ProcessingStatus.idle()
    assert status.phase == ProcessingPhase.IDLE
    assert status.total_rows == 0
    assert status.processed_rows == 0
    assert status.validation_errors == ()
    assert status.processing_errors == ()
    assert status.percent == 0


def test_processing_status_counts():
    status = ProcessingStatus(
        phase=ProcessingPhase.COMPLETE,
        total_rows=4,
        processed_rows=4,
        processing_errors=("Row 2: boom",),
        skipped_rows=1,
    )
    assert status.success_count == 3
    assert status.submitted_count == 2
    assert status.percent == 100


def test_processing_status_is_immutable():
    status = ProcessingStatus.idle()
    with pytest.raises(AttributeError):
        status.processed_rows = 3  # type: ignore[misc]


@pytest.mark.parametrize(
    "phase, terminal",
    [
        (ProcessingPhase.IDLE, False),
        (ProcessingPhase.VALIDATING, False),
        (ProcessingPhase.VALIDATION_FAILED, False),
        (ProcessingPhase.PROCESSING, False),
        (ProcessingPhase.COMPLETE, True),
        (ProcessingPhase.ERROR, True),
    ],
)
def test_processing_phase_terminal(phase: ProcessingPhase, terminal: bool):
    assert phase.is_terminal is terminal


def test_validation_error_json_line():
    err = ValidationError(row=0, field="header", message="Missing required 'NPS' column header")
    data = json.loads(err.to_json_line())
    assert data == {"row": 0, "field": "header", "message": "Missing required 'NPS' column header"}
    assert err.is_header_error


@pytest.mark.parametrize(
    "answer, empty",
    [("", True), ("   ", True), ([], True), ("Yes", False), (["A"], False)],
)
def test_additional_answer_is_empty(answer, empty: bool):
    assert AdditionalAnswer(question_id="q", answer=answer).is_empty is empty


def test_additional_answer_to_dict():
    assert AdditionalAnswer("q", ["A", "B"]).to_dict() == {"answer": ["A", "B"], "question_id": "q"}


def test_additional_question_from_api_requires_id_and_position():
    with pytest.raises(KeyError):
        AdditionalQuestion.from_api({"position": 1})
    with pytest.raises(ValueError):
        AdditionalQuestion.from_api({"public_hash_id": "x", "position": "first"})

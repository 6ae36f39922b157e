"""Domain models for the survey CSV importer.

Plain frozen dataclasses shared by the validator, the payload builder, the
remote gateway and the orchestrator.
"""

from .additional_question import AdditionalQuestion
from .answer_payload import AdditionalAnswer, AnswerPayload
from .config_models import ApiConfig, ImportConfig
from .processing_status import ProcessingPhase, ProcessingStatus, RunResult
from .row_data import RawRow
from .validation_error import ValidationError

__all__ = [
    # Configuration models
    "ApiConfig",
    "ImportConfig",
    # Row / payload models
    "RawRow",
    "AnswerPayload",
    "AdditionalAnswer",
    "AdditionalQuestion",
    # Validation & processing state
    "ValidationError",
    "ProcessingPhase",
    "ProcessingStatus",
    "RunResult",
]

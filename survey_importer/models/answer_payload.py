from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""Wire payload models sent to the survey platform."""

__all__ = [
    "AnswerPayload",
    "AdditionalAnswer",
]


@dataclass(frozen=True)
class AnswerPayload:
    """Primary answer body for one CSV row.

    inserted_at is always ``YYYY-MM-DD HH:MM:SS``.
    """
    answer_score: str  # "0".."10" after validation, raw otherwise
    response: str
    properties: dict[str, str] = field(default_factory=dict)
    inserted_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "answer_score": self.answer_score,
            "response": self.response,
            "properties": dict(self.properties),
            "inserted_at": self.inserted_at,
        }


@dataclass(frozen=True)
class AdditionalAnswer:
    """Answer to one additional question, bound to the remote question id."""
    question_id: str
    answer: str | list[str]

    @property
    def is_empty(self) -> bool:
        if isinstance(self.answer, str):
            return self.answer.strip() == ""
        return len(self.answer) == 0

    def to_dict(self) -> dict[str, Any]:
        answer = self.answer if isinstance(self.answer, str) else list(self.answer)
        return {"answer": answer, "question_id": self.question_id}

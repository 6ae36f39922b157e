from __future__ import annotations

from collections.abc import Mapping, Sequence

from ..models.additional_question import AdditionalQuestion
from ..models.answer_payload import AdditionalAnswer
from .normalizer import get_field, strip_invisible_chars

"""Additional question columns ([Q1], [Q2], ...) -> AdditionalAnswer.

Multi-select answers are encoded as ``[{Maybe},{Yes}]``; any other value is a
single answer string.
"""

__all__ = [
    "parse_additional_answer",
    "get_additional_answers",
]


def parse_additional_answer(value: str | None) -> str | list[str]:
    """Decode one [Qn] cell.

    >>> parse_additional_answer("[{Maybe},{Yes}]")
    ['Maybe', 'Yes']
    >>> parse_additional_answer(" Maybe ")
    'Maybe'
    >>> parse_additional_answer(None)
    ''
    """
    cleaned = strip_invisible_chars(value).strip()
    if cleaned.startswith("[{") and cleaned.endswith("}]"):
        inner = cleaned[1:-1]
        return [_strip_braces(part) for part in inner.split("},{")]
    return cleaned


def _strip_braces(part: str) -> str:
    if part.startswith("{"):
        part = part[1:]
    if part.endswith("}"):
        part = part[:-1]
    return part


def get_additional_answers(
    row: Mapping[str, str | None], questions: Sequence[AdditionalQuestion]
) -> list[AdditionalAnswer]:
    """One AdditionalAnswer per question, in the order given.

    A question without a matching column gets an empty answer; callers skip
    empty answers (AdditionalAnswer.is_empty).
    """
    return [
        AdditionalAnswer(
            question_id=q.public_hash_id,
            answer=parse_additional_answer(get_field(row, q.column_name)),
        )
        for q in questions
    ]

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

"""AdditionalQuestion model (fetched once per run, read-only afterwards)."""

__all__ = [
    "AdditionalQuestion",
]


@dataclass(frozen=True)
class AdditionalQuestion:
    """Supplementary survey question addressed by the ``[Q<position>]`` column."""
    public_hash_id: str
    question: str
    position: int  # 1-based
    type: str = ""
    options: list[str] = field(default_factory=list)

    @property
    def column_name(self) -> str:
        return f"[Q{self.position}]"

    @staticmethod
    def from_api(data: Mapping[str, Any]) -> AdditionalQuestion:
        """Build from one entry of the ``additional_questions`` response list.

        Raises:
            KeyError: public_hash_id or position missing
            ValueError: position is not an integer
        """
        options = data.get("options") or []
        return AdditionalQuestion(
            public_hash_id=str(data["public_hash_id"]),
            question=str(data.get("question") or ""),
            position=int(data["position"]),
            type=str(data.get("type") or ""),
            options=[str(o) for o in options],
        )

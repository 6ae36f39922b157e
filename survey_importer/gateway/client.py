from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import requests

from ..models.additional_question import AdditionalQuestion
from ..models.answer_payload import AdditionalAnswer, AnswerPayload
from ..models.config_models import ApiConfig

"""Survey platform client (csv_answers_importer API).

Three calls, each attempted exactly once:

- POST /csv_answers_importer/surveys/{survey}/answers
- GET  /csv_answers_importer/surveys/{survey}/additional_questions
- POST /csv_answers_importer/answers/{answer}/additional_answers

Every non-2xx response or transport failure is raised as GatewayError; the
message embeds the HTTP status and the response body so callers can classify
it (401 -> unauthorized).
"""

__all__ = [
    "GatewayError",
    "SurveyGateway",
]

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Remote call failed. status_code is None for transport errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401 or "401" in str(self)


class SurveyGateway:
    """Thin authenticated wrapper around requests.Session.

    The session is created here unless one is injected (tests pass a mock);
    close() only closes a session this object created.
    """

    def __init__(self, config: ApiConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()
        self.session.auth = (config.user, config.password)
        self.session.headers.update({"Content-Type": "application/json"})

    def _url(self, *segments: str) -> str:
        path = "/".join(quote(s, safe="") if i % 2 else s for i, s in enumerate(segments))
        return f"{self.config.base_url}/csv_answers_importer/{path}"

    def _request(self, method: str, url: str, body: dict[str, Any] | None = None) -> Any:
        logger.debug(f"{method} {url}")
        try:
            resp = self.session.request(
                method, url, json=body, timeout=self.config.timeout_seconds
            )
        except requests.RequestException as e:
            raise GatewayError(f"zenloop API request failed: {e}") from e

        if not resp.ok:
            raise GatewayError(
                f"zenloop API error: {resp.status_code} - {resp.text}",
                status_code=resp.status_code,
            )
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            raise GatewayError(
                f"zenloop API returned invalid JSON ({resp.status_code})",
                status_code=resp.status_code,
            ) from e

    def submit_answer(self, survey_id: str, payload: AnswerPayload) -> str | None:
        """Create the primary answer. Returns the answer id when the platform sends one."""
        data = self._request("POST", self._url("surveys", survey_id, "answers"), payload.to_dict())
        answer = data.get("answer") if isinstance(data, dict) else None
        if not isinstance(answer, dict) or answer.get("id") in (None, ""):
            return None
        return str(answer["id"])

    def fetch_additional_questions(self, survey_id: str) -> list[AdditionalQuestion]:
        data = self._request("GET", self._url("surveys", survey_id, "additional_questions"))
        items = data.get("additional_questions") if isinstance(data, dict) else None
        if not items:
            return []
        try:
            return [AdditionalQuestion.from_api(item) for item in items]
        except (KeyError, TypeError, ValueError) as e:
            raise GatewayError(f"unexpected additional_questions payload: {e}") from e

    def submit_additional_answer(
        self, answer_id: str, question_id: str, answer: str | list[str]
    ) -> None:
        body = AdditionalAnswer(question_id=question_id, answer=answer).to_dict()
        self._request("POST", self._url("answers", answer_id, "additional_answers"), body)

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> SurveyGateway:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

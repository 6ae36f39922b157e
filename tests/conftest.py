# Shared pytest fixtures
from __future__ import annotations

from pathlib import Path

import pytest

from survey_importer.gateway.client import GatewayError
from survey_importer.logging.init import reset_logging
from survey_importer.models.additional_question import AdditionalQuestion


@pytest.fixture()
def temp_workdir(tmp_path: Path, monkeypatch) -> Path:
    (tmp_path / "config").mkdir()
    (tmp_path / "data").mkdir()
    (tmp_path / "logs").mkdir()
    monkeypatch.chdir(tmp_path)
    for var in ("ZENLOOP_API_URL", "ZENLOOP_API_USER", "ZENLOOP_API_PASSWORD"):
        monkeypatch.delenv(var, raising=False)
    reset_logging()
    yield tmp_path
    reset_logging()


@pytest.fixture()
def sample_csv_text() -> str:
    return (
        "NPS,Comment,Date,customer_id,[Q1],[Q2]\n"
        "10,Great!,07.01.2026 10:15,123,Yes,\"[{Maybe},{Later}]\"\n"
        "7,Okay,,124,No,\n"
        "3,,8.1.2026 9:05,125,,\n"
    )


@pytest.fixture()
def invalid_csv_text() -> str:
    return (
        "NPS,Comment,Date,customer_id\n"
        "10,Great!,07.01.2026 10:15,123\n"
        "15,Too high,,124\n"
        ",No score,,125\n"
        "8,Bad date,2026-01-07,126\n"
    )


@pytest.fixture()
def write_csv(temp_workdir: Path):
    def _write(text: str, name: str = "answers.csv") -> Path:
        path = temp_workdir / "data" / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture()
def sample_config_yaml() -> str:
    return """api_url: https://api.example.test
request_timeout_seconds: 5
row_delay_seconds: 0.01
error_log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


class FakeGateway:
    """In-memory stand-in for SurveyGateway recording every call.

    fail_rows: 1-based row numbers (by submit order) whose primary submission fails
    fail_message: message of the GatewayError raised for those rows
    """

    def __init__(
        self,
        questions: list[AdditionalQuestion] | None = None,
        *,
        fail_rows: set[int] | None = None,
        fail_message: str = "zenloop API error: 500 - boom",
        fail_status: int | None = 500,
        questions_error: bool = False,
        additional_fail_questions: set[str] | None = None,
        answer_id: str | None = "ans",
    ) -> None:
        self.questions = questions or []
        self.fail_rows = fail_rows or set()
        self.fail_message = fail_message
        self.fail_status = fail_status
        self.questions_error = questions_error
        self.additional_fail_questions = additional_fail_questions or set()
        self.answer_id = answer_id
        self.answers: list[tuple[str, object]] = []
        self.additional: list[tuple[str, str, object]] = []
        self.calls: list[str] = []
        self._submit_count = 0
        self.closed = False
        self.api_config = None

    def fetch_additional_questions(self, survey_id: str) -> list[AdditionalQuestion]:
        self.calls.append("questions")
        if self.questions_error:
            raise GatewayError("zenloop API error: 503 - unavailable", status_code=503)
        return list(self.questions)

    def submit_answer(self, survey_id: str, payload) -> str | None:
        self._submit_count += 1
        self.calls.append(f"answer:{self._submit_count}")
        if self._submit_count in self.fail_rows:
            raise GatewayError(self.fail_message, status_code=self.fail_status)
        self.answers.append((survey_id, payload))
        if self.answer_id is None:
            return None
        return f"{self.answer_id}-{self._submit_count}"

    def submit_additional_answer(self, answer_id: str, question_id: str, answer) -> None:
        self.calls.append(f"additional:{answer_id}:{question_id}")
        if question_id in self.additional_fail_questions:
            raise GatewayError("zenloop API error: 422 - bad option", status_code=422)
        self.additional.append((answer_id, question_id, answer))

    def __enter__(self) -> FakeGateway:
        return self

    def __exit__(self, *exc) -> None:
        self.closed = True


@pytest.fixture()
def questions() -> list[AdditionalQuestion]:
    return [
        AdditionalQuestion(public_hash_id="q-one", question="Recommend?", position=1, type="yes_no"),
        AdditionalQuestion(
            public_hash_id="q-two",
            question="Which?",
            position=2,
            type="multiple_choice",
            options=["Maybe", "Later"],
        ),
    ]


@pytest.fixture()
def fake_gateway_cls():
    return FakeGateway


@pytest.fixture()
def patch_gateway(monkeypatch):
    """Replace the CLI's SurveyGateway with a FakeGateway; returns a setter."""
    def _install(gateway: FakeGateway) -> FakeGateway:
        def _factory(api_config):
            gateway.api_config = api_config
            return gateway
        monkeypatch.setattr("survey_importer.cli.__main__.SurveyGateway", _factory)
        return gateway
    return _install

from __future__ import annotations

import logging
from io import StringIO

import pytest

from survey_importer.logging import init as log_init
from survey_importer.logging.init import (
    APP_LOGGER_NAME,
    LabeledFormatter,
    get_logger,
    log_summary,
    reset_logging,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


def test_setup_logging_creates_logger_with_labeled_formatter():
    logger = setup_logging()

    assert logger.name == APP_LOGGER_NAME
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_setup_logging_is_idempotent():
    first = setup_logging()
    second = setup_logging()
    assert first is second
    assert len(second.handlers) == 1


def test_setup_logging_debug_level():
    logger = setup_logging(debug=True)
    assert logger.level == logging.DEBUG
    assert all(h.level == logging.DEBUG for h in logger.handlers)


def test_get_logger_configures_on_first_use():
    assert log_init._logger is None
    logger = get_logger()
    assert logger is log_init._logger


def test_labeled_prefixes():
    captured = StringIO()
    logger = logging.getLogger("test_survey_importer_labels")
    logger.setLevel(logging.INFO)
    for h in logger.handlers[:]:
        logger.removeHandler(h)
    logging.addLevelName(log_init.SUMMARY_LEVEL, "SUMMARY")
    handler = logging.StreamHandler(captured)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    logger.info("Test info message")
    logger.warning("Test warning message")
    logger.error("Test error message")
    logger.log(log_init.SUMMARY_LEVEL, "rows=1/1")

    lines = captured.getvalue().strip().splitlines()
    assert lines == [
        "INFO Test info message",
        "WARN Test warning message",
        "ERROR Test error message",
        "SUMMARY rows=1/1",
    ]


def test_module_loggers_go_through_app_handler(capsys):
    setup_logging()
    logging.getLogger("survey_importer.services.orchestrator").warning("child message")
    log_summary("rows=0/0")
    out = capsys.readouterr().out
    assert "WARN child message" in out
    assert "SUMMARY rows=0/0" in out

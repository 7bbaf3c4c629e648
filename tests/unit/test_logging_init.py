from __future__ import annotations

import logging
from io import StringIO

from datamatch.logging.init import (
    LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    reset_logging,
    setup_logging,
)


def test_setup_logging_creates_logger_with_labeled_formatter():
    logger = setup_logging()
    assert logger.name == LOGGER_NAME
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_setup_logging_is_idempotent():
    first = setup_logging()
    second = setup_logging()
    assert first is second
    assert len(second.handlers) == 1


def test_setup_logging_debug_upgrades_existing_logger():
    setup_logging()
    logger = setup_logging(debug=True)
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1


def test_get_logger_configures_on_first_use():
    assert get_logger().name == LOGGER_NAME


def test_labeled_prefixes():
    """INFO|WARN|ERROR|SUMMARY の各ラベル."""
    captured = StringIO()
    logger = logging.getLogger("test_datamatch_labels")
    logger.setLevel(logging.INFO)
    for h in logger.handlers[:]:
        logger.removeHandler(h)
    handler = logging.StreamHandler(captured)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    logger.info("info message")
    logger.warning("warn message")
    logger.error("error message")
    logger.log(SUMMARY_LEVEL, "left=1 right=1")

    assert captured.getvalue().splitlines() == [
        "INFO info message",
        "WARN warn message",
        "ERROR error message",
        "SUMMARY left=1 right=1",
    ]


def test_module_loggers_reach_application_handler(capsys):
    setup_logging()
    logging.getLogger("datamatch.services.reconciler").info("child message")
    log_summary("matching=3")
    out = capsys.readouterr().out
    assert "INFO child message" in out
    assert "SUMMARY matching=3" in out


def test_reset_logging_detaches_handler():
    logger = setup_logging()
    reset_logging()
    assert logger.handlers == []
    assert logger.propagate is True

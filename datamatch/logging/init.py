from __future__ import annotations

import logging
import sys

"""Console logging for the datamatch CLI.

Every line the tool prints goes through the ``datamatch`` logger as
``<LABEL> <message>`` with LABEL one of DEBUG, INFO, WARN, ERROR or SUMMARY,
so that wrapper scripts can grep the outcome of a run. Module loggers
(``logging.getLogger(__name__)``) are children of ``datamatch`` and share its
console handler.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "get_logger",
    "log_summary",
    "reset_logging",
    "setup_logging",
]

LOGGER_NAME = "datamatch"
SUMMARY_LEVEL = 25  # INFO < SUMMARY < WARNING
_HANDLER_NAME = "datamatch-console"

LABELS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    SUMMARY_LEVEL: "SUMMARY",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "ERROR",
}


class LabeledFormatter(logging.Formatter):
    """``<LABEL> <message>``; a traceback, if any, follows on the next lines."""

    def __init__(self) -> None:
        super().__init__("%(label)s %(message)s")

    def formatMessage(self, record: logging.LogRecord) -> str:
        record.label = LABELS.get(record.levelno, record.levelname)
        return super().formatMessage(record)


def _console_handler(logger: logging.Logger) -> logging.Handler | None:
    return next((h for h in logger.handlers if h.get_name() == _HANDLER_NAME), None)


def setup_logging(debug: bool = False) -> logging.Logger:
    """Attach the labeled stdout handler to the ``datamatch`` logger.

    Safe to call more than once: the handler is only created the first time,
    and ``debug=True`` lowers the level of an already configured logger.
    """
    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    logger = logging.getLogger(LOGGER_NAME)
    if _console_handler(logger) is None:
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(LabeledFormatter())
        logger.addHandler(handler)
        logger.propagate = False  # root に流すと二重出力になる
        logger.setLevel(logging.INFO)
    if debug:
        logger.setLevel(logging.DEBUG)
    return logger


def get_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    return logger if _console_handler(logger) is not None else setup_logging()


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Detach the console handler and restore logger defaults (tests)."""
    logger = logging.getLogger(LOGGER_NAME)
    handler = _console_handler(logger)
    if handler is not None:
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)

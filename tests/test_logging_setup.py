from __future__ import annotations

import io
import logging
from collections.abc import Iterator

import pytest

from finance_ingest import logging_setup
from finance_ingest.logging_setup import configure_logging, get_logger


@pytest.fixture
def pkg_logger(monkeypatch: pytest.MonkeyPatch) -> Iterator[logging.Logger]:
    """Run with an unconfigured package logger and restore it afterwards."""

    logger = logging.getLogger("finance_ingest")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    logger.handlers = []
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    monkeypatch.delenv("FINANCE_INGEST_LOG_LEVEL", raising=False)
    yield logger
    logger.handlers, level, logger.propagate = saved
    logger.setLevel(level)


def test_level_names_and_env_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FINANCE_INGEST_LOG_LEVEL", "debug")

    assert logging_setup._parse_level(None) == logging.DEBUG
    assert logging_setup._parse_level("warning") == logging.WARNING
    assert logging_setup._parse_level("15") == 15
    assert logging_setup._parse_level(logging.ERROR) == logging.ERROR


def test_unknown_level_names_fall_back_to_info(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FINANCE_INGEST_LOG_LEVEL", "chatty")

    assert logging_setup._parse_level("loud") == logging.INFO


def test_configure_writes_to_the_given_stream_once(pkg_logger: logging.Logger) -> None:
    out = io.StringIO()

    configure_logging("info", fmt="%(levelname)s %(message)s", stream=out)
    configure_logging("debug", stream=io.StringIO())
    get_logger("finance_ingest.pipeline").info("imported bofa.csv")
    get_logger("finance_ingest.pipeline").debug("hidden")

    assert out.getvalue() == "INFO imported bofa.csv\n"
    assert len(pkg_logger.handlers) == 1
    assert pkg_logger.propagate is False


def test_default_stream_is_stderr_at_call_time(
    pkg_logger: logging.Logger, monkeypatch: pytest.MonkeyPatch
) -> None:
    swapped = io.StringIO()
    monkeypatch.setattr("sys.stderr", swapped)

    configure_logging("warning", fmt="%(message)s")
    get_logger("finance_ingest.store").warning("failed to save state")

    assert swapped.getvalue() == "failed to save state\n"


def test_unconfigured_package_logger_gets_a_null_handler(pkg_logger: logging.Logger) -> None:
    get_logger("finance_ingest.dedupe")

    assert [type(h) for h in pkg_logger.handlers] == [logging.NullHandler]

# tests/unit/core/test_logging.py
"""Tests for structlog/stdlib logging configuration."""

import json
import logging

import pytest
import structlog

from tracelog.core.logging import configure_logging


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    structlog.reset_defaults()
    sdk_logger = logging.getLogger("tracelog")
    sdk_logger.handlers = []
    sdk_logger.setLevel(logging.NOTSET)
    sdk_logger.propagate = True


def test_json_output_renders_key_value_events(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(json_output=True, level="INFO")

    structlog.get_logger("tracelog.writer.writer").warning("Flush skipped", mutex="tracelog-logs-1", timeout_seconds=30.0)

    [line] = capsys.readouterr().err.strip().splitlines()
    event = json.loads(line)
    assert event["event"] == "Flush skipped"
    assert event["level"] == "warning"
    assert event["mutex"] == "tracelog-logs-1"
    assert "timestamp" in event
    assert "_record" not in event


def test_level_filters_sdk_events(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(level="WARNING")

    structlog.get_logger("tracelog.writer.uploads").info("Upload failed - will retry next flush")

    assert capsys.readouterr().err == ""


def test_transport_loggers_never_below_warning() -> None:
    configure_logging(level="DEBUG")

    assert logging.getLogger("tracelog").level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING


def test_reconfigure_replaces_handler() -> None:
    configure_logging()
    configure_logging(json_output=True)
    assert len(logging.getLogger("tracelog").handlers) == 1

"""Tests for API startup helpers and the log record context."""
import logging
from unittest.mock import MagicMock, patch
import pytest
from schemasync.core.logging import ContextFormatter
from schemasync.main import wait_for_database


def test_wait_for_database_retries_until_connected(caplog):
    caplog.set_level(logging.INFO, logger="schemasync.main")
    engine = MagicMock()
    engine.connect.side_effect = [ConnectionError("connection refused"), MagicMock()]

    with patch("schemasync.main.engine", engine), patch("schemasync.main.time.sleep") as sleep:
        wait_for_database(max_retries=3, retry_delay=0.5)

    sleep.assert_called_once_with(0.5)
    messages = [r.getMessage() for r in caplog.records]
    assert "Database not ready, retrying in 0.5 seconds (attempt 1/3): connection refused" in messages
    assert "Database connection successful" in messages
    assert {(r.run_id, r.phase) for r in caplog.records if r.name == "schemasync.main"} == {("-", "-")}


def test_wait_for_database_gives_up(caplog):
    caplog.set_level(logging.INFO, logger="schemasync.main")
    engine = MagicMock()
    engine.connect.side_effect = ConnectionError("connection refused")

    with patch("schemasync.main.engine", engine), patch("schemasync.main.time.sleep"):
        with pytest.raises(ConnectionError):
            wait_for_database(max_retries=2, retry_delay=0)

    (failure,) = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert failure.getMessage() == "Database connection failed after 2 attempts"
    assert (failure.run_id, failure.phase) == ("-", "-")


def test_formatter_fills_missing_context():
    formatter = ContextFormatter("[run_id=%(run_id)s phase=%(phase)s] %(message)s")
    record = logging.LogRecord("schemasync", logging.INFO, __file__, 1, "hello", None, None)

    assert formatter.format(record) == "[run_id=- phase=-] hello"

    record.run_id, record.phase = "abc", "BACKUP"
    assert formatter.format(record) == "[run_id=abc phase=BACKUP] hello"

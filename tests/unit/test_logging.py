"""Unit tests for structured logging setup."""

from __future__ import annotations

import io
import json
from typing import Generator

import pytest
import structlog

from flatdb.infrastructure.logging import get_logger, setup_logging


@pytest.fixture
def stream() -> Generator[io.StringIO, None, None]:
    """Provide a log stream and restore structlog defaults afterwards."""
    buffer = io.StringIO()
    yield buffer
    structlog.reset_defaults()


@pytest.mark.unit
class TestLogging:
    """Tests for setup_logging and get_logger."""

    def test_json_records(self, stream: io.StringIO) -> None:
        """JSON records carry event, level and module name."""
        setup_logging("INFO", "json", stream=stream)

        get_logger("flatdb.example", table="users.tsv").info("table_created")

        record = json.loads(stream.getvalue().splitlines()[-1])
        assert record["event"] == "table_created"
        assert record["level"] == "info"
        assert record["logger"] == "flatdb.example"
        assert record["table"] == "users.tsv"
        assert "timestamp" in record

    def test_level_filtering(self, stream: io.StringIO) -> None:
        """Records below the configured level are dropped."""
        setup_logging("WARNING", "json", stream=stream)
        logger = get_logger("flatdb.example")

        logger.info("hidden")
        logger.warning("lock_timeout")

        events = [json.loads(line)["event"] for line in stream.getvalue().splitlines()]
        assert events == ["lock_timeout"]

    def test_logger_created_before_setup(self, stream: io.StringIO) -> None:
        """Module-level loggers pick up configuration done later."""
        logger = get_logger("flatdb.early")
        setup_logging("INFO", "console", stream=stream)

        logger.info("configured_late")

        assert "configured_late" in stream.getvalue()

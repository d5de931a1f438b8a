"""Tests for structured logging."""

import json
import logging
from decimal import Decimal

from beatmarket.logging_config import JSONFormatter, get_logger, log_event, setup_logging


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_formats_record_as_json(self):
        record = logging.LogRecord(
            "beatmarket.test", logging.INFO, __file__, 10, "hello %s", ("world",), None
        )

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert data["logger"] == "beatmarket.test"

    def test_context_with_decimals(self):
        """Test that structured context with Decimal values serializes."""
        record = logging.LogRecord(
            "beatmarket.test", logging.INFO, __file__, 10, "withdrawal", (), None
        )
        record.context = {"amount": Decimal("15.00")}

        data = json.loads(JSONFormatter().format(record))

        assert data["context"] == {"amount": "15.00"}


class TestSetupLogging:
    """Tests for setup_logging() and log_event()."""

    def test_writes_json_lines(self, tmp_path):
        log_file = tmp_path / "logs" / "app.log"
        setup_logging("INFO", str(log_file), console=False)
        logger = get_logger("beatmarket.test")

        log_event(logger, logging.INFO, "Checkout completed", items=2)
        for handler in logging.getLogger().handlers:
            handler.flush()

        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        data = json.loads(line)
        assert data["message"] == "Checkout completed"
        assert data["context"] == {"items": 2}
        assert logging.getLogger("aiosqlite").level == logging.WARNING

        root = logging.getLogger()
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

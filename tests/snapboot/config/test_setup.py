import json
import logging

import pytest

from snapboot.config.setup import JsonFormatter, parse_level, setup_logging


class TestParseLevel:
    """Tests for parse_level."""

    @pytest.mark.parametrize("name,level", [
        ("debug", logging.DEBUG),
        ("INFO", logging.INFO),
        ("warn", logging.WARNING),
        ("fatal", logging.CRITICAL),
    ])
    def test_known_levels(self, name, level):
        """Test level names map to logging levels."""
        assert parse_level(name) == level

    def test_unknown_level(self):
        """Test unknown names raise ValueError."""
        with pytest.raises(ValueError):
            parse_level("verbose")


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_configures_level_and_handler(self):
        """Test the logger gets the level and a single stream handler."""
        logger = setup_logging("test-app", logging.DEBUG)
        setup_logging("test-app", logging.DEBUG)

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_file_handler(self, temp_dir):
        """Test records are written to the configured file."""
        log_file = temp_dir / "app.log"
        logger = setup_logging("test-app", logging.INFO, file_path=str(log_file))
        logger.info("hello file")
        for handler in logger.handlers:
            handler.flush()

        assert "hello file" in log_file.read_text()

    def test_json_formatter(self):
        """Test JsonFormatter renders a JSON object."""
        formatter = JsonFormatter(service="svc", env="test")
        record = logging.LogRecord("svc", logging.INFO, __file__, 1, "value %s", ("x",), None)

        payload = json.loads(formatter.format(record))

        assert payload["message"] == "value x"
        assert payload["level"] == "INFO"
        assert payload["service"] == "svc"
        assert payload["env"] == "test"

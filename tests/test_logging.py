"""Tests for logging setup."""

import logging

import pytest
import structlog
from py_terragen.utils.logging import configure_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    """Restore structlog defaults after each test."""
    yield
    structlog.reset_defaults()


class TestConfigureLogging:
    """Test configure_logging."""

    @pytest.mark.parametrize("log_format", ["console", "json"])
    def test_configures_structlog(self, log_format):
        """Test that both renderers can be selected."""
        configure_logging("DEBUG", log_format)

        assert structlog.is_configured()
        processors = structlog.get_config()["processors"]
        expected = (
            structlog.processors.JSONRenderer
            if log_format == "json"
            else structlog.dev.ConsoleRenderer
        )
        assert isinstance(processors[-1], expected)

    def test_logger_accepts_key_values(self, caplog):
        """Test that a configured logger emits key/value events."""
        configure_logging("INFO", "json")
        with caplog.at_level(logging.INFO):
            structlog.get_logger("py_terragen.test").info("Tree layer placed", tree_id="pine")

        assert "Tree layer placed" in caplog.text
        assert "pine" in caplog.text

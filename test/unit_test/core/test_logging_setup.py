"""Unit tests for logging configuration module.

Tests verify that setup_logging configures levels, formats, module loggers
and the dedicated audit log file.
"""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from actuator_ai.core.logging_config import (
    AUDIT_LOGGER_NAME,
    DETAILED_FORMAT,
    JSON_FORMAT,
    MODULE_LOG_LEVELS,
    SIMPLE_FORMAT,
    get_audit_logger,
    get_logger,
    setup_logging,
)


def _console_handler() -> logging.Handler:
    root_logger = logging.getLogger()
    handler = next(
        (h for h in root_logger.handlers if type(h) is logging.StreamHandler),
        None,
    )
    assert handler is not None
    return handler


class TestSetupLoggingLogLevels:
    """Test setup_logging with different log levels."""

    @pytest.mark.parametrize(
        "log_level,expected_level",
        [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARNING", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("debug", logging.DEBUG),
        ],
    )
    def test_setup_logging_with_different_levels(self, log_level, expected_level):
        setup_logging(log_level=log_level, enable_file=False)

        assert _console_handler().level == expected_level
        assert logging.getLogger().level == logging.DEBUG


class TestSetupLoggingFormats:
    """Test setup_logging with different log formats."""

    @pytest.mark.parametrize(
        "log_format,expected_format",
        [
            ("simple", SIMPLE_FORMAT),
            ("detailed", DETAILED_FORMAT),
            ("json", JSON_FORMAT),
            ("unknown", DETAILED_FORMAT),
        ],
    )
    def test_setup_logging_with_different_formats(self, log_format, expected_format):
        setup_logging(log_format=log_format, enable_file=False)

        assert _console_handler().formatter._fmt == expected_format


class TestModuleLevels:
    def test_module_levels_are_applied(self):
        setup_logging(log_level="INFO", enable_file=False)

        for module_name, module_level in MODULE_LOG_LEVELS.items():
            assert logging.getLogger(module_name).level == logging.getLevelName(module_level)

    def test_noisy_libraries_are_quieted(self):
        assert MODULE_LOG_LEVELS["httpx"] == "WARNING"
        assert MODULE_LOG_LEVELS["sqlalchemy.engine"] == "WARNING"
        assert MODULE_LOG_LEVELS[AUDIT_LOGGER_NAME] == "INFO"

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(enable_file=False)
        setup_logging(enable_file=False)

        assert len(logging.getLogger().handlers) == 1


class TestFileLogging:
    def test_file_logging_writes_application_and_audit_logs(self, tmp_path: Path):
        config = {
            "log_level": "INFO",
            "log_format": "simple",
            "log_file_dir": str(tmp_path / "logs"),
            "enable_file_logging": True,
        }
        with patch("actuator_ai.core.logging_config._get_logging_config", return_value=config):
            setup_logging()

        try:
            get_audit_logger().info("ACTION_EXECUTE {}")
            for handler in logging.getLogger().handlers + get_audit_logger().handlers:
                handler.flush()

            assert (tmp_path / "logs" / "actuator_ai.log").exists()
            audit_text = (tmp_path / "logs" / "audit.log").read_text()
            assert "ACTION_EXECUTE" in audit_text
            assert '"logger": "actuator_ai.audit"' in audit_text
        finally:
            setup_logging(enable_file=False)

    def test_disabling_file_logging_removes_audit_handler(self):
        setup_logging(enable_file=False)
        assert get_audit_logger().handlers == []


class TestGetLogger:
    def test_get_logger_returns_named_logger(self):
        assert get_logger("actuator_ai.agent_core.pipeline").name == "actuator_ai.agent_core.pipeline"
        assert get_audit_logger().name == AUDIT_LOGGER_NAME

"""Unit tests for logging configuration module.

Tests verify that setup_logging honours level, format and file options and
that per-module levels are applied.
"""

import logging
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from gclub.core.logging_config import (
    DETAILED_FORMAT,
    JSON_FORMAT,
    MODULE_LOG_LEVELS,
    SIMPLE_FORMAT,
    get_logger,
    setup_logging,
)


def _console_handler() -> logging.Handler:
    return next(
        h
        for h in logging.getLogger().handlers
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
    )


class TestSetupLoggingLogLevels:
    """Test setup_logging with different log levels."""

    @pytest.mark.parametrize(
        "log_level,expected_level",
        [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARNING", logging.WARNING),
            ("error", logging.ERROR),
        ],
    )
    def test_console_level(self, log_level, expected_level):
        setup_logging(log_level=log_level, enable_file=False)

        assert _console_handler().level == expected_level

    def test_root_logger_level_is_debug(self):
        setup_logging(log_level="ERROR", enable_file=False)

        assert logging.getLogger().level == logging.DEBUG


class TestSetupLoggingFormats:
    """Test setup_logging with different log formats."""

    @pytest.mark.parametrize(
        "log_format,expected_format",
        [("simple", SIMPLE_FORMAT), ("detailed", DETAILED_FORMAT), ("json", JSON_FORMAT), ("unknown", DETAILED_FORMAT)],
    )
    def test_formats(self, log_format, expected_format):
        setup_logging(log_format=log_format, enable_file=False)

        assert _console_handler().formatter._fmt == expected_format


class TestSetupLoggingFileHandling:
    """Test file handler creation."""

    def test_file_handler_created_when_enabled(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            log_dir = Path(tmpdir) / "nested"
            with patch("gclub.core.logging_config.LOG_FILE_DIR", str(log_dir)), patch(
                "gclub.core.logging_config.ENABLE_FILE_LOGGING", True
            ):
                setup_logging(enable_file=True)

            file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]
            assert len(file_handlers) == 1
            assert file_handlers[0].level == logging.DEBUG
            assert (log_dir / "gclub.log").exists()
            for handler in file_handlers:
                handler.close()
                logging.getLogger().removeHandler(handler)

    def test_no_file_handler_when_disabled(self):
        with patch("gclub.core.logging_config.ENABLE_FILE_LOGGING", True):
            setup_logging(enable_file=False)

        assert not any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)


class TestSetupLoggingHandlerManagement:
    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(enable_file=False)
        setup_logging(enable_file=False)

        assert len(logging.getLogger().handlers) == 1

    @pytest.mark.parametrize("module_name", ["gclub.server.services", "sqlalchemy.engine", "httpx"])
    def test_module_specific_levels(self, module_name):
        setup_logging(enable_file=False)

        expected = getattr(logging, MODULE_LOG_LEVELS[module_name])
        assert logging.getLogger(module_name).level == expected


class TestGetLogger:
    def test_same_name_same_instance(self):
        assert get_logger("gclub.server.services.game_mate") is get_logger("gclub.server.services.game_mate")

    def test_child_inherits_module_level(self):
        setup_logging(enable_file=False)

        logger = get_logger("gclub.server.services.maintenance.jobs")

        assert logger.getEffectiveLevel() == logging.INFO

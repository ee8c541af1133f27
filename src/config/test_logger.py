"""
Unit tests for logger_module.py.

Tests cover:
- Logger initialization and handler attachment
- Optional file handler
- Idempotency of initialization
- Convenience logging methods
"""

import logging
from unittest.mock import patch, MagicMock
import pytest

import src.config.logger_module
from .logger_module import initialize_logger, log_debug, log_info, log_warning, log_error


@pytest.fixture(autouse=True)
def reset_logger():
    """Reset root logger state around each test."""
    root_logger = logging.getLogger()
    saved_handlers = list(root_logger.handlers)
    saved_level = root_logger.level
    src.config.logger_module._logger_initialized = False

    yield

    for handler in root_logger.handlers:
        if isinstance(handler, logging.FileHandler):
            handler.close()
    root_logger.handlers[:] = saved_handlers
    root_logger.setLevel(saved_level)
    src.config.logger_module._logger_initialized = False


def _flush():
    for handler in logging.getLogger().handlers:
        handler.flush()


class TestInitializeLogger:
    """Test cases for initialize_logger function."""

    def test_console_and_file_handlers(self, tmp_path):
        log_file = tmp_path / "logs" / "punks_api.log"

        initialize_logger(log_file=str(log_file))

        root_logger = logging.getLogger()
        assert root_logger.level == logging.INFO
        assert len(root_logger.handlers) == 2

        file_handlers = [h for h in root_logger.handlers if isinstance(h, logging.FileHandler)]
        console_handlers = [h for h in root_logger.handlers if not isinstance(h, logging.FileHandler)]
        assert file_handlers[0].level == logging.DEBUG
        assert console_handlers[0].level == logging.INFO
        assert log_file.exists()

    def test_file_handler_disabled(self):
        initialize_logger(log_file="")

        root_logger = logging.getLogger()
        assert len(root_logger.handlers) == 1
        assert not isinstance(root_logger.handlers[0], logging.FileHandler)

    def test_invalid_level_defaults_to_info(self, tmp_path):
        initialize_logger(log_level="LOUD", log_file=str(tmp_path / "app.log"))
        assert logging.getLogger().level == logging.INFO

    def test_idempotency(self, tmp_path):
        """Repeated calls do not duplicate handlers or change the level."""
        log_file = tmp_path / "app.log"

        initialize_logger(log_file=str(log_file))
        initialize_logger(log_file=str(log_file))
        initialize_logger(log_level="DEBUG", log_file=str(log_file))

        root_logger = logging.getLogger()
        assert len(root_logger.handlers) == 2
        assert root_logger.level == logging.INFO


class TestConvenienceMethods:
    """Test cases for the log_* helpers."""

    def test_messages_written_to_file(self, tmp_path):
        log_file = tmp_path / "app.log"
        initialize_logger(log_level="DEBUG", log_file=str(log_file))

        log_debug("Rate limited. Waiting 100ms")
        log_info("Found image URL for punk 42")
        log_warning("Using fallback image for punk 7")
        log_error("Failed to write mapping file")
        _flush()

        content = log_file.read_text()
        assert "DEBUG" in content and "Rate limited" in content
        assert "INFO" in content and "punk 42" in content
        assert "WARNING" in content and "fallback image" in content
        assert "ERROR" in content and "mapping file" in content

    def test_level_respected(self, tmp_path):
        log_file = tmp_path / "app.log"
        initialize_logger(log_level="WARNING", log_file=str(log_file))

        log_info("quiet message")
        log_warning("loud message")
        _flush()

        content = log_file.read_text()
        assert "quiet message" not in content
        assert "loud message" in content

    @patch("src.config.logger_module.logging.getLogger")
    def test_helpers_call_correct_levels(self, mock_get_logger):
        mock_logger = MagicMock()
        mock_get_logger.return_value = mock_logger

        log_debug("d")
        log_info("i")
        log_warning("w")
        log_error("e")

        mock_logger.debug.assert_called_once_with("d")
        mock_logger.info.assert_called_once_with("i")
        mock_logger.warning.assert_called_once_with("w")
        mock_logger.error.assert_called_once_with("e")

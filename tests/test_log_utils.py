import logging
import os
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

import pytest
from rich.logging import RichHandler

from bepfetch import log_utils

pytestmark = pytest.mark.unit


def _rich_handlers():
    return [h for h in log_utils.logger.handlers if isinstance(h, RichHandler)]


class TestLogUtils:
    """Test suite for log_utils module."""

    def setup_method(self):
        """Reset logger state before each test."""
        for handler in log_utils.logger.handlers[:]:
            log_utils.logger.removeHandler(handler)
            handler.close()

        log_utils._file_handler = None
        log_utils._initialize_logger()

    def teardown_method(self):
        if log_utils._file_handler is not None:
            log_utils.logger.removeHandler(log_utils._file_handler)
            log_utils._file_handler.close()
            log_utils._file_handler = None

    def test_logger_initialization(self):
        assert log_utils.logger.name == "bepfetch"
        assert not log_utils.logger.propagate
        assert len(_rich_handlers()) == 1

    def test_logger_initialization_with_env_var(self):
        with patch.dict(os.environ, {"BEPFETCH_LOG_LEVEL": "DEBUG"}):
            log_utils._initialize_logger()
            assert log_utils.logger.level == logging.DEBUG
            assert _rich_handlers()[0].level == logging.DEBUG

    def test_logger_initialization_with_invalid_env_var(self):
        with patch.dict(os.environ, {"BEPFETCH_LOG_LEVEL": "INVALID"}):
            log_utils._initialize_logger()
            assert log_utils.logger.level == logging.INFO

    def test_reinitialization_does_not_duplicate_handlers(self):
        log_utils._initialize_logger()
        log_utils._initialize_logger()
        assert len(_rich_handlers()) == 1

    def test_set_log_level_valid(self):
        log_utils.set_log_level("DEBUG")
        assert log_utils.logger.level == logging.DEBUG

        log_utils.set_log_level("warning")
        assert log_utils.logger.level == logging.WARNING
        assert _rich_handlers()[0].level == logging.WARNING

    def test_set_log_level_invalid(self):
        original_level = log_utils.logger.level
        log_utils.set_log_level("INVALID_LEVEL")
        assert log_utils.logger.level == original_level

    def test_rich_handler_gets_message_only_format(self):
        log_utils.set_log_level("DEBUG")
        assert _rich_handlers()[0].formatter._fmt == "%(message)s"

    def test_add_file_logging(self, tmp_path):
        log_utils.add_file_logging(tmp_path / "logs", "DEBUG")

        file_handlers = [
            h for h in log_utils.logger.handlers if isinstance(h, RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert file_handlers[0].level == logging.DEBUG
        assert "%(name)s" in file_handlers[0].formatter._fmt
        assert (tmp_path / "logs" / "bepfetch.log").exists()

    def test_add_file_logging_replaces_previous_handler(self, tmp_path):
        log_utils.add_file_logging(tmp_path / "first")
        log_utils.add_file_logging(tmp_path / "second")

        file_handlers = [
            h for h in log_utils.logger.handlers if isinstance(h, RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert file_handlers[0].baseFilename == str(tmp_path / "second" / "bepfetch.log")

    def test_add_file_logging_invalid_level_defaults_to_info(self, tmp_path):
        log_utils.add_file_logging(tmp_path, "NOPE")
        assert log_utils._file_handler.level == logging.INFO
        assert "%(name)s" not in log_utils._file_handler.formatter._fmt

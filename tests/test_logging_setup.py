"""
Tests for logging setup.

This module tests the loguru sink configuration for console and file
output.
"""

import sys
from pathlib import Path
from unittest.mock import Mock, patch

from upload_queue.infrastructure.config.models import LoggingConfig
from upload_queue.infrastructure.logging.setup import CONSOLE_FORMAT, FILE_FORMAT, setup_logging


class TestSetupLogging:
    """Test cases for setup_logging."""

    @patch('upload_queue.infrastructure.logging.setup.logger')
    def test_console_only(self, mock_logger: Mock) -> None:
        mock_logger.add.return_value = 7

        sink_ids = setup_logging(LoggingConfig(level="info"))

        mock_logger.remove.assert_called_once_with()
        mock_logger.add.assert_called_once()
        args, kwargs = mock_logger.add.call_args
        assert args[0] is sys.stderr
        assert kwargs["level"] == "INFO"
        assert kwargs["format"] == CONSOLE_FORMAT
        assert kwargs["diagnose"] is False
        assert sink_ids == [7]

    @patch('upload_queue.infrastructure.logging.setup.logger')
    def test_debug_enables_diagnose(self, mock_logger: Mock) -> None:
        setup_logging(LoggingConfig(level="DEBUG"))

        _, kwargs = mock_logger.add.call_args
        assert kwargs["diagnose"] is True

    @patch('upload_queue.infrastructure.logging.setup.logger')
    def test_console_and_file(self, mock_logger: Mock, tmp_path: Path) -> None:
        log_dir = tmp_path / "nested" / "logs"
        config = LoggingConfig(log_directory=str(log_dir), file_enabled=True,
                               max_file_size="1 MB", backup_count=2)

        setup_logging(config)

        assert log_dir.is_dir()
        assert mock_logger.add.call_count == 2
        args, kwargs = mock_logger.add.call_args_list[1]
        assert args[0] == log_dir / "app.log"
        assert kwargs["format"] == FILE_FORMAT
        assert kwargs["rotation"] == "1 MB"
        assert kwargs["retention"] == 2
        assert kwargs["compression"] == "zip"

    @patch('upload_queue.infrastructure.logging.setup.logger')
    def test_all_sinks_disabled(self, mock_logger: Mock) -> None:
        sink_ids = setup_logging(LoggingConfig(console_enabled=False))

        mock_logger.remove.assert_called_once_with()
        mock_logger.add.assert_not_called()
        assert sink_ids == []

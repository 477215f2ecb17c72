"""
Logging setup and configuration utilities.

This module provides centralized logging configuration using loguru
with support for console output and rotating log files.
"""

import sys
from pathlib import Path
from typing import List

from loguru import logger

from ..config.models import LoggingConfig

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{name}:{function}:{line} - {message}"
)


def setup_logging(config: LoggingConfig) -> List[int]:
    """
    Setup application logging with the given configuration.

    Args:
        config: Logging configuration

    Returns:
        IDs of the installed loguru sinks
    """
    logger.remove()
    level = config.level.upper()
    sink_ids = []

    if config.console_enabled:
        sink_ids.append(logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=level,
            colorize=True,
            backtrace=True,
            diagnose=level == "DEBUG"
        ))

    if config.file_enabled:
        log_dir = Path(config.log_directory)
        log_dir.mkdir(parents=True, exist_ok=True)

        sink_ids.append(logger.add(
            log_dir / "app.log",
            format=FILE_FORMAT,
            level=level,
            rotation=config.max_file_size,
            retention=config.backup_count,
            compression="zip",
            backtrace=True,
            diagnose=False
        ))

    return sink_ids

"""
Configuration models and data structures.

This module defines the configuration models used by the command line
client, providing type safety and validation for configuration values.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

from ...core.domain.config import QueueConfig

_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


@dataclass
class TransportConfig:
    """HTTP transport configuration."""
    chunk_size: int = 65536
    headers: Dict[str, str] = field(default_factory=dict)
    verify_ssl: bool = True
    connection_limit: int = 0


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_directory: str = "logs"
    max_file_size: str = "10 MB"
    backup_count: int = 5
    console_enabled: bool = True
    file_enabled: bool = False


@dataclass
class ApplicationConfig:
    """Main application configuration."""

    # Basic application settings
    name: str = "Upload Queue"
    version: str = "0.1.0"
    debug: bool = False

    # Component configurations
    queue: QueueConfig = field(default_factory=QueueConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    config_file_path: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate_transport()
        self._validate_logging()

    def _validate_transport(self) -> None:
        if self.transport.chunk_size <= 0:
            raise ValueError(
                f"Transport chunk size must be positive, got {self.transport.chunk_size}")
        if self.transport.connection_limit < 0:
            raise ValueError(
                f"Transport connection limit cannot be negative, got {self.transport.connection_limit}")

    def _validate_logging(self) -> None:
        if self.logging.level.upper() not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.logging.level}")
        if self.logging.backup_count < 0:
            raise ValueError(
                f"Log backup count cannot be negative, got {self.logging.backup_count}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        result = asdict(self)
        result.pop('config_file_path', None)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApplicationConfig':
        """Create configuration from dictionary."""
        try:
            queue_config = QueueConfig(**(data.get('queue') or {}))
            transport_config = TransportConfig(**(data.get('transport') or {}))
            logging_config = LoggingConfig(**(data.get('logging') or {}))
        except TypeError as e:
            raise ValueError(f"Invalid configuration key: {e}")

        return cls(
            name=data.get('name', 'Upload Queue'),
            version=data.get('version', '0.1.0'),
            debug=data.get('debug', False),
            queue=queue_config,
            transport=transport_config,
            logging=logging_config,
            config_file_path=data.get('config_file_path')
        )

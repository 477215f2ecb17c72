"""
Tests for configuration models.

This module tests the application configuration dataclasses including
validation and dictionary conversion.
"""

import pytest

from upload_queue.core.domain.config import QueueConfig
from upload_queue.infrastructure.config.models import (
    ApplicationConfig, LoggingConfig, TransportConfig
)


class TestApplicationConfig:
    """Test cases for ApplicationConfig."""

    def test_defaults(self) -> None:
        config = ApplicationConfig()

        assert config.name == "Upload Queue"
        assert config.debug is False
        assert isinstance(config.queue, QueueConfig)
        assert config.transport.chunk_size == 65536
        assert config.transport.verify_ssl is True
        assert config.logging.level == "INFO"
        assert config.logging.file_enabled is False
        assert config.config_file_path is None

    def test_invalid_chunk_size(self) -> None:
        with pytest.raises(ValueError, match="chunk size"):
            ApplicationConfig(transport=TransportConfig(chunk_size=0))

    def test_invalid_connection_limit(self) -> None:
        with pytest.raises(ValueError, match="connection limit"):
            ApplicationConfig(transport=TransportConfig(connection_limit=-1))

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            ApplicationConfig(logging=LoggingConfig(level="VERBOSE"))

    def test_log_level_case_insensitive(self) -> None:
        config = ApplicationConfig(logging=LoggingConfig(level="debug"))

        assert config.logging.level == "debug"

    def test_invalid_backup_count(self) -> None:
        with pytest.raises(ValueError, match="backup count"):
            ApplicationConfig(logging=LoggingConfig(backup_count=-1))

    def test_to_dict(self) -> None:
        config = ApplicationConfig(config_file_path="upload-queue.yaml")

        data = config.to_dict()

        assert "config_file_path" not in data
        assert data["queue"]["post_url"] == "upload.php"
        assert data["queue"]["accepted_mime_types"] == []
        assert data["transport"]["chunk_size"] == 65536
        assert data["logging"]["level"] == "INFO"

    def test_from_dict(self) -> None:
        config = ApplicationConfig.from_dict({
            "name": "Uploader",
            "debug": True,
            "queue": {"post_url": "https://example.com/up", "upload_concurrency": 4},
            "transport": {"chunk_size": 1024},
            "logging": {"level": "WARNING"},
        })

        assert config.name == "Uploader"
        assert config.debug is True
        assert config.queue.post_url == "https://example.com/up"
        assert config.queue.upload_concurrency == 4
        assert config.queue.field_name == "filesinput"
        assert config.transport.chunk_size == 1024
        assert config.logging.level == "WARNING"

    def test_from_dict_round_trip(self) -> None:
        original = ApplicationConfig(queue=QueueConfig(accepted_mime_types=["image/.*"]))

        restored = ApplicationConfig.from_dict(original.to_dict())

        assert restored == original

    def test_from_dict_unknown_key(self) -> None:
        with pytest.raises(ValueError, match="Invalid configuration key"):
            ApplicationConfig.from_dict({"queue": {"max_files": 3}})

    def test_from_dict_invalid_queue_value(self) -> None:
        with pytest.raises(ValueError, match="upload_concurrency"):
            ApplicationConfig.from_dict({"queue": {"upload_concurrency": 0}})

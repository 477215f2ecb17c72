"""
Tests for the domain models.

This module tests events, file descriptors, progress and response value
objects, capabilities and the queue policy configuration.
"""

import pytest

from upload_queue.core.domain.config import QueueConfig
from upload_queue.core.domain.environment import Capabilities
from upload_queue.core.domain.events import Event, EventPriority, QueueEvent, TransferEvent
from upload_queue.core.domain.files import (
    FileDescriptor, FileError, ProgressEvent, TransportResponse
)


class TestEventPriority:
    """Test cases for EventPriority enum."""

    def test_priority_values(self):
        """Test that priority values are correct."""
        assert EventPriority.LOW.value == 1
        assert EventPriority.NORMAL.value == 2
        assert EventPriority.HIGH.value == 3
        assert EventPriority.CRITICAL.value == 4

    def test_priority_ordering(self):
        """Test that priorities can be compared."""
        assert EventPriority.LOW < EventPriority.NORMAL < EventPriority.HIGH < EventPriority.CRITICAL


class TestEvent:
    """Test cases for Event domain model."""

    def test_event_creation_minimal(self):
        event = Event(name=QueueEvent.INIT.value)

        assert event.name == "queue.init"
        assert event.data is None
        assert event.source is None
        assert isinstance(event.timestamp, float)
        assert len(event.event_id) > 0

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError, match="Event name cannot be empty"):
            Event(name="")

    def test_event_is_immutable(self):
        event = Event(name="queue.add")

        with pytest.raises(AttributeError):
            event.name = "queue.remove"  # type: ignore[misc]

    def test_event_names_are_distinct(self):
        names = [e.value for e in QueueEvent] + [e.value for e in TransferEvent]
        assert len(names) == len(set(names))


class TestFileModels:
    """Test cases for file value objects."""

    def test_file_error_messages(self):
        assert FileError.QUEUE_FULL.message == "The upload queue is full"
        assert FileError.FILE_TOO_LARGE.message == "The file is too large"
        assert FileError.UNACCEPTED_MIME_TYPE.message == "That type of file is not accepted"
        assert FileError.ZERO_BYTE_FILE.message == "File is empty, or is a folder"

    def test_descriptor_from_bytes(self):
        descriptor = FileDescriptor.from_bytes("notes.txt", b"hello", "text/plain")

        assert descriptor.size == 5
        assert descriptor.source == b"hello"
        assert descriptor.mime_type == "text/plain"

    def test_descriptor_negative_size(self):
        with pytest.raises(ValueError):
            FileDescriptor(name="bad", size=-1, mime_type="text/plain")

    def test_progress_event(self):
        progress = ProgressEvent(loaded=25, total=100)

        assert progress.length_computable
        assert progress.percentage == 25.0

    def test_progress_event_without_total(self):
        progress = ProgressEvent(loaded=25)

        assert not progress.length_computable
        assert progress.percentage == 100.0

    @pytest.mark.parametrize("status,ok", [
        (200, True), (201, True), (299, True), (304, True),
        (301, False), (404, False), (500, False),
    ])
    def test_response_ok(self, status, ok):
        assert TransportResponse(status=status).ok is ok

    def test_response_json(self):
        response = TransportResponse(status=200, body='{"id": 3}')

        assert response.json() == {"id": 3}


class TestCapabilities:
    """Test cases for the capability record."""

    def test_defaults_fully_supported(self):
        capabilities = Capabilities()

        assert capabilities.fully_supported
        assert capabilities.missing == []

    def test_missing_capabilities(self):
        capabilities = Capabilities(byte_streams=False, async_upload_progress=False)

        assert not capabilities.fully_supported
        assert capabilities.missing == ["byte_streams", "async_upload_progress"]


class TestQueueConfig:
    """Test cases for queue policy validation."""

    def test_defaults(self):
        config = QueueConfig()

        assert config.maximum_queue_size == 10
        assert config.maximum_file_size == 1048576
        assert config.maximum_bytes_in_queue is None
        assert config.upload_concurrency == 2
        assert config.accepted_mime_types == []
        assert config.post_url == "upload.php"
        assert config.field_name == "filesinput"
        assert config.extra_fields is None
        assert config.silence_zero_byte_errors is True
        assert config.autostart is False

    @pytest.mark.parametrize("overrides", [
        {"maximum_queue_size": -1},
        {"maximum_file_size": 0},
        {"maximum_bytes_in_queue": 0},
        {"upload_concurrency": 0},
        {"post_url": ""},
        {"field_name": ""},
        {"accepted_mime_types": ["image/("]},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            QueueConfig(**overrides)

    def test_mime_type_pattern(self):
        config = QueueConfig(accepted_mime_types=["image/png", "text/.*"])

        pattern = config.mime_type_pattern()

        assert pattern.search("image/png")
        assert pattern.search("text/csv")
        assert not pattern.search("application/pdf")

    def test_no_mime_pattern_when_unrestricted(self):
        assert QueueConfig().mime_type_pattern() is None

    def test_accept_attribute(self):
        config = QueueConfig(accepted_mime_types=["image/png", "image/jpeg"])

        assert config.accept_attribute() == "image/png,image/jpeg"

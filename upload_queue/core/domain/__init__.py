"""
Domain models for the upload queue.

Pure value objects with no dependency on the transport or the scheduler.
"""

from .events import Event, EventPriority, QueueEvent, TransferEvent
from .config import QueueConfig
from .environment import Capabilities
from .files import (
    ByteSource, FileDescriptor, FileError, ProgressEvent,
    TransferState, TransportResponse
)

__all__ = [
    "QueueConfig",
    "Capabilities",
    "Event",
    "EventPriority",
    "QueueEvent",
    "TransferEvent",
    "ByteSource",
    "FileDescriptor",
    "FileError",
    "ProgressEvent",
    "TransferState",
    "TransportResponse",
]

"""
Upload Queue - client-side file upload queue with admission control and
bounded-concurrency scheduling.

Files are validated against size, type, count and byte-budget limits, then
posted to an HTTP endpoint with at most N transfers in flight at a time.
"""

__version__ = "0.1.0"

# Public API exports
from .core.domain import (
    Capabilities, Event, EventPriority, FileDescriptor, FileError,
    ProgressEvent, QueueConfig, QueueEvent, TransferEvent, TransferState,
    TransportResponse
)
from .core.exceptions import TransferStateError, UnsupportedEnvironmentError, UploadQueueError
from .core.interfaces import ITransport, ITransportHandle, ITransportListener, TransportRequest
from .core.services import Transfer, UploadQueue

__all__ = [
    "Capabilities",
    "Event",
    "EventPriority",
    "FileDescriptor",
    "FileError",
    "ProgressEvent",
    "QueueConfig",
    "QueueEvent",
    "TransferEvent",
    "TransferState",
    "TransportResponse",
    "TransferStateError",
    "UnsupportedEnvironmentError",
    "UploadQueueError",
    "ITransport",
    "ITransportHandle",
    "ITransportListener",
    "TransportRequest",
    "Transfer",
    "UploadQueue",
]

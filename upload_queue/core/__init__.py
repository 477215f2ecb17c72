"""
Core module containing the admission and scheduling logic, domain models
and service interfaces.

Everything here is independent of the network transport and of how files
are selected.
"""

from .domain import (
    Capabilities, Event, EventPriority, FileDescriptor, FileError,
    ProgressEvent, QueueConfig, QueueEvent, TransferEvent, TransferState,
    TransportResponse
)
from .exceptions import TransferStateError, UnsupportedEnvironmentError, UploadQueueError
from .interfaces import ITransfer, ITransport, ITransportHandle, ITransportListener, IUploadQueue, TransportRequest
from .services import EventEmitter, Transfer, UploadQueue

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
    "ITransfer",
    "ITransport",
    "ITransportHandle",
    "ITransportListener",
    "IUploadQueue",
    "TransportRequest",
    "EventEmitter",
    "Transfer",
    "UploadQueue",
]

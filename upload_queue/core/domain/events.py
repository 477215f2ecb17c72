"""
Event domain models for queue and transfer notifications.

Every notification the queue or a transfer emits is delivered to listeners
as an immutable :class:`Event` record naming what happened.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Optional


class EventPriority(IntEnum):
    """Listener priority levels; higher priority listeners are called first."""
    LOW = 1
    NORMAL = 2
    HIGH = 3
    CRITICAL = 4


class QueueEvent(str, Enum):
    """Notifications emitted by an upload queue."""
    INIT = "queue.init"
    QUEUE_ADD = "queue.add"
    QUEUE_CHANGE = "queue.change"
    QUEUE_REMOVE = "queue.remove"
    UNACCEPTED_FILES = "queue.unaccepted_files"
    UPLOAD_START = "upload.start"
    UPLOAD_FINISH = "upload.finish"


class TransferEvent(str, Enum):
    """Lifecycle hooks fired by a single transfer."""
    BEGIN_SEND = "transfer.begin_send"
    PROGRESS = "transfer.progress"
    END_SEND = "transfer.end_send"
    SEND_FAIL = "transfer.send_fail"


@dataclass(frozen=True)
class Event:
    """
    Immutable record of something that happened in a queue or transfer.

    Listeners receive one of these for every notification they are
    subscribed to.
    """

    name: str
    """Event name, one of the :class:`QueueEvent` or :class:`TransferEvent` values."""

    data: Any = None
    """Event payload: a transfer, a list of transfers or a dict of details."""

    timestamp: float = field(default_factory=time.time)
    """Unix timestamp when event was created."""

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    """Unique event identifier."""

    source: Optional[Any] = None
    """The queue or transfer that emitted the event."""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Event name cannot be empty")

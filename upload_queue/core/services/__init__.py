"""
Core services: the upload queue, its transfers and the event emitter
that delivers their notifications.
"""

from .event_bus import EventEmitter, EventSubscription
from .queue import UploadQueue
from .transfer import Transfer

__all__ = [
    "EventEmitter",
    "EventSubscription",
    "UploadQueue",
    "Transfer",
]

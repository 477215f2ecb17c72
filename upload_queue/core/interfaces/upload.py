"""
Upload queue interfaces.

This module defines the contracts for the upload queue and the transfers
it schedules.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..domain.events import Event, EventPriority, QueueEvent
from ..domain.files import FileDescriptor, FileError, TransferState

Listener = Callable[[Event], Any]


class ITransfer(ABC):
    """Interface for one file's upload unit."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def size(self) -> int:
        pass

    @property
    @abstractmethod
    def mime_type(self) -> str:
        pass

    @property
    @abstractmethod
    def state(self) -> TransferState:
        pass

    @property
    @abstractmethod
    def error(self) -> Optional[FileError]:
        pass

    @abstractmethod
    def send(self, endpoint: str, field_name: str,
             extra_fields: Optional[Dict[str, Any]] = None) -> None:
        """
        Start uploading this file. Called by the owning queue.

        Args:
            endpoint: URL to post the form to
            field_name: Form field name for the file
            extra_fields: Additional form fields to post
        """
        pass

    @abstractmethod
    def cancel(self) -> bool:
        """Abort the in-flight request, if there is one."""
        pass

    @abstractmethod
    def remove_from_queue(self) -> bool:
        """Remove this transfer from its queue while it is still pending."""
        pass


class IUploadQueue(ABC):
    """
    Interface for the upload queue.

    Admits files against policy and uploads them with bounded concurrency.
    """

    @property
    @abstractmethod
    def length(self) -> int:
        """Number of pending transfers."""
        pass

    @property
    @abstractmethod
    def total_bytes_in_queue(self) -> int:
        """Sum of the sizes of pending transfers."""
        pass

    @property
    @abstractmethod
    def in_flight_count(self) -> int:
        """Number of occupied upload slots."""
        pass

    @abstractmethod
    def submit(self, raw_files: Iterable[FileDescriptor]) -> List[ITransfer]:
        """
        Validate files and append the accepted ones to the queue.

        Args:
            raw_files: Files in selection order

        Returns:
            Accepted transfers, in queue order
        """
        pass

    @abstractmethod
    def remove(self, transfer: ITransfer) -> bool:
        """Remove a pending transfer by identity."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Drop every pending transfer."""
        pass

    @abstractmethod
    def begin_upload(self) -> None:
        """Start uploading pending transfers unless an upload is running."""
        pass

    @abstractmethod
    def is_upload_in_progress(self) -> bool:
        pass

    @abstractmethod
    def on(self, event: QueueEvent, handler: Listener,
           priority: EventPriority = EventPriority.NORMAL) -> str:
        """
        Register a listener for a queue notification.

        Returns:
            Subscription ID for :meth:`off`
        """
        pass

    @abstractmethod
    def off(self, subscription_id: str) -> bool:
        """Remove a listener registered with :meth:`on`."""
        pass

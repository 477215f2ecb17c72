"""
Transport interfaces for sending a single file to a remote endpoint.

A transport starts a request and reports back through a listener. Calls on
the listener may happen synchronously inside :meth:`ITransport.start` (test
doubles do this) or later on the event loop (network transports).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..domain.files import ByteSource, ProgressEvent, TransportResponse


@dataclass
class TransportRequest:
    """A multipart form upload of one file plus extra form fields."""
    url: str
    field_name: str
    filename: str
    content_type: str
    source: ByteSource
    size: int
    extra_fields: Dict[str, Any] = field(default_factory=dict)


class ITransportListener(ABC):
    """Receives the outcome of a request started by a transport."""

    @abstractmethod
    def on_progress(self, event: ProgressEvent) -> None:
        """Called for every upload progress event."""
        pass

    @abstractmethod
    def on_success(self, response: TransportResponse) -> None:
        """Called once when the endpoint answered with a success status."""
        pass

    @abstractmethod
    def on_failure(self, response: Optional[TransportResponse], status: str) -> None:
        """
        Called once when the request failed or was aborted.

        Args:
            response: Response if the endpoint answered, None otherwise
            status: ``"error"`` for failures, ``"abort"`` for aborted requests
        """
        pass


class ITransportHandle(ABC):
    """Handle on an outstanding request."""

    @abstractmethod
    def abort(self) -> None:
        """
        Abort the request.

        The listener's ``on_failure`` is still invoked with status ``"abort"``.
        Aborting a finished request does nothing.
        """
        pass


class ITransport(ABC):
    """Interface for upload transports."""

    @abstractmethod
    def start(self, request: TransportRequest,
              listener: ITransportListener) -> ITransportHandle:
        """
        Start sending a request without blocking.

        Args:
            request: What to send and where
            listener: Receives progress and the final outcome

        Returns:
            Handle that can abort the request
        """
        pass

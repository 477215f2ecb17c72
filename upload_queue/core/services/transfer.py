"""
Transfer implementation: one file's journey through an upload queue.

A transfer wraps a file descriptor, sends it through a transport when its
queue tells it to, reports progress and outcome to its hook listeners, and
finally hands its upload slot back to the queue.
"""

import time
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from loguru import logger

from ..domain.events import Event, EventPriority, TransferEvent
from ..domain.files import (
    ByteSource, FileDescriptor, FileError, ProgressEvent,
    TransferState, TransportResponse
)
from ..exceptions import TransferStateError
from ..interfaces.transport import (
    ITransport, ITransportHandle, ITransportListener, TransportRequest
)
from ..interfaces.upload import ITransfer
from .event_bus import EventEmitter

if TYPE_CHECKING:
    from .queue import UploadQueue

Hook = Callable[[Event], Any]

ABORT_STATUS = "abort"
ERROR_STATUS = "error"


class _TransportListener(ITransportListener):
    """Forwards transport callbacks to the owning transfer."""

    def __init__(self, transfer: 'Transfer'):
        self._transfer = transfer

    def on_progress(self, event: ProgressEvent) -> None:
        self._transfer._handle_progress(event)

    def on_success(self, response: TransportResponse) -> None:
        self._transfer._handle_success(response)

    def on_failure(self, response: Optional[TransportResponse], status: str) -> None:
        self._transfer._handle_failure(response, status)


class Transfer(ITransfer):
    """
    Upload unit for a single file.

    Transfers are created by :meth:`UploadQueue.submit` and owned by that
    queue. Size, name and mime type are fixed at creation; ``error`` can be
    set once, when admission refuses the file.

    Hook listeners receive an :class:`Event` whose ``source`` is the
    transfer:

    - ``BEGIN_SEND``: before the request is dispatched
    - ``PROGRESS``: ``data`` holds ``progress`` (:class:`ProgressEvent`)
      and ``rate`` (bytes/second since the previous progress event)
    - ``END_SEND``: ``data`` holds the ``response``
    - ``SEND_FAIL``: ``data`` holds ``response`` (may be None) and ``status``

    Whatever the outcome, the queue's done callback runs exactly once after
    the final hook.
    """

    def __init__(
        self,
        descriptor: FileDescriptor,
        queue: 'UploadQueue',
        transport: ITransport,
        done_callback: Callable[['Transfer'], None],
        clock: Callable[[], float] = time.monotonic
    ):
        self._descriptor = descriptor
        self._queue = queue
        self._transport = transport
        self._done_callback = done_callback
        self._clock = clock
        self._events = EventEmitter(source=self)
        self._listener = _TransportListener(self)

        self._state = TransferState.CREATED
        self._error: Optional[FileError] = None
        self._handle: Optional[ITransportHandle] = None
        self._response: Optional[TransportResponse] = None
        self._finished = False
        self._cancel_requested = False

        # Rate sampling
        self._bytes_sent = 0
        self._rate = 0.0
        self._last_loaded = 0
        self._last_time = 0.0
        self._started_at: Optional[float] = None
        self._finished_at: Optional[float] = None

    def __repr__(self) -> str:
        return (f"Transfer(name={self.name!r}, size={self.size}, "
                f"mime_type={self.mime_type!r}, state={self._state.value})")

    @property
    def file(self) -> ByteSource:
        """Byte source handle of the underlying file."""
        return self._descriptor.source

    @property
    def descriptor(self) -> FileDescriptor:
        return self._descriptor

    @property
    def name(self) -> str:
        return self._descriptor.name

    @property
    def size(self) -> int:
        return self._descriptor.size

    @property
    def mime_type(self) -> str:
        return self._descriptor.mime_type

    @property
    def queue(self) -> 'UploadQueue':
        return self._queue

    @property
    def state(self) -> TransferState:
        return self._state

    @property
    def error(self) -> Optional[FileError]:
        return self._error

    @error.setter
    def error(self, value: FileError) -> None:
        if self._error is not None:
            raise TransferStateError(
                f"Error already set on transfer {self.name}: {self._error.name}",
                self._state.value
            )
        self._error = value

    @property
    def response(self) -> Optional[TransportResponse]:
        return self._response

    @property
    def bytes_sent(self) -> int:
        return self._bytes_sent

    @property
    def rate(self) -> float:
        """Most recently sampled transfer rate in bytes per second."""
        return self._rate

    @property
    def elapsed(self) -> Optional[float]:
        if self._started_at is None:
            return None
        end = self._finished_at if self._finished_at is not None else self._clock()
        return end - self._started_at

    # Hook registration

    def on_begin_send(self, handler: Hook,
                      priority: EventPriority = EventPriority.NORMAL) -> str:
        return self._events.subscribe(TransferEvent.BEGIN_SEND, handler, priority)

    def on_progress(self, handler: Hook,
                    priority: EventPriority = EventPriority.NORMAL) -> str:
        return self._events.subscribe(TransferEvent.PROGRESS, handler, priority)

    def on_end_send(self, handler: Hook,
                    priority: EventPriority = EventPriority.NORMAL) -> str:
        return self._events.subscribe(TransferEvent.END_SEND, handler, priority)

    def on_send_fail(self, handler: Hook,
                     priority: EventPriority = EventPriority.NORMAL) -> str:
        return self._events.subscribe(TransferEvent.SEND_FAIL, handler, priority)

    def off(self, subscription_id: str) -> bool:
        return self._events.unsubscribe(subscription_id)

    # Operations

    def send(self, endpoint: str, field_name: str,
             extra_fields: Optional[Dict[str, Any]] = None) -> None:
        """
        Begin uploading this file. Do not call this directly; the queue's
        scheduler does.

        Args:
            endpoint: URL to post the form to
            field_name: Form field name to associate the file with
            extra_fields: Additional form fields to post

        Raises:
            TransferStateError: If the transfer is not queued
        """
        if self._state is not TransferState.QUEUED:
            raise TransferStateError(
                f"Cannot send transfer {self.name} in state {self._state.value}",
                self._state.value
            )

        self._state = TransferState.SENDING
        self._started_at = self._last_time = self._clock()
        self._last_loaded = 0

        self._events.emit(TransferEvent.BEGIN_SEND)

        request = TransportRequest(
            url=endpoint,
            field_name=field_name,
            filename=self.name,
            content_type=self.mime_type,
            source=self.file,
            size=self.size,
            extra_fields=dict(extra_fields or {})
        )

        logger.debug(f"Sending {self.name} ({self.size} bytes) to {endpoint}")

        try:
            handle = self._transport.start(request, self._listener)
        except Exception as e:
            logger.error(f"Transport failed to start upload of {self.name}: {e}")
            self._handle_failure(None, ERROR_STATUS)
            return

        if self._finished:
            # completed synchronously inside start()
            return

        self._handle = handle
        if self._cancel_requested:
            handle.abort()

    def cancel(self) -> bool:
        """
        Cancel an in-progress upload.

        The abort is reported through the send-fail hooks with status
        ``"abort"`` and the slot goes back to the queue like any failure.

        Returns:
            True if an abort was requested, False if nothing was in flight
        """
        if self._state is not TransferState.SENDING or self._finished:
            return False

        self._cancel_requested = True
        if self._handle is not None:
            logger.info(f"Cancelling upload of {self.name}")
            self._handle.abort()
        return True

    def remove_from_queue(self) -> bool:
        """Remove this transfer from its queue."""
        return self._queue.remove(self)

    # Queue bookkeeping

    def _admit(self) -> None:
        self._state = TransferState.QUEUED

    def _reject(self, error: FileError) -> None:
        self.error = error
        self._state = TransferState.REJECTED

    def _discard(self) -> None:
        self._state = TransferState.REMOVED

    # Transport callbacks

    def _handle_progress(self, event: ProgressEvent) -> None:
        if self._finished or not event.length_computable:
            return

        now = self._clock()
        elapsed = now - self._last_time
        rate = (event.loaded - self._last_loaded) / elapsed if elapsed > 0 else 0.0

        self._last_time = now
        self._last_loaded = event.loaded
        self._bytes_sent = event.loaded
        self._rate = rate

        self._events.emit(TransferEvent.PROGRESS, {
            'progress': event,
            'rate': rate
        })

    def _handle_success(self, response: TransportResponse) -> None:
        if self._guard_finished("success"):
            return

        self._response = response
        self._bytes_sent = max(self._bytes_sent, self.size)
        self._state = TransferState.COMPLETED
        logger.debug(f"Upload of {self.name} completed with status {response.status}")

        self._finish(TransferEvent.END_SEND, {'response': response})

    def _handle_failure(self, response: Optional[TransportResponse], status: str) -> None:
        if self._guard_finished(status):
            return

        self._response = response
        if self._cancel_requested:
            status = ABORT_STATUS
        if status == ABORT_STATUS:
            self._state = TransferState.CANCELLED
            logger.info(f"Upload of {self.name} aborted")
        else:
            self._state = TransferState.FAILED
            http_status = response.status if response is not None else None
            logger.error(f"Upload of {self.name} failed: {status} (HTTP {http_status})")

        self._finish(TransferEvent.SEND_FAIL, {'response': response, 'status': status})

    def _guard_finished(self, outcome: str) -> bool:
        if self._state is not TransferState.SENDING or self._finished:
            logger.warning(
                f"Ignoring duplicate '{outcome}' completion for transfer {self.name}")
            return True
        self._finished = True
        self._finished_at = self._clock()
        self._handle = None
        return False

    def _finish(self, hook: TransferEvent, data: Dict[str, Any]) -> None:
        try:
            self._events.emit(hook, data)
        finally:
            self._done_callback(self)

"""
Upload queue implementation.

The queue admits files against the configured policy and uploads them in
FIFO order, keeping at most ``upload_concurrency`` transfers in flight.
"""

import time
from typing import (
    Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
)

from loguru import logger

from ..domain.config import QueueConfig
from ..domain.environment import Capabilities
from ..domain.events import EventPriority, QueueEvent
from ..domain.files import FileDescriptor, FileError, TransferState
from ..exceptions import TransferStateError, UnsupportedEnvironmentError
from ..interfaces.transport import ITransport
from ..interfaces.upload import IUploadQueue, Listener
from .event_bus import EventEmitter
from .transfer import Transfer

FileListProcessor = Callable[[List[Transfer]], Iterable[Union[Transfer, FileDescriptor]]]
ListenerMap = Mapping[QueueEvent, Union[Listener, Sequence[Listener]]]


def _identity(transfers: List[Transfer]) -> List[Transfer]:
    return transfers


class UploadQueue(IUploadQueue):
    """
    Bounded-concurrency upload queue.

    All methods return immediately. Transfers run on the transport and
    report back through the advance step, which reclaims the finished slot
    and starts the next pending transfer. Advance requests that arrive while
    the scheduler is already running (a transport completing synchronously)
    are counted and drained by the running loop instead of recursing.
    """

    def __init__(
        self,
        transport: ITransport,
        config: Optional[QueueConfig] = None,
        *,
        capabilities: Optional[Capabilities] = None,
        listeners: Optional[ListenerMap] = None,
        process_file_list: Optional[FileListProcessor] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the upload queue.

        Args:
            transport: Transport that carries the uploads
            config: Queue policy, defaults to :class:`QueueConfig`
            capabilities: Result of the environment capability check;
                full support is assumed when omitted
            listeners: Listeners to register before ``INIT`` is emitted
            process_file_list: Pre-filter applied to every submitted batch
            clock: Monotonic clock used for transfer rate sampling

        Raises:
            UnsupportedEnvironmentError: If a required capability is missing
        """
        capabilities = capabilities or Capabilities()
        if not capabilities.fully_supported:
            raise UnsupportedEnvironmentError(
                f"Upload queue requires missing capabilities: {', '.join(capabilities.missing)}",
                capabilities.missing
            )

        self._transport = transport
        self._config = config or QueueConfig()
        self._capabilities = capabilities
        self._process_file_list = process_file_list or _identity
        self._clock = clock
        self._mime_pattern = self._config.mime_type_pattern()
        self._events = EventEmitter(source=self)

        self._pending: List[Transfer] = []
        self._total_bytes = 0
        self._active: List[Transfer] = []
        self._in_flight = 0

        # Scheduler trampoline
        self._advance_requests = 0
        self._advancing = False

        # Statistics
        self._stats = {
            "files_submitted": 0,
            "files_accepted": 0,
            "files_rejected": 0,
            "uploads_completed": 0,
            "uploads_failed": 0,
            "uploads_cancelled": 0,
            "bytes_uploaded": 0,
        }

        for event, handlers in (listeners or {}).items():
            if callable(handlers):
                handlers = [handlers]
            for handler in handlers:
                self.on(event, handler)

        self._events.emit(QueueEvent.INIT)

    @property
    def config(self) -> QueueConfig:
        return self._config

    @property
    def capabilities(self) -> Capabilities:
        return self._capabilities

    @property
    def pending(self) -> Tuple[Transfer, ...]:
        """Snapshot of pending transfers in upload order."""
        return tuple(self._pending)

    @property
    def active(self) -> Tuple[Transfer, ...]:
        """Snapshot of transfers currently being sent."""
        return tuple(self._active)

    @property
    def length(self) -> int:
        return len(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def total_bytes_in_queue(self) -> int:
        return self._total_bytes

    @property
    def in_flight_count(self) -> int:
        return self._in_flight

    # Listener registration

    def on(self, event: QueueEvent, handler: Listener,
           priority: EventPriority = EventPriority.NORMAL) -> str:
        return self._events.subscribe(event, handler, priority)

    def off(self, subscription_id: str) -> bool:
        return self._events.unsubscribe(subscription_id)

    # Admission control

    def create_transfer(self, descriptor: FileDescriptor) -> Transfer:
        """Wrap a descriptor as a transfer owned by this queue."""
        return Transfer(
            descriptor, self, self._transport, self._on_transfer_done, clock=self._clock
        )

    def submit(self, raw_files: Iterable[FileDescriptor]) -> List[Transfer]:
        """
        Validate files and append the accepted ones to the queue.

        Rules are checked in order and the first one that fails decides
        the file's error: zero-byte, mime type, file size, queue byte
        budget, queue length. Refused files are reported together in a
        single ``UNACCEPTED_FILES`` notification before any ``QUEUE_ADD``.

        Args:
            raw_files: Files in selection order

        Returns:
            Accepted transfers in queue order
        """
        candidates = [self.create_transfer(f) for f in raw_files]
        candidates = self._prepare(self._process_file_list(candidates))
        self._stats["files_submitted"] += len(candidates)

        accepted: List[Transfer] = []
        rejected: List[Transfer] = []
        queue_length = len(self._pending)
        batch_bytes = 0

        for transfer in candidates:
            error = self._check_admission(transfer, queue_length, batch_bytes)
            if error is not None:
                transfer._reject(error)
                rejected.append(transfer)
                continue

            queue_length += 1
            batch_bytes += transfer.size
            accepted.append(transfer)

        if rejected:
            self._stats["files_rejected"] += len(rejected)
            logger.warning(
                f"Refused {len(rejected)} file(s): "
                + ", ".join(f"{t.name} ({t.error.name})" for t in rejected if t.error)
            )
            self._events.emit(QueueEvent.UNACCEPTED_FILES, rejected)

        for transfer in accepted:
            transfer._admit()
            self._pending.append(transfer)
            self._total_bytes += transfer.size
            self._stats["files_accepted"] += 1
            logger.debug(f"Queued {transfer.name} ({transfer.size} bytes)")
            self._events.emit(QueueEvent.QUEUE_ADD, transfer)
            self._events.emit(QueueEvent.QUEUE_CHANGE)

        if accepted and self._config.autostart:
            self.begin_upload()

        return accepted

    def remove(self, transfer: Transfer) -> bool:  # type: ignore[override]
        """
        Remove a pending transfer.

        Matching is by identity: two transfers of identical files are
        distinct if they were submitted separately.

        Returns:
            True if the transfer was pending and has been removed
        """
        for i, pending in enumerate(self._pending):
            if pending is transfer:
                del self._pending[i]
                self._total_bytes -= transfer.size
                transfer._discard()
                logger.debug(f"Removed {transfer.name} from queue")
                self._events.emit(QueueEvent.QUEUE_REMOVE, transfer)
                self._events.emit(QueueEvent.QUEUE_CHANGE)
                return True
        return False

    def clear(self) -> None:
        """Drop every pending transfer. In-flight transfers are unaffected."""
        dropped, self._pending = self._pending, []
        self._total_bytes = 0
        for transfer in dropped:
            transfer._discard()
        logger.debug(f"Cleared {len(dropped)} pending transfer(s)")
        self._events.emit(QueueEvent.QUEUE_CHANGE)

    # Upload scheduling

    def begin_upload(self) -> None:
        """
        Start uploading queued files in order, with up to
        ``upload_concurrency`` concurrent transfers.

        Does nothing while an upload is already in progress.
        """
        if self.is_upload_in_progress():
            logger.debug("Upload already in progress, ignoring begin_upload")
            return

        concurrency = self._config.upload_concurrency
        # Slots are claimed before UPLOAD_START: its listeners see
        # in_flight_count == concurrency, and a begin_upload from them is ignored.
        self._in_flight = concurrency
        logger.info(
            f"Starting upload of {len(self._pending)} file(s) "
            f"({self._total_bytes} bytes) with concurrency {concurrency}"
        )
        self._events.emit(QueueEvent.UPLOAD_START)
        self._request_advance(concurrency)

    def is_upload_in_progress(self) -> bool:
        return self._in_flight > 0

    def get_statistics(self) -> Dict[str, Any]:
        """Get queue statistics."""
        return {
            **self._stats,
            "queue_length": len(self._pending),
            "total_bytes_in_queue": self._total_bytes,
            "in_flight": self._in_flight,
            "uploading": self.is_upload_in_progress(),
            "events": self._events.get_metrics(),
        }

    def _on_transfer_done(self, transfer: Transfer) -> None:
        for i, active in enumerate(self._active):
            if active is transfer:
                del self._active[i]
                break

        if transfer.state is TransferState.COMPLETED:
            self._stats["uploads_completed"] += 1
            self._stats["bytes_uploaded"] += transfer.size
        elif transfer.state is TransferState.CANCELLED:
            self._stats["uploads_cancelled"] += 1
        else:
            self._stats["uploads_failed"] += 1

        self._request_advance(1)

    def _request_advance(self, steps: int) -> None:
        self._advance_requests += steps
        if self._advancing:
            return

        self._advancing = True
        try:
            while self._advance_requests > 0:
                self._advance_requests -= 1
                self._advance()
        finally:
            self._advancing = False

    def _advance(self) -> bool:
        """Reclaim one slot and fill it with the next pending transfer."""
        self._in_flight -= 1

        transfer = self._next_transfer()
        if transfer is not None:
            self._in_flight += 1
            self._active.append(transfer)
            transfer.send(
                self._config.post_url,
                self._config.field_name,
                self._config.extra_fields
            )
            return True

        if self._in_flight == 0:
            logger.info("Upload finished")
            self._events.emit(QueueEvent.UPLOAD_FINISH)
        return False

    def _next_transfer(self) -> Optional[Transfer]:
        if not self._pending:
            return None
        transfer = self._pending.pop(0)
        self._total_bytes -= transfer.size
        self._events.emit(QueueEvent.QUEUE_CHANGE)
        return transfer

    def _prepare(self, processed: Iterable[Union[Transfer, FileDescriptor]]) -> List[Transfer]:
        transfers = []
        seen = set()
        for item in processed:
            if isinstance(item, FileDescriptor):
                item = self.create_transfer(item)
            elif not isinstance(item, Transfer):
                raise TypeError(
                    f"process_file_list must return transfers or file descriptors, got {type(item).__name__}")
            elif item.queue is not self or item.state is not TransferState.CREATED:
                raise TransferStateError(
                    f"Transfer {item.name} cannot be submitted again", item.state.value)
            if id(item) in seen:
                raise TransferStateError(
                    f"Transfer {item.name} appears twice in the file list", item.state.value)
            seen.add(id(item))
            transfers.append(item)
        return transfers

    def _check_admission(self, transfer: Transfer, queue_length: int,
                         batch_bytes: int) -> Optional[FileError]:
        config = self._config

        # zero-byte entries are usually dropped folders
        if transfer.size == 0 and not config.silence_zero_byte_errors:
            return FileError.ZERO_BYTE_FILE

        if self._mime_pattern is not None and not self._mime_pattern.search(transfer.mime_type):
            return FileError.UNACCEPTED_MIME_TYPE

        if transfer.size >= config.maximum_file_size:
            return FileError.FILE_TOO_LARGE

        if (config.maximum_bytes_in_queue
                and self._total_bytes + batch_bytes + transfer.size > config.maximum_bytes_in_queue):
            return FileError.QUEUE_FULL

        if queue_length >= config.maximum_queue_size:
            return FileError.QUEUE_FULL

        return None

"""
File and transfer value objects.

These models describe files handed to the queue, why a file was refused,
and what the transport reports back while a file is being sent.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

ByteSource = Union[bytes, bytearray, memoryview, str, Path]


class FileError(Enum):
    """Reasons a file can be refused admission to the queue."""
    QUEUE_FULL = "The upload queue is full"
    FILE_TOO_LARGE = "The file is too large"
    UNACCEPTED_MIME_TYPE = "That type of file is not accepted"
    ZERO_BYTE_FILE = "File is empty, or is a folder"

    @property
    def message(self) -> str:
        """Human readable description of the error."""
        return self.value


class TransferState(Enum):
    """Transfer lifecycle states."""
    CREATED = "created"
    QUEUED = "queued"
    REJECTED = "rejected"
    REMOVED = "removed"
    SENDING = "sending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class FileDescriptor:
    """
    A raw file as selected by the user.

    ``source`` is the byte source handle (in-memory bytes or a path on disk).
    It belongs to the caller and is passed through to the transport as-is.
    """
    name: str
    size: int
    mime_type: str
    source: ByteSource = b""

    def __post_init__(self) -> None:
        if self.size < 0:
            raise ValueError(f"File size cannot be negative: {self.size}")

    @classmethod
    def from_bytes(cls, name: str, data: bytes,
                   mime_type: str = "application/octet-stream") -> 'FileDescriptor':
        """Create a descriptor for an in-memory payload."""
        return cls(name=name, size=len(data), mime_type=mime_type, source=data)


@dataclass(frozen=True)
class ProgressEvent:
    """Upload progress reported by a transport."""
    loaded: int
    total: Optional[int] = None

    @property
    def length_computable(self) -> bool:
        return self.total is not None

    @property
    def percentage(self) -> float:
        if not self.total:
            return 100.0
        return (self.loaded / self.total) * 100.0


@dataclass
class TransportResponse:
    """Response returned by the remote endpoint."""
    status: int
    body: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        """Success means a 2xx status or 304 Not Modified."""
        return 200 <= self.status < 300 or self.status == 304

    def json(self) -> Any:
        return json.loads(self.body)

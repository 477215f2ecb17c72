"""
Core interfaces defining the contracts between the queue, its transfers
and the transport that carries them.
"""

from .transport import ITransport, ITransportHandle, ITransportListener, TransportRequest
from .upload import ITransfer, IUploadQueue, Listener

__all__ = [
    "ITransport",
    "ITransportHandle",
    "ITransportListener",
    "TransportRequest",
    "ITransfer",
    "IUploadQueue",
    "Listener",
]

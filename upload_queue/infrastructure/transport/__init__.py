"""
Network transports for the upload queue.
"""

from .http import AiohttpRequestHandle, AiohttpTransport

__all__ = [
    "AiohttpRequestHandle",
    "AiohttpTransport",
]

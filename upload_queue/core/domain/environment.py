"""
Runtime capabilities the upload queue depends on.
"""

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Capabilities:
    """
    Result of the environment capability check.

    Produced once by the collaborator that builds the queue and handed to
    the queue's constructor.
    """
    byte_streams: bool = True
    """Files can be read as a stream of bytes."""

    async_upload_progress: bool = True
    """Asynchronous uploads with progress reporting are available."""

    @property
    def fully_supported(self) -> bool:
        return self.byte_streams and self.async_upload_progress

    @property
    def missing(self) -> List[str]:
        missing = []
        if not self.byte_streams:
            missing.append("byte_streams")
        if not self.async_upload_progress:
            missing.append("async_upload_progress")
        return missing

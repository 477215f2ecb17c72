"""
Queue policy configuration.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Pattern


@dataclass
class QueueConfig:
    """Admission policy and upload settings for one upload queue."""
    maximum_queue_size: int = 10
    maximum_file_size: int = 1048576
    maximum_bytes_in_queue: Optional[int] = None
    upload_concurrency: int = 2
    accepted_mime_types: List[str] = field(default_factory=list)
    post_url: str = "upload.php"
    field_name: str = "filesinput"
    extra_fields: Optional[Dict[str, Any]] = None
    silence_zero_byte_errors: bool = True
    autostart: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.maximum_queue_size < 0:
            raise ValueError(
                f"maximum_queue_size cannot be negative, got {self.maximum_queue_size}")
        if self.maximum_file_size <= 0:
            raise ValueError(
                f"maximum_file_size must be positive, got {self.maximum_file_size}")
        if self.maximum_bytes_in_queue is not None and self.maximum_bytes_in_queue <= 0:
            raise ValueError(
                f"maximum_bytes_in_queue must be positive, got {self.maximum_bytes_in_queue}")
        if self.upload_concurrency < 1:
            raise ValueError(
                f"upload_concurrency must be at least 1, got {self.upload_concurrency}")
        if not self.post_url:
            raise ValueError("post_url cannot be empty")
        if not self.field_name:
            raise ValueError("field_name cannot be empty")

        # fails fast on bad patterns
        self.mime_type_pattern()

    def mime_type_pattern(self) -> Optional[Pattern[str]]:
        """
        Compile the accepted mime types into one pattern.

        Returns:
            Compiled pattern, or None when every type is accepted
        """
        if not self.accepted_mime_types:
            return None
        try:
            return re.compile('|'.join(self.accepted_mime_types))
        except re.error as e:
            raise ValueError(f"Invalid accepted_mime_types pattern: {e}")

    def accept_attribute(self) -> str:
        """Value for a file input's ``accept`` attribute."""
        return ','.join(self.accepted_mime_types)

"""
Exception hierarchy for the upload queue.

Admission failures are never raised; they are reported as
:class:`~upload_queue.core.domain.files.FileError` values on the refused
transfers. The exceptions below signal programming or environment errors.
"""

from typing import Any, Dict, Optional


class UploadQueueError(Exception):
    """Base exception for all upload queue errors."""

    def __init__(self, message: str, error_code: str = "UPLOAD_QUEUE_ERROR",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error_code': self.error_code,
            'message': self.message,
            'details': self.details
        }


class TransferStateError(UploadQueueError):
    """Raised when a transfer operation is not valid in its current state."""

    def __init__(self, message: str, state: Optional[str] = None):
        super().__init__(message, "TRANSFER_STATE_ERROR", {'state': state})
        self.state = state


class UnsupportedEnvironmentError(UploadQueueError):
    """Raised when the runtime lacks a capability the queue depends on."""

    def __init__(self, message: str, missing: Optional[list] = None):
        super().__init__(message, "UNSUPPORTED_ENVIRONMENT", {'missing': missing or []})
        self.missing = missing or []

"""
Logging infrastructure for the upload queue client.
"""

from .setup import setup_logging

__all__ = [
    "setup_logging",
]

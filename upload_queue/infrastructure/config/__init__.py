"""
Configuration management for the upload queue client.
"""

from .loader import ConfigLoader
from .models import ApplicationConfig, LoggingConfig, TransportConfig

__all__ = [
    "ConfigLoader",
    "ApplicationConfig",
    "LoggingConfig",
    "TransportConfig",
]

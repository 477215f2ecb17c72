"""
Environment capability check.

Run once by whoever builds an upload queue; the result is handed to the
queue's constructor.
"""

import importlib.util

from loguru import logger

from ..core.domain.environment import Capabilities


def check_capabilities() -> Capabilities:
    """
    Detect support for streamed file reading and asynchronous uploads
    with progress reporting.

    Returns:
        Detected capabilities
    """
    capabilities = Capabilities(
        byte_streams=importlib.util.find_spec("aiofiles") is not None,
        async_upload_progress=importlib.util.find_spec("aiohttp") is not None
    )

    if not capabilities.fully_supported:
        logger.warning(f"Missing capabilities: {', '.join(capabilities.missing)}")

    return capabilities

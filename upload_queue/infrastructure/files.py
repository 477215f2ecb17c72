"""
Helpers for turning local paths into file descriptors.
"""

import mimetypes
from pathlib import Path
from typing import Iterable, List, Union

from ..core.domain.files import FileDescriptor

DEFAULT_MIME_TYPE = "application/octet-stream"


def describe_path(path: Union[str, Path]) -> FileDescriptor:
    """
    Describe a local file for submission to a queue.

    Directories are described as zero-byte entries, the way a browser
    reports a folder dropped on a file widget.

    Raises:
        FileNotFoundError: If the path does not exist
    """
    path = Path(path)
    stat = path.stat()

    if path.is_dir():
        return FileDescriptor(name=path.name, size=0, mime_type="", source=path)

    mime_type, _ = mimetypes.guess_type(path.name)
    return FileDescriptor(
        name=path.name,
        size=stat.st_size,
        mime_type=mime_type or DEFAULT_MIME_TYPE,
        source=path
    )


def describe_paths(paths: Iterable[Union[str, Path]]) -> List[FileDescriptor]:
    """Describe several local paths, keeping their order."""
    return [describe_path(p) for p in paths]

"""Atomic file replacement helpers."""

import os
import tempfile
from pathlib import Path
from typing import Union


def write_atomically(path: Path, data: Union[bytes, str], encoding: str = "utf-8") -> None:
    """
    Write data to path so readers only ever observe the old or the new content.

    The temp file lives in the destination directory so the final os.replace
    stays on one filesystem.

    Args:
        path: Destination file (parent directories are created)
        data: File contents; str is encoded with ``encoding``
        encoding: Text encoding used when data is a str
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(data, str):
        data = data.encode(encoding)

    temp_fd, temp_path = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(temp_fd, "wb") as f:
            f.write(data)
        os.replace(temp_path, path)
    except BaseException:
        # Clean up temp file if write failed
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


def temp_path_beside(path: Path) -> Path:
    """Reserve a temp file next to path for writers that need a filename, not bytes."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_fd, temp_path = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    os.close(temp_fd)
    return Path(temp_path)

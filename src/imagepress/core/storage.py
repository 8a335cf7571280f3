"""Filesystem primitives used by the pipeline.

The core touches the filesystem only through four operations: create a
directory, read a file, write a file, and check whether a path exists.
``FileSystem`` implements them on top of ``pathlib``; tests can pass a
subclass to simulate failures without touching real permissions.
"""

import errno
import logging
from pathlib import Path

from .errors import StorageError

logger = logging.getLogger(__name__)


class FileSystem:
    """Local filesystem access for the pipeline."""

    def ensure_directory(self, path: Path) -> None:
        """Create a directory and its parents. No error if it already exists.

        Raises:
            StorageError: If the directory cannot be created
        """
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create directory '{path}': {e}") from e

    def read_file(self, path: Path) -> bytes:
        """Read a whole file into memory.

        Raises:
            OSError: If the file cannot be read. Callers decide which
                pipeline error the failure maps to.
        """
        return Path(path).read_bytes()

    def write_file(self, path: Path, data: bytes) -> None:
        """Write bytes to a file, replacing any existing content.

        Raises:
            StorageError: If the file cannot be written
        """
        try:
            Path(path).write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to write '{path}': {e}") from e
        logger.info(f"Wrote {len(data)} bytes to {path}")

    def path_exists(self, path: Path) -> bool:
        """Check whether a path exists.

        Only "not found" counts as absent. Any other failure (permission
        denied, I/O error) is reported instead of being read as "free".

        Raises:
            StorageError: If the existence probe fails for another reason
        """
        try:
            Path(path).stat()
        except FileNotFoundError:
            return False
        except OSError as e:
            if e.errno == errno.ENOENT:
                return False
            raise StorageError(f"Failed to check '{path}': {e}") from e
        return True


# Shared default instance; it holds no state.
local_fs = FileSystem()

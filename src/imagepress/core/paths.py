"""Collision-free output path allocation.

``allocate_unique_path`` picks the first free name in the sequence::

    generated_image.png
    generated_image (1).png
    generated_image (2).png
    ...

The allocator only probes for existence. It does not create or reserve the
file, so two processes allocating in the same directory at the same time can
pick the same name. The pipeline writes immediately after allocating, and the
tool runs one request at a time, which keeps that window small; it is not
closed.
"""

import logging
from pathlib import Path

from .storage import FileSystem, local_fs

logger = logging.getLogger(__name__)


def candidate_name(base_name: str, extension: str, counter: int) -> str:
    """Build the file name for a given collision counter.

    Args:
        base_name: File name without extension
        extension: Extension without the leading dot
        counter: 0 for the plain name, N >= 1 for the "(N)" suffix

    Returns:
        File name such as ``"image.png"`` or ``"image (2).png"``
    """
    stem = base_name if counter == 0 else f"{base_name} ({counter})"
    return f"{stem}.{extension}"


def allocate_unique_path(
    directory: Path,
    base_name: str,
    extension: str,
    fs: FileSystem | None = None,
) -> Path:
    """Find a path in ``directory`` that does not exist yet.

    Args:
        directory: Target directory
        base_name: File name without extension
        extension: Extension without the leading dot
        fs: Filesystem to probe (defaults to the local filesystem)

    Returns:
        First non-existing candidate path

    Raises:
        StorageError: If an existence probe fails for a reason other than
            "not found"
    """
    fs = fs or local_fs
    directory = Path(directory)

    counter = 0
    while True:
        path = directory / candidate_name(base_name, extension, counter)
        if not fs.path_exists(path):
            break
        counter += 1

    if counter:
        logger.info(f"{counter} existing file(s) named '{base_name}', using {path.name}")
    return path

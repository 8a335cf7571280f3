"""Reference image loading.

Reference images are read from disk, base64-encoded and tagged with a MIME
type so they can be attached to a composed request after the prompt text.

MIME Detection
--------------
The MIME type comes from the lowercase file extension, not from the file
contents:

    .png          -> image/png
    .jpg, .jpeg   -> image/jpeg
    .webp         -> image/webp
    anything else -> application/octet-stream

A mislabelled file (a PNG saved as ``.jpg``) is therefore sent with the wrong
type. Content sniffing would be more robust but is not what callers rely on.

Concurrency
-----------
Files are read on a small thread pool and joined before returning. Output
order always matches input order regardless of which read finishes first.
The first failed read aborts the whole load: pending reads are cancelled,
reads already running are ignored, and no partial result is returned.
"""

import logging
from collections.abc import Sequence
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from pathlib import Path

from .errors import ReferenceImageError
from .models import InlinePart
from .storage import FileSystem, local_fs

logger = logging.getLogger(__name__)

MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
}
DEFAULT_MIME_TYPE = "application/octet-stream"


def mime_type_for_path(path: Path | str) -> str:
    """Infer a MIME type from the file extension."""
    extension = Path(path).suffix.lower().lstrip(".")
    return MIME_TYPES.get(extension, DEFAULT_MIME_TYPE)


def load_reference_image(path: Path | str, fs: FileSystem | None = None) -> InlinePart:
    """Read a single reference image into an inline part.

    Raises:
        ReferenceImageError: If the file cannot be read
    """
    fs = fs or local_fs
    path = Path(path)
    try:
        raw = fs.read_file(path)
    except OSError as e:
        raise ReferenceImageError(path, e) from e

    mime_type = mime_type_for_path(path)
    logger.debug(f"Loaded reference image {path} ({len(raw)} bytes, {mime_type})")
    return InlinePart.from_bytes(mime_type, raw)


def load_reference_images(
    paths: Sequence[Path | str],
    fs: FileSystem | None = None,
    max_workers: int = 4,
) -> list[InlinePart]:
    """Load reference images concurrently, preserving input order.

    Args:
        paths: Reference image paths, in the order they should be sent
        fs: Filesystem to read from (defaults to the local filesystem)
        max_workers: Upper bound on reader threads

    Returns:
        One inline part per path, in input order

    Raises:
        ReferenceImageError: On the first file that cannot be read
    """
    if not paths:
        return []

    fs = fs or local_fs
    workers = max(1, min(max_workers, len(paths)))
    logger.info(f"Loading {len(paths)} reference image(s) with {workers} worker(s)")

    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="reference-loader")
    try:
        futures = [executor.submit(load_reference_image, path, fs) for path in paths]
        done, _ = wait(futures, return_when=FIRST_EXCEPTION)

        for future in futures:
            if future in done and future.exception() is not None:
                error = future.exception()
                logger.error(f"Reference image load failed: {error}")
                raise error

        # No failure: wait() only returns early on an exception
        return [future.result() for future in futures]
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

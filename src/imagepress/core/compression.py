"""Format decision and compression engine.

Turns the raw image bytes returned by the provider into the bytes written to
disk.

Format Decision
---------------
The target format is chosen by the first matching rule:

1. ``skip_post_processing``: keep the detected source format and pass the
   bytes through untouched (no resize, no re-encode). Sources that are not
   JPEG, PNG or WebP are written with a ``.jpg`` extension and a warning.
2. ``force_format`` is set: use it.
3. The source is JPEG: stay JPEG.
4. Anything else: PNG.

The source format is sniffed from the decoded bytes, never from the MIME type
the provider declared for the part.

Processing Steps
----------------
For every target except the skip path, in order:

1. **Resize** to fit inside a ``target_max_dimension`` square, keeping the
   aspect ratio. Images that already fit are left at their size.
2. **Primary encode** with Pillow at the configured quality or level.
3. **Secondary optimization** with the format's registered optimizer (see
   ``imagepress.core.optimizers``). If the optimizer output is larger than
   the primary encode, the primary bytes are kept.

Outcome Descriptions
--------------------
The description ends up in the message shown to the user:

- ``"generated (uncompressed)"``: post-processing skipped
- ``"generated and compressed"``: output format equals the source format
- ``"converted to WEBP and compressed"``: output format differs from the
  source format (upper-case target name)
"""

import logging
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from .errors import CodecError
from .models import (
    CompressionParams,
    Extension,
    GenerationRequest,
    ProcessingOutcome,
)
from .optimizers import OptimizerRegistry, optimizer_registry

logger = logging.getLogger(__name__)

FORMAT_EXTENSIONS: dict[str, Extension] = {
    "jpeg": "jpg",
    "png": "png",
    "webp": "webp",
}
FALLBACK_EXTENSION: Extension = "jpg"

# Pillow reports some camera JPEGs as MPO (multi-picture JPEG)
_FORMAT_ALIASES = {"mpo": "jpeg", "jpg": "jpeg"}

DESCRIPTION_UNCOMPRESSED = "generated (uncompressed)"
DESCRIPTION_COMPRESSED = "generated and compressed"
DESCRIPTION_CONVERTED = "converted to {format} and compressed"


def detect_format(raw_bytes: bytes) -> str | None:
    """Sniff the image format from its contents.

    Returns:
        Lowercase format name ("jpeg", "png", "webp", "gif", ...) or None if
        Pillow cannot identify the data

    Raises:
        CodecError: If the image exceeds Pillow's decompression bomb limit
    """
    try:
        with Image.open(BytesIO(raw_bytes)) as image:
            detected = image.format
    except Image.DecompressionBombError as e:
        raise CodecError(f"Generated image rejected: {e}") from e
    except (UnidentifiedImageError, OSError):
        return None

    if not detected:
        return None
    detected = detected.lower()
    return _FORMAT_ALIASES.get(detected, detected)


def select_target_format(detected_format: str | None, request: GenerationRequest) -> str:
    """Pick the output format for a post-processed image.

    Only meaningful when post-processing is enabled; the skip path keeps the
    source format.
    """
    if request.force_format is not None:
        return request.force_format
    if detected_format == "jpeg":
        return "jpeg"
    return "png"


def describe_transform(target_format: str, detected_format: str | None) -> str:
    if target_format == detected_format:
        return DESCRIPTION_COMPRESSED
    return DESCRIPTION_CONVERTED.format(format=target_format.upper())


def fit_inside(image: Image.Image, max_dimension: int) -> Image.Image:
    """Scale down so the longer side is at most ``max_dimension``.

    Never upscales. Returns the same image object when no resize is needed.
    """
    width, height = image.size
    if max(width, height) <= max_dimension:
        return image

    scale = max_dimension / max(width, height)
    new_size = (max(1, round(width * scale)), max(1, round(height * scale)))
    logger.info(f"Resizing {width}x{height} -> {new_size[0]}x{new_size[1]}")
    return image.resize(new_size, Image.Resampling.LANCZOS)


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )


def _flatten_to_rgb(image: Image.Image) -> Image.Image:
    """Composite transparent pixels onto white for formats without alpha."""
    if _has_alpha(image):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    if image.mode not in ("RGB", "L"):
        return image.convert("RGB")
    return image


def encode_image(image: Image.Image, target_format: str, params: CompressionParams) -> bytes:
    """Primary encode of a decoded image.

    Raises:
        CodecError: If Pillow fails to encode the image
    """
    buffer = BytesIO()
    try:
        if target_format == "jpeg":
            _flatten_to_rgb(image).save(buffer, format="JPEG", quality=params.jpeg_quality)
        elif target_format == "png":
            if image.mode == "CMYK":
                image = image.convert("RGB")
            image.save(buffer, format="PNG", compress_level=params.png_level)
        elif target_format == "webp":
            if image.mode not in ("RGB", "RGBA"):
                image = image.convert("RGBA" if _has_alpha(image) else "RGB")
            image.save(buffer, format="WEBP", quality=params.webp_quality)
        else:
            raise CodecError(f"Unsupported target format: {target_format}")
    except (OSError, ValueError) as e:
        raise CodecError(f"Failed to encode image as {target_format}: {e}") from e

    return buffer.getvalue()


def _decode(raw_bytes: bytes) -> Image.Image:
    try:
        image = Image.open(BytesIO(raw_bytes))
        image.load()
    except Image.DecompressionBombError as e:
        raise CodecError(f"Generated image rejected: {e}") from e
    except (UnidentifiedImageError, OSError) as e:
        raise CodecError(f"Failed to decode generated image: {e}") from e
    return image


def _passthrough(raw_bytes: bytes, detected_format: str | None) -> ProcessingOutcome:
    extension = FORMAT_EXTENSIONS.get(detected_format or "")
    if extension is None:
        logger.warning(
            f"Unknown source format '{detected_format}', "
            f"saving unprocessed image as .{FALLBACK_EXTENSION}"
        )
        extension = FALLBACK_EXTENSION

    size = len(raw_bytes)
    return ProcessingOutcome(
        final_bytes=raw_bytes,
        extension=extension,
        original_size_bytes=size,
        final_size_bytes=size,
        transform_description=DESCRIPTION_UNCOMPRESSED,
        source_format=detected_format,
    )


def process_image(
    raw_bytes: bytes,
    detected_format: str | None,
    request: GenerationRequest,
    optimizers: OptimizerRegistry | None = None,
) -> ProcessingOutcome:
    """Post-process a generated image according to the request.

    Args:
        raw_bytes: Image bytes as returned by the provider
        detected_format: Format sniffed from ``raw_bytes`` (see detect_format)
        request: The generation request (format, size and compression settings)
        optimizers: Optimizer registry (defaults to the global registry)

    Returns:
        ProcessingOutcome with the bytes to write and size bookkeeping

    Raises:
        CodecError: If decoding, resizing, encoding or optimization fails
    """
    if request.skip_post_processing:
        logger.info("Post-processing skipped, writing provider bytes unchanged")
        return _passthrough(raw_bytes, detected_format)

    optimizers = optimizers or optimizer_registry
    target_format = select_target_format(detected_format, request)
    optimizer = optimizers.get(target_format)
    params = request.compression

    logger.info(
        f"Processing image: source={detected_format}, target={target_format}, "
        f"max_dimension={request.target_max_dimension}"
    )

    image = _decode(raw_bytes)
    try:
        image = fit_inside(image, request.target_max_dimension)
    except (OSError, ValueError) as e:
        raise CodecError(f"Failed to resize image: {e}") from e

    primary = encode_image(image, target_format, params)
    optimized = optimizer.optimize(primary, params)

    if len(optimized) > len(primary):
        logger.info(
            f"{optimizer.name} output larger than primary encode "
            f"({len(optimized)} > {len(primary)} bytes), keeping primary"
        )
        final_bytes = primary
    else:
        final_bytes = optimized

    outcome = ProcessingOutcome(
        final_bytes=final_bytes,
        extension=FORMAT_EXTENSIONS[target_format],
        original_size_bytes=len(raw_bytes),
        final_size_bytes=len(final_bytes),
        transform_description=describe_transform(target_format, detected_format),
        source_format=detected_format,
        dimensions=image.size,
    )
    logger.info(
        f"Image {outcome.transform_description}: "
        f"{outcome.original_size_bytes} -> {outcome.final_size_bytes} bytes"
    )
    return outcome

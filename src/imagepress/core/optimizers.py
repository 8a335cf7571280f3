"""Secondary optimization passes and their registry.

After the primary encode, every post-processed image goes through a second,
format-specific recompressor:

- **jpeg**: progressive, Huffman-optimized re-encode at the configured quality
- **png**: oxipng lossless structural optimization at the configured level
- **webp**: re-encode at the configured quality with the slowest, best
  compression method

The pass is advertised behavior, so a format without a registered optimizer,
or an optimizer whose library cannot be imported, fails the request with a
``CodecError`` instead of being skipped.

Usage Example
-------------
    >>> from imagepress.core.optimizers import optimizer_registry
    >>> optimizer = optimizer_registry.get("png")
    >>> smaller = optimizer.optimize(png_bytes, request.compression)

Registering a replacement optimizer:

    >>> class MyPngOptimizer(OptimizerBase):
    ...     name = "my-png"
    ...     image_format = "png"
    ...     def optimize(self, data, params):
    ...         ...
    >>> optimizer_registry.register(MyPngOptimizer)
"""

import logging
from abc import ABC, abstractmethod
from io import BytesIO
from typing import Any

from PIL import Image, UnidentifiedImageError

from .errors import CodecError
from .models import CompressionParams

logger = logging.getLogger(__name__)

# oxipng exposes presets 0-6; level 7 (the optipng maximum) maps to the top preset
OXIPNG_MAX_LEVEL = 6
WEBP_BEST_METHOD = 6


class OptimizerBase(ABC):
    """Abstract base class for secondary optimizers.

    Attributes
    ----------
    name : str
        Human-readable optimizer name
    description : str
        What the pass does
    image_format : str
        Target format this optimizer handles ("jpeg", "png" or "webp")
    """

    name: str = "Base Optimizer"
    description: str = "Base class for secondary optimizers"
    image_format: str = ""

    @abstractmethod
    def optimize(self, data: bytes, params: CompressionParams) -> bytes:
        """Recompress an already-encoded image.

        Args:
            data: Output of the primary encode
            params: Compression settings of the request

        Returns:
            Recompressed image bytes in the same format

        Raises:
            CodecError: If the optimizer fails or is unavailable
        """

    def get_optimizer_info(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "image_format": self.image_format,
        }


def _reopen(data: bytes, image_format: str) -> Image.Image:
    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise CodecError(f"Cannot re-open {image_format} output for optimization: {e}") from e
    return image


class JpegProgressiveOptimizer(OptimizerBase):
    name = "jpeg-progressive"
    description = "Progressive, Huffman-optimized JPEG re-encode"
    image_format = "jpeg"

    def optimize(self, data: bytes, params: CompressionParams) -> bytes:
        image = _reopen(data, self.image_format)
        buffer = BytesIO()
        try:
            image.save(
                buffer,
                format="JPEG",
                quality=params.jpeg_quality,
                progressive=True,
                optimize=True,
            )
        except OSError as e:
            raise CodecError(f"Progressive JPEG re-encode failed: {e}") from e
        return buffer.getvalue()


class OxipngOptimizer(OptimizerBase):
    name = "oxipng"
    description = "Lossless PNG structural optimization with oxipng"
    image_format = "png"

    def optimize(self, data: bytes, params: CompressionParams) -> bytes:
        # Imported lazily so a missing oxipng fails only PNG requests
        try:
            import oxipng
        except ImportError as e:
            raise CodecError(f"PNG optimizer unavailable (oxipng not installed): {e}") from e

        level = min(params.optimize_level, OXIPNG_MAX_LEVEL)
        try:
            return bytes(oxipng.optimize_from_memory(data, level=level))
        except oxipng.PngError as e:
            raise CodecError(f"oxipng optimization failed at level {level}: {e}") from e


class WebpOptimizer(OptimizerBase):
    name = "webp-reencode"
    description = "WebP re-encode with the slowest, best compression method"
    image_format = "webp"

    def optimize(self, data: bytes, params: CompressionParams) -> bytes:
        image = _reopen(data, self.image_format)
        buffer = BytesIO()
        try:
            image.save(
                buffer,
                format="WEBP",
                quality=params.webp_quality,
                method=WEBP_BEST_METHOD,
            )
        except OSError as e:
            raise CodecError(f"WebP re-encode failed: {e}") from e
        return buffer.getvalue()


class OptimizerRegistry:
    """Registry mapping image formats to secondary optimizers.

    One optimizer is active per format. Registering a second optimizer for
    the same format replaces the first.
    """

    def __init__(self) -> None:
        self._optimizers: dict[str, OptimizerBase] = {}

    def register(self, optimizer_class: type[OptimizerBase]) -> None:
        """Register an optimizer class for its ``image_format``."""
        image_format = optimizer_class.image_format
        if image_format in self._optimizers:
            logger.warning(f"Optimizer for '{image_format}' is already registered, overwriting")

        self._optimizers[image_format] = optimizer_class()
        logger.debug(f"Registered {optimizer_class.name} optimizer for {image_format}")

    def unregister(self, image_format: str) -> None:
        self._optimizers.pop(image_format, None)

    def get(self, image_format: str) -> OptimizerBase:
        """Return the optimizer for a format.

        Raises:
            CodecError: If no optimizer is registered for the format
        """
        try:
            return self._optimizers[image_format]
        except KeyError:
            available = ", ".join(self.list_available()) or "none"
            raise CodecError(
                f"No secondary optimizer registered for '{image_format}'. "
                f"Available: {available}"
            ) from None

    def list_available(self) -> list[str]:
        return list(self._optimizers.keys())


def default_registry() -> OptimizerRegistry:
    """Build a registry with the built-in optimizers."""
    registry = OptimizerRegistry()
    registry.register(JpegProgressiveOptimizer)
    registry.register(OxipngOptimizer)
    registry.register(WebpOptimizer)
    return registry


# Global optimizer registry instance
optimizer_registry = default_registry()

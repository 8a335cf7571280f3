"""Configuration management for imagepress.

This module provides centralized configuration using Pydantic Settings. All
configuration is loaded from environment variables with the IMAGEPRESS_
prefix, allowing defaults to be changed without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (IMAGEPRESS_* prefix)
2. .env file in the working directory
3. Default values defined in ImagepressConfig

Example .env file:
    IMAGEPRESS_OUTPUT_DIRECTORY=output/images
    IMAGEPRESS_TARGET_MAX_DIMENSION=1024
    IMAGEPRESS_JPEG_QUALITY=80
    IMAGEPRESS_MODEL_ID=gemini-2.0-flash-preview-image-generation

Request Defaults
----------------
Most settings are defaults for fields the caller leaves out of a generation
request. ``parse_request`` in ``imagepress.core.validation`` merges them with
the caller's arguments before validation, so the same range checks apply to
configured values and to caller-supplied ones.

Usage Example
-------------
    from imagepress.core.config import config

    print(config.output_directory)
    print(config.request_defaults())
"""

from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import (
    DEFAULT_FILE_NAME,
    DEFAULT_MODEL,
    DEFAULT_OUTPUT_DIRECTORY,
    DEFAULT_RESPONSE_MODALITIES,
    DEFAULT_TARGET_MAX_DIMENSION,
)


class ImagepressConfig(BaseSettings):
    """Main configuration for imagepress.

    Attributes
    ----------
    Request defaults:
        output_directory : Path
            Directory generated images are written to
        file_name : str
            Base file name (no extension) for generated images
        target_max_dimension : int
            Longest side of post-processed images, in pixels
        use_enhanced_prompt : bool
            Wrap prompts in the step-by-step template by default
        skip_post_processing : bool
            Write provider bytes unchanged by default

    Compression defaults:
        jpeg_quality : int
            JPEG quality (0-100)
        webp_quality : int
            WebP quality (0-100)
        png_level : int
            zlib level for the primary PNG encode (0-9)
        optimize_level : int
            PNG structural optimizer level (0-7)

    Provider settings:
        model_id : str
            Model identifier placed on composed requests
        response_modalities : list[str]
            Response modalities requested from the provider

    Loader settings:
        reference_load_workers : int
            Thread pool size for reading reference images

    Examples
    --------
        >>> custom = ImagepressConfig(target_max_dimension=1024, jpeg_quality=85)
        >>> custom.request_defaults()["compression"]["jpeg_quality"]
        85
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="IMAGEPRESS_",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=(),
    )

    # Request defaults
    output_directory: Path = Field(
        default=DEFAULT_OUTPUT_DIRECTORY,
        description="Directory to save generated images",
    )
    file_name: str = Field(
        default=DEFAULT_FILE_NAME,
        description="Base file name for generated images",
    )
    target_max_dimension: int = Field(
        default=DEFAULT_TARGET_MAX_DIMENSION,
        description="Longest side of post-processed images",
        gt=0,
    )
    use_enhanced_prompt: bool = Field(default=False)
    skip_post_processing: bool = Field(default=False)

    # Compression defaults
    jpeg_quality: int = Field(default=70, ge=0, le=100)
    webp_quality: int = Field(default=75, ge=0, le=100)
    png_level: int = Field(default=9, ge=0, le=9)
    optimize_level: int = Field(default=2, ge=0, le=7)

    # Provider settings
    model_id: str = Field(
        default=DEFAULT_MODEL,
        description="Model identifier sent with every composed request",
    )
    response_modalities: list[str] = Field(
        default_factory=lambda: list(DEFAULT_RESPONSE_MODALITIES),
        description="Response modalities requested from the provider",
    )

    # Reference image loading
    reference_load_workers: int = Field(
        default=4,
        description="Maximum threads used to read reference images",
        ge=1,
        le=32,
    )

    def request_defaults(self) -> dict[str, Any]:
        """Return request field defaults keyed by GenerationRequest field name."""
        return {
            "output_directory": self.output_directory,
            "file_name": self.file_name,
            "target_max_dimension": self.target_max_dimension,
            "use_enhanced_prompt": self.use_enhanced_prompt,
            "skip_post_processing": self.skip_post_processing,
            "compression": {
                "jpeg_quality": self.jpeg_quality,
                "webp_quality": self.webp_quality,
                "png_level": self.png_level,
                "optimize_level": self.optimize_level,
            },
        }


# Global configuration instance
# Loads values from environment variables (IMAGEPRESS_* prefix) and .env file.
config = ImagepressConfig()

"""Data models for generation requests, provider responses and outcomes.

Request-side and response-side models are Pydantic models so they can be
validated straight from tool arguments or provider JSON. Both accept
snake_case field names as well as the camelCase keys used on the wire
(``forceFormat``, ``finishReason``, ``inlineData``...).

Transient values that only flow between pipeline stages (parts of a composed
request, the processing outcome) are plain frozen dataclasses.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ForceFormat = Literal["jpeg", "webp", "png"]
Extension = Literal["jpg", "png", "webp"]

DEFAULT_OUTPUT_DIRECTORY = Path("output/images")
DEFAULT_FILE_NAME = "generated_image"
DEFAULT_TARGET_MAX_DIMENSION = 512
DEFAULT_MODEL = "gemini-2.0-flash-preview-image-generation"
DEFAULT_RESPONSE_MODALITIES = ("IMAGE", "TEXT")

_WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


def _reject_bool(value: Any) -> Any:
    # bool is an int subclass; lax mode would read True as 1
    if isinstance(value, bool):
        raise ValueError("must be an integer, not a boolean")
    return value


NonBoolInt = Annotated[int, BeforeValidator(_reject_bool)]


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CompressionParams(BaseModel):
    """Quality and level settings for the compression engine.

    Attributes:
        jpeg_quality: JPEG quality, 0-100
        webp_quality: WebP quality, 0-100
        png_level: zlib compression level for the primary PNG encode, 0-9
        optimize_level: Structural optimization level for the PNG optimizer, 0-7
    """

    model_config = _WIRE_CONFIG

    jpeg_quality: NonBoolInt = Field(default=70, ge=0, le=100)
    webp_quality: NonBoolInt = Field(default=75, ge=0, le=100)
    png_level: NonBoolInt = Field(default=9, ge=0, le=9)
    optimize_level: NonBoolInt = Field(default=2, ge=0, le=7)


class GenerationRequest(BaseModel):
    """A validated image generation request.

    Instances are immutable once built. Use
    ``imagepress.core.validation.parse_request`` to build one from raw tool
    arguments with configured defaults.
    """

    model_config = _WIRE_CONFIG

    prompt: str = Field(..., min_length=1, description="Text prompt for the image.")
    output_directory: Path = Field(
        default=DEFAULT_OUTPUT_DIRECTORY,
        description="Directory the image is written to (created if missing).",
    )
    file_name: str = Field(
        default=DEFAULT_FILE_NAME,
        min_length=1,
        description="Base file name without extension.",
    )
    reference_image_paths: tuple[Path, ...] = Field(
        default=(),
        description="Reference images sent after the prompt, in order.",
    )
    use_enhanced_prompt: bool = Field(
        default=False,
        description="Wrap the prompt in a step-by-step reasoning template.",
    )
    skip_post_processing: bool = Field(
        default=False,
        description="Write the provider bytes unchanged.",
    )
    target_max_dimension: NonBoolInt = Field(
        default=DEFAULT_TARGET_MAX_DIMENSION,
        gt=0,
        description="Longest side of the output image in pixels.",
    )
    force_format: ForceFormat | None = Field(
        default=None,
        description="Output format override (jpeg, webp or png).",
    )
    compression: CompressionParams = Field(default_factory=CompressionParams)

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("prompt must not be blank")
        return value

    @field_validator("file_name")
    @classmethod
    def _file_name_is_base_name(cls, value: str) -> str:
        if "/" in value or "\\" in value:
            raise ValueError("file_name must be a base name without directories")
        if "\x00" in value:
            raise ValueError("file_name must not contain NUL characters")
        return value

    @property
    def has_reference_images(self) -> bool:
        return bool(self.reference_image_paths)


# ---------------------------------------------------------------------------
# Composed request parts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextPart:
    """Instruction text sent to the provider."""

    text: str


@dataclass(frozen=True)
class InlinePart:
    """A tagged image payload.

    ``data`` holds the base64 text exactly as it travels on the wire.
    """

    mime_type: str
    data: str

    @classmethod
    def from_bytes(cls, mime_type: str, raw: bytes) -> InlinePart:
        return cls(mime_type=mime_type, data=base64.b64encode(raw).decode("ascii"))

    def raw_bytes(self) -> bytes:
        """Decode the base64 payload.

        Raises:
            ValueError: If the payload is not valid base64
        """
        try:
            # Line-wrapped base64 (MIME style) is accepted
            return base64.b64decode("".join(self.data.split()), validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload for {self.mime_type}: {e}") from e


RequestPart = TextPart | InlinePart


@dataclass(frozen=True)
class ComposedRequest:
    """Provider-agnostic multi-part generation request.

    The first part is always the instruction text, followed by the reference
    images in the order they were requested.
    """

    parts: tuple[RequestPart, ...]
    model: str = DEFAULT_MODEL
    response_modalities: tuple[str, ...] = DEFAULT_RESPONSE_MODALITIES

    @property
    def text(self) -> str:
        first = self.parts[0]
        assert isinstance(first, TextPart), "Composed request must start with text"
        return first.text

    @property
    def image_parts(self) -> tuple[InlinePart, ...]:
        return tuple(part for part in self.parts[1:] if isinstance(part, InlinePart))


# ---------------------------------------------------------------------------
# Provider response models
# ---------------------------------------------------------------------------


class InlineData(BaseModel):
    model_config = _WIRE_CONFIG

    mime_type: str | None = None
    data: str | None = None


class ResponsePart(BaseModel):
    model_config = _WIRE_CONFIG

    text: str | None = None
    inline_data: InlineData | None = None


class Content(BaseModel):
    model_config = _WIRE_CONFIG

    parts: list[ResponsePart] | None = None
    role: str | None = None


class Candidate(BaseModel):
    model_config = _WIRE_CONFIG

    content: Content | None = None
    finish_reason: str | None = None
    safety_ratings: list[dict[str, Any]] | None = None


class GenerationResponse(BaseModel):
    """Generation response as returned by the provider.

    Mirrors the provider's JSON layout so a raw response body can be loaded
    with ``GenerationResponse.model_validate(payload)``.
    """

    model_config = _WIRE_CONFIG

    candidates: list[Candidate] | None = None
    prompt_feedback: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Processing outcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProcessingOutcome:
    """Result of the compression engine for one request."""

    final_bytes: bytes
    extension: Extension
    original_size_bytes: int
    final_size_bytes: int
    transform_description: str
    source_format: str | None = None
    dimensions: tuple[int, int] | None = None

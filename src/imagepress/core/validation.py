"""Validation of raw tool arguments into a GenerationRequest."""

import logging
from collections.abc import Mapping
from typing import Any

import pydantic

from .config import ImagepressConfig
from .errors import ValidationError
from .models import CompressionParams, GenerationRequest

logger = logging.getLogger(__name__)

# Accepted spellings of the nested compression settings
_COMPRESSION_ALIASES = ("compressionParams", "compression_params")


def format_validation_errors(error: pydantic.ValidationError) -> str:
    """Render pydantic errors as ``field: message`` pairs."""
    lines = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "request"
        lines.append(f"{location}: {item['msg']}")
    return "; ".join(lines)


def _normalize(arguments: Mapping[str, Any]) -> dict[str, Any]:
    # None means "not provided" so optional schema fields can pass through as-is
    data = {key: value for key, value in arguments.items() if value is not None}
    for key in _COMPRESSION_ALIASES:
        if key in data:
            data["compression"] = data.pop(key)
    return data


def _apply_defaults(data: dict[str, Any], defaults: dict[str, Any]) -> dict[str, Any]:
    for name, value in defaults.items():
        if name == "compression":
            continue
        alias = GenerationRequest.model_fields[name].alias
        if name not in data and alias not in data:
            data[name] = value

    compression = data.get("compression")
    if compression is None:
        data["compression"] = defaults["compression"]
    elif isinstance(compression, Mapping):
        merged = dict(defaults["compression"])
        for name in merged:
            alias = CompressionParams.model_fields[name].alias
            for key in (name, alias):
                if compression.get(key) is not None:
                    merged[name] = compression[key]
        data["compression"] = merged

    return data


def parse_request(
    arguments: Mapping[str, Any], config: ImagepressConfig | None = None
) -> GenerationRequest:
    """Build a GenerationRequest from raw tool arguments.

    Fields the caller leaves out (or passes as None) take the configured
    defaults. Values are range-checked, never clamped.

    Args:
        arguments: Tool arguments with snake_case or camelCase keys
        config: Configuration supplying defaults for omitted fields. When
            None, the model's built-in defaults apply.

    Returns:
        Validated, immutable GenerationRequest

    Raises:
        ValidationError: If any field is missing, malformed or out of range
    """
    data = _normalize(arguments)
    if config is not None:
        data = _apply_defaults(data, config.request_defaults())

    try:
        return GenerationRequest.model_validate(data)
    except pydantic.ValidationError as e:
        message = format_validation_errors(e)
        logger.warning(f"Rejected generation request: {message}")
        raise ValidationError(f"Invalid request: {message}") from e

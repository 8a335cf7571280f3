"""Composed request assembly."""

from collections.abc import Iterable, Sequence

from .models import (
    DEFAULT_MODEL,
    DEFAULT_RESPONSE_MODALITIES,
    ComposedRequest,
    InlinePart,
    TextPart,
)


def assemble_request(
    prompt_text: str,
    image_parts: Iterable[InlinePart],
    model: str = DEFAULT_MODEL,
    response_modalities: Sequence[str] = DEFAULT_RESPONSE_MODALITIES,
) -> ComposedRequest:
    """Build the multi-part request: instruction text first, then images.

    The provider reads the parts as "instruction, then references", so the
    image parts keep the order they were given in.

    Args:
        prompt_text: Final (possibly templated) prompt
        image_parts: Reference image parts in request order
        model: Model identifier for the provider
        response_modalities: Modalities requested in the response

    Returns:
        ComposedRequest with one text part followed by the image parts
    """
    parts = (TextPart(text=prompt_text), *image_parts)
    return ComposedRequest(
        parts=parts,
        model=model,
        response_modalities=tuple(response_modalities),
    )

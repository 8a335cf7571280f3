"""Image extraction from generation responses.

The provider can answer with an image, with text only (a refusal or a
clarifying question), or with nothing at all when a safety filter blocks the
prompt or the output. The extractor returns the first usable image and
otherwise raises one of two distinct errors:

- ``NoCandidatesError``: no candidates, or a candidate without content parts.
  The message carries the prompt feedback and the candidate's finish reason
  and safety ratings so a blocked generation can be told apart from an empty
  one.
- ``NoImagePartError``: content parts came back but none is an image. The
  message lists what was received instead.
"""

import json
import logging
from typing import Any

from .errors import NoCandidatesError, NoImagePartError
from .models import Candidate, GenerationResponse, InlinePart, ResponsePart

logger = logging.getLogger(__name__)

TEXT_SNIPPET_LENGTH = 80


def _to_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, sort_keys=True, default=str)


def _candidate_details(candidate: Candidate) -> list[str]:
    details = []
    if candidate.finish_reason:
        details.append(f"finishReason={candidate.finish_reason}")
    if candidate.safety_ratings:
        details.append(f"safetyRatings={_to_json(candidate.safety_ratings)}")
    return details


def describe_part(part: ResponsePart) -> str:
    """Summarize a response part for diagnostics."""
    if part.inline_data is not None:
        mime_type = part.inline_data.mime_type or "unknown mime type"
        if not part.inline_data.data:
            return f"{mime_type} (empty)"
        return mime_type
    if part.text is not None:
        snippet = part.text.strip().replace("\n", " ")
        if len(snippet) > TEXT_SNIPPET_LENGTH:
            snippet = snippet[:TEXT_SNIPPET_LENGTH] + "..."
        return f'text: "{snippet}"'
    return "empty part"


def _is_image_part(part: ResponsePart) -> bool:
    inline = part.inline_data
    return bool(
        inline is not None
        and inline.mime_type
        and inline.mime_type.startswith("image/")
        and inline.data
    )


def extract_image(response: GenerationResponse) -> InlinePart:
    """Return the first inline image of the first candidate.

    Parts are scanned in order and the first qualifying image wins, even if a
    later part carries a larger one.

    Args:
        response: Provider response

    Returns:
        InlinePart with the image MIME type and base64 payload

    Raises:
        NoCandidatesError: If there is no candidate or no content parts
        NoImagePartError: If none of the parts is a non-empty image
    """
    candidate = response.candidates[0] if response.candidates else None
    parts = candidate.content.parts if candidate and candidate.content else None

    if not parts:
        details = []
        if response.prompt_feedback:
            details.append(f"promptFeedback={_to_json(response.prompt_feedback)}")
        if candidate is not None:
            details.extend(_candidate_details(candidate))

        reason = "no candidates" if candidate is None else "candidate has no content parts"
        message = (
            f"No image was generated ({reason}). The response may have been blocked "
            f"by safety filters or the prompt could not be fulfilled."
        )
        if details:
            message += " " + "; ".join(details)
        logger.error(message)
        raise NoCandidatesError(message)

    for part in parts:
        if _is_image_part(part):
            assert part.inline_data is not None
            logger.info(f"Extracted {part.inline_data.mime_type} image from response")
            return InlinePart(
                mime_type=part.inline_data.mime_type or "",
                data=part.inline_data.data or "",
            )

    received = ", ".join(describe_part(part) for part in parts)
    message = f"No image data found in response. Received parts: [{received}]"
    details = _candidate_details(candidate) if candidate is not None else []
    if details:
        message += " " + "; ".join(details)
    logger.error(message)
    raise NoImagePartError(message)

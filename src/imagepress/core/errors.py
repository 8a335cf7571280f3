"""Exception hierarchy for the imagepress pipeline.

Every failure the pipeline can report derives from ``ImagepressError``. Each
class carries a short ``kind`` label that the orchestrator uses when it turns
the exception into the single text result returned to the caller.

Hierarchy
---------
- ImagepressError
    - ValidationError: malformed or out-of-range request fields
    - ReferenceImageError: a reference image could not be read
    - ProviderError: the generation call failed at the provider level
    - ExtractionError: the provider returned no usable image
        - NoCandidatesError
        - NoImagePartError
    - CodecError: decode, resize, encode or optimize failure
    - StorageError: directory creation, path probing or final write failure
"""

from pathlib import Path


class ImagepressError(Exception):
    """Base class for all pipeline failures."""

    kind: str = "Error"


class ValidationError(ImagepressError):
    """User-friendly validation error.

    Raised when request fields fail validation. The message is intended to be
    displayed directly to the user.
    """

    kind = "ValidationError"


class ReferenceImageError(ImagepressError):
    """A reference image could not be loaded.

    Attributes:
        path: The offending reference image path
        cause: Underlying exception
    """

    kind = "ReferenceImageError"

    def __init__(self, path: Path | str, cause: BaseException) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to read reference image '{self.path}': {cause}")


class ProviderError(ImagepressError):
    """The generation provider call failed."""

    kind = "ProviderError"


class ExtractionError(ImagepressError):
    """The generation response did not contain a usable image."""

    kind = "ExtractionError"


class NoCandidatesError(ExtractionError):
    """The response had no candidates or the candidate had no content parts."""

    kind = "NoCandidates"


class NoImagePartError(ExtractionError):
    """Content parts were returned but none of them was an image."""

    kind = "NoImagePart"


class CodecError(ImagepressError):
    """Image decoding, resizing, encoding or optimization failed."""

    kind = "CodecError"


class StorageError(ImagepressError):
    """A filesystem operation failed."""

    kind = "IOError"

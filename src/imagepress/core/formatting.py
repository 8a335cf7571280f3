"""Text results returned to the tool caller."""

from pathlib import Path

from .errors import ImagepressError
from .models import ProcessingOutcome


def format_size_kb(size_bytes: int) -> str:
    """Format a byte count as kilobytes with two decimals (e.g. ``"12.34KB"``)."""
    return f"{size_bytes / 1024:.2f}KB"


def format_success(output_path: Path, outcome: ProcessingOutcome) -> str:
    """Describe a written image.

    Example:
        Image generated and compressed: output/images/cat.png
        Original size: 812.40KB, Final size: 96.18KB
    """
    return (
        f"Image {outcome.transform_description}: {output_path}\n"
        f"Original size: {format_size_kb(outcome.original_size_bytes)}, "
        f"Final size: {format_size_kb(outcome.final_size_bytes)}"
    )


def format_failure(error: BaseException) -> str:
    """Describe a failed request, naming the error kind."""
    kind = error.kind if isinstance(error, ImagepressError) else type(error).__name__
    return f"Image generation failed: {kind}: {error}"

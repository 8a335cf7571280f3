"""Shared pytest fixtures for imagepress tests."""

import shutil
import tempfile
from collections.abc import Callable
from io import BytesIO
from pathlib import Path
from typing import Generator

import pytest
from PIL import Image

from imagepress.core.config import ImagepressConfig
from imagepress.core.errors import StorageError
from imagepress.core.models import ComposedRequest, GenerationResponse, InlinePart
from imagepress.core.provider import CallableProvider
from imagepress.core.storage import FileSystem


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def output_dir(temp_dir: Path) -> Path:
    """Output directory that does not exist yet."""
    return temp_dir / "output" / "images"


@pytest.fixture
def test_config(output_dir: Path) -> ImagepressConfig:
    """Create a test configuration writing into a temporary directory.

    Args:
        output_dir: Temporary output directory from fixture

    Returns:
        ImagepressConfig instance for testing
    """
    return ImagepressConfig(
        output_directory=output_dir,
        file_name="generated_image",
        target_max_dimension=512,
        jpeg_quality=70,
        webp_quality=75,
        png_level=9,
        optimize_level=2,
        reference_load_workers=4,
        _env_file=None,
    )


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    """Factory producing encoded test images.

    Returns:
        Function ``(image_format="PNG", size=(64, 64), color=..., mode="RGB")``
        returning the encoded bytes
    """

    def _make(
        image_format: str = "PNG",
        size: tuple[int, int] = (64, 64),
        color: tuple[int, ...] = (200, 30, 30),
        mode: str = "RGB",
    ) -> bytes:
        image = Image.new(mode, size, color)
        buffer = BytesIO()
        image.save(buffer, format=image_format)
        return buffer.getvalue()

    return _make


@pytest.fixture
def noisy_image() -> Callable[..., bytes]:
    """Factory producing hard-to-compress RGB images in a given format."""

    def _make(image_format: str = "PNG", size: tuple[int, int] = (256, 256), **save_args) -> bytes:
        image = Image.effect_noise(size, 64).convert("RGB")
        buffer = BytesIO()
        image.save(buffer, format=image_format, **save_args)
        return buffer.getvalue()

    return _make


@pytest.fixture
def png_bytes(make_image) -> bytes:
    return make_image("PNG", size=(64, 64))


@pytest.fixture
def jpeg_bytes(make_image) -> bytes:
    return make_image("JPEG", size=(64, 64))


@pytest.fixture
def image_response() -> Callable[..., GenerationResponse]:
    """Factory building a provider response that carries one image.

    Returns:
        Function ``(raw, mime_type="image/png", text=None)`` returning a
        GenerationResponse whose first candidate holds the image (preceded by
        a text part when ``text`` is given)
    """

    def _make(raw: bytes, mime_type: str = "image/png", text: str | None = None) -> GenerationResponse:
        inline = InlinePart.from_bytes(mime_type, raw)
        parts = []
        if text is not None:
            parts.append({"text": text})
        parts.append({"inlineData": {"mimeType": inline.mime_type, "data": inline.data}})
        return GenerationResponse.model_validate(
            {
                "candidates": [
                    {
                        "content": {"parts": parts, "role": "model"},
                        "finishReason": "STOP",
                    }
                ]
            }
        )

    return _make


class RecordingProvider(CallableProvider):
    """Callable provider that keeps every request it receives."""

    def __init__(self, response) -> None:
        self.requests: list[ComposedRequest] = []
        super().__init__(self._respond)
        self._response = response

    def _respond(self, request: ComposedRequest):
        self.requests.append(request)
        if isinstance(self._response, BaseException):
            raise self._response
        return self._response


@pytest.fixture
def recording_provider() -> Callable[..., RecordingProvider]:
    """Factory for providers that record requests and return a fixed response.

    Passing an exception instance makes the provider raise it instead.
    """
    return RecordingProvider


class FailingFileSystem(FileSystem):
    """FileSystem that fails selected operations with a permission error."""

    def __init__(self, fail_on: set[str]) -> None:
        self.fail_on = fail_on

    def ensure_directory(self, path: Path) -> None:
        if "ensure_directory" in self.fail_on:
            raise StorageError(f"Failed to create directory '{path}': Permission denied")
        super().ensure_directory(path)

    def read_file(self, path: Path) -> bytes:
        if "read_file" in self.fail_on:
            raise PermissionError(13, "Permission denied", str(path))
        return super().read_file(path)

    def write_file(self, path: Path, data: bytes) -> None:
        if "write_file" in self.fail_on:
            raise StorageError(f"Failed to write '{path}': Permission denied")
        super().write_file(path, data)

    def path_exists(self, path: Path) -> bool:
        if "path_exists" in self.fail_on:
            raise StorageError(f"Failed to check '{path}': Permission denied")
        return super().path_exists(path)


@pytest.fixture
def failing_fs() -> Callable[..., FailingFileSystem]:
    """Factory for filesystems that fail the named operations."""

    def _make(*operations: str) -> FailingFileSystem:
        return FailingFileSystem(set(operations))

    return _make

"""Unit tests for concurrent reference image loading."""

import base64
import threading
import time
from pathlib import Path

import pytest

from imagepress.core.errors import ReferenceImageError
from imagepress.core.reference_loader import (
    DEFAULT_MIME_TYPE,
    load_reference_image,
    load_reference_images,
    mime_type_for_path,
)
from imagepress.core.storage import FileSystem


class DelayedFileSystem(FileSystem):
    """Reads files after a per-name delay, to reorder completions."""

    def __init__(self, delays: dict[str, float]) -> None:
        self.delays = delays

    def read_file(self, path: Path) -> bytes:
        time.sleep(self.delays.get(Path(path).name, 0))
        return super().read_file(path)


class BlockingFileSystem(FileSystem):
    """Blocks reads of one file until released; fails reads of another."""

    def __init__(self, blocked: str, failing: str) -> None:
        self.blocked = blocked
        self.failing = failing
        self.release = threading.Event()

    def read_file(self, path: Path) -> bytes:
        name = Path(path).name
        if name == self.blocked:
            self.release.wait(timeout=10)
        if name == self.failing:
            raise PermissionError(13, "Permission denied", str(path))
        return super().read_file(path)


@pytest.fixture
def reference_files(temp_dir: Path) -> list[Path]:
    """Three reference files with distinct contents."""
    paths = [temp_dir / "a.png", temp_dir / "b.jpg", temp_dir / "c.webp"]
    for index, path in enumerate(paths):
        path.write_bytes(f"image-{index}".encode())
    return paths


class TestMimeTypeForPath:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("cat.png", "image/png"),
            ("cat.jpg", "image/jpeg"),
            ("cat.jpeg", "image/jpeg"),
            ("cat.webp", "image/webp"),
            ("CAT.PNG", "image/png"),
            ("cat.JpEg", "image/jpeg"),
            ("cat.gif", DEFAULT_MIME_TYPE),
            ("cat", DEFAULT_MIME_TYPE),
        ],
    )
    def test_extension_mapping(self, name: str, expected: str):
        assert mime_type_for_path(name) == expected

    def test_only_last_suffix_counts(self):
        assert mime_type_for_path("archive.png.bak") == DEFAULT_MIME_TYPE


class TestLoadReferenceImage:
    def test_encodes_contents(self, temp_dir: Path, png_bytes: bytes):
        path = temp_dir / "ref.png"
        path.write_bytes(png_bytes)

        part = load_reference_image(path)

        assert part.mime_type == "image/png"
        assert base64.b64decode(part.data) == png_bytes

    def test_mime_type_follows_extension_not_contents(self, temp_dir: Path, png_bytes: bytes):
        path = temp_dir / "actually-png.jpg"
        path.write_bytes(png_bytes)

        assert load_reference_image(path).mime_type == "image/jpeg"

    def test_missing_file_names_path(self, temp_dir: Path):
        missing = temp_dir / "missing.png"

        with pytest.raises(ReferenceImageError) as exc_info:
            load_reference_image(missing)

        assert exc_info.value.path == missing
        assert str(missing) in str(exc_info.value)
        assert isinstance(exc_info.value.cause, FileNotFoundError)


class TestLoadReferenceImages:
    def test_empty_list(self):
        assert load_reference_images([]) == []

    def test_preserves_input_order(self, reference_files: list[Path]):
        parts = load_reference_images(reference_files)

        assert [part.raw_bytes() for part in parts] == [b"image-0", b"image-1", b"image-2"]
        assert [part.mime_type for part in parts] == ["image/png", "image/jpeg", "image/webp"]

    def test_order_independent_of_completion_order(self, reference_files: list[Path]):
        """The first file finishes last but still comes first."""
        fs = DelayedFileSystem({"a.png": 0.2, "b.jpg": 0.1, "c.webp": 0.0})

        parts = load_reference_images(reference_files, fs=fs, max_workers=3)

        assert [part.raw_bytes() for part in parts] == [b"image-0", b"image-1", b"image-2"]

    def test_single_worker(self, reference_files: list[Path]):
        parts = load_reference_images(reference_files, max_workers=1)
        assert len(parts) == 3

    def test_missing_file_fails_whole_load(self, reference_files: list[Path], temp_dir: Path):
        missing = temp_dir / "missing.png"
        paths = [reference_files[0], missing, reference_files[2]]

        with pytest.raises(ReferenceImageError) as exc_info:
            load_reference_images(paths)

        assert exc_info.value.path == missing

    def test_fails_fast_without_waiting_for_slow_reads(self, reference_files: list[Path]):
        """A failure is reported while another read is still blocked."""
        fs = BlockingFileSystem(blocked="a.png", failing="b.jpg")
        try:
            started = time.monotonic()
            with pytest.raises(ReferenceImageError) as exc_info:
                load_reference_images(reference_files, fs=fs, max_workers=3)
            elapsed = time.monotonic() - started
        finally:
            fs.release.set()

        assert exc_info.value.path == reference_files[1]
        assert elapsed < 5

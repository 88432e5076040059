"""Shared pytest fixtures for NaturalPS tests."""

import io
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest
from PIL import Image

from naturalps.core.config import NaturalPSConfig
from naturalps.core.generation import GenerationStrategy
from naturalps.core.models import GenerationResult, InlineImagePart
from naturalps.core.storage import TempStorage
from naturalps.core.transport import TransportAdapter


class RecordingStrategy(GenerationStrategy):
    """Generation strategy double that records calls.

    Returns *result* (default: text ``"ok"``) or raises *error*.
    """

    def __init__(
        self,
        name: str = "fake",
        result: GenerationResult | None = None,
        error: BaseException | None = None,
    ) -> None:
        self.name = name
        self.result = result
        self.error = error
        self.calls: list[tuple[str, list[InlineImagePart]]] = []

    def generate(self, prompt, images=()):
        self.calls.append((prompt, list(images)))
        if self.error is not None:
            raise self.error
        if self.result is None:
            return GenerationResult(text="ok")
        return self.result


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
def test_config(temp_dir: Path, monkeypatch) -> NaturalPSConfig:
    """Create a test configuration with temporary directories.

    Args:
        temp_dir: Temporary directory from fixture
        monkeypatch: Used to hide any real API key from the environment

    Returns:
        NaturalPSConfig instance for testing
    """
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.delenv("NATURALPS_GOOGLE_API_KEY", raising=False)
    return NaturalPSConfig(
        _env_file=None,
        google_api_key="test-key",
        scratch_dir=temp_dir / "tmp",
        public_dir=temp_dir / "public",
        request_timeout=5.0,
    )


@pytest.fixture
def storage(test_config: NaturalPSConfig) -> TempStorage:
    return TempStorage(test_config)


@pytest.fixture
def transport() -> TransportAdapter:
    return TransportAdapter(timeout=5.0, verify=True)


@pytest.fixture
def make_strategy() -> Callable[..., RecordingStrategy]:
    """Factory for :class:`RecordingStrategy` instances."""
    return RecordingStrategy


def _image_bytes(color: tuple[int, int, int], fmt: str) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    """A tiny red PNG."""
    return _image_bytes((255, 0, 0), "PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    """A tiny blue JPEG."""
    return _image_bytes((0, 0, 255), "JPEG")

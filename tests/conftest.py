"""Shared test fixtures for the document scan test suite."""

import io
import threading
import time
from collections.abc import Callable
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from docscan.models import PreprocessedImage, RecognitionResult
from docscan.recognition.base import RecognitionBackend

CARD_TEXT = (
    "محمد احمد علي حسن\n"
    "15 شارع التحرير الدقي الجيزة\n"
    "29503150123456\n"
    "01012345678\n"
)


def encode_image(image: np.ndarray, fmt: str = "PNG") -> bytes:
    """Encode an RGB array with Pillow."""
    buf = io.BytesIO()
    Image.fromarray(image).save(buf, format=fmt)
    return buf.getvalue()


class FakeBackend(RecognitionBackend):
    """Recognition backend returning a canned result.

    ``release`` makes the call block until the event is set; ``delay``
    sleeps before answering; ``exc`` is raised instead of answering.
    """

    def __init__(
        self,
        name: str,
        result: RecognitionResult | None = None,
        delay: float = 0.0,
        release: threading.Event | None = None,
        exc: Exception | None = None,
    ) -> None:
        self.name = name
        self.result = result or RecognitionResult(
            success=False, text="", error=f"{name} failed", backend=name
        )
        self.delay = delay
        self.release = release
        self.exc = exc
        self.calls: list[PreprocessedImage] = []

    def recognize(self, image: PreprocessedImage) -> RecognitionResult:
        self.calls.append(image)
        if self.release is not None:
            self.release.wait(timeout=10)
        elif self.delay:
            time.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return self.result


@pytest.fixture
def sample_color_image() -> np.ndarray:
    """Create a simple synthetic RGB test image."""
    image = np.zeros((200, 300, 3), dtype=np.uint8)
    image[50:150, 50:250] = (255, 255, 255)
    return image


@pytest.fixture
def png_bytes(sample_color_image: np.ndarray) -> bytes:
    """Encoded 300x200 PNG."""
    return encode_image(sample_color_image, "PNG")


@pytest.fixture
def large_jpeg_bytes() -> bytes:
    """Encoded 2400x1600 JPEG, larger than the default bound."""
    image = np.full((1600, 2400, 3), 90, dtype=np.uint8)
    image[400:1200, 600:1800] = (200, 180, 160)
    return encode_image(image, "JPEG")


@pytest.fixture
def preprocessed_image(sample_color_image: np.ndarray) -> PreprocessedImage:
    """A small JPEG wrapped as a preprocessed image."""
    return PreprocessedImage(
        data=encode_image(sample_color_image, "JPEG"), width=300, height=200
    )


@pytest.fixture
def card_text() -> str:
    """Recognized text of a fully readable identity card."""
    return CARD_TEXT


@pytest.fixture
def backend_factory() -> Callable[..., FakeBackend]:
    """Factory for canned recognition backends."""
    return FakeBackend


@pytest.fixture
def release_event():
    """Event that blocks slow fake backends; always set on teardown."""
    event = threading.Event()
    yield event
    event.set()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"

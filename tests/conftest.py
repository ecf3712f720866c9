"""Shared test fixtures for the slip ledger test suite."""

import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from slipledger.ocr.tesseract_engine import RecognitionResult

SAMPLE_SLIP_TEXT = "โอนเงินสำเร็จ\nจำนวนเงิน 1,250.00 บาท\nค่าธรรมเนียม 10.00 บาท\nวันที่ 22/02/2026"


class FakeEngine:
    """In-memory recognition engine recording what it was asked to do."""

    def __init__(self, text: str = SAMPLE_SLIP_TEXT, confidence: float | None = 91.5) -> None:
        self.text = text
        self.confidence = confidence
        self.progress_handler = None
        self.calls = 0
        self.closed = False

    def recognize(self, image: np.ndarray) -> RecognitionResult:
        self.calls += 1
        if self.progress_handler is not None:
            self.progress_handler(0.0)
            self.progress_handler(1.0)
        return RecognitionResult(text=self.text, confidence=self.confidence)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def sample_image() -> np.ndarray:
    """Create a simple synthetic grayscale test image."""
    image = np.full((200, 300), 230, dtype=np.uint8)
    image[80:120, 50:250] = 30
    return image


@pytest.fixture
def sample_color_image() -> np.ndarray:
    """Create a simple synthetic BGR test image."""
    image = np.full((200, 300, 3), 230, dtype=np.uint8)
    image[80:120, 50:250] = (30, 30, 30)
    return image


@pytest.fixture
def png_bytes(sample_color_image: np.ndarray) -> bytes:
    """Encode the synthetic color image as PNG bytes."""
    buf = io.BytesIO()
    Image.fromarray(sample_color_image).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def fake_engine_cls() -> type[FakeEngine]:
    """Expose the fake engine class for tests that build several engines."""
    return FakeEngine


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"

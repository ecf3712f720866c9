"""Tesseract recognition engine for Thai/English transfer slips.

Wraps ``pytesseract`` behind the ``recognize(image) -> {text, confidence}``
contract consumed by the OCR job runner.
"""

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
import pytesseract
from PIL import Image

from slipledger.errors import RecognitionError
from slipledger.utils.logger import get_logger

logger = get_logger(__name__)

ProgressHandler = Callable[[float], None]


@dataclass
class RecognitionResult:
    """Text and mean word confidence (0-100) for one recognized image."""

    text: str
    confidence: float | None


class TesseractEngine:
    """Single recognition engine instance.

    The engine is not safe to drive from two threads at once; the OCR job
    runner owns one instance and feeds it one image at a time.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        lang: Tesseract language string, ``eng+tha`` for bilingual slips.
        psm: Tesseract page segmentation mode.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        lang: str = "eng+tha",
        psm: int = 6,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.lang = lang
        self.psm = psm
        self.progress_handler: ProgressHandler | None = None
        self.closed = False

    def _report(self, progress: float) -> None:
        if self.progress_handler is not None:
            self.progress_handler(progress)

    def recognize(self, image: np.ndarray) -> RecognitionResult:
        """Recognize the text on a preprocessed slip image.

        Args:
            image: Preprocessed image as a numpy array.

        Returns:
            RecognitionResult with the full text and mean word confidence,
            or ``None`` confidence when no word was recognized.

        Raises:
            RecognitionError: If the engine is closed or Tesseract fails.
        """
        if self.closed:
            raise RecognitionError("Recognition engine has been closed")

        config = f"--psm {self.psm}"
        pil_image = Image.fromarray(image)
        self._report(0.0)

        try:
            text = pytesseract.image_to_string(pil_image, lang=self.lang, config=config)
            data = pytesseract.image_to_data(
                pil_image,
                lang=self.lang,
                config=config,
                output_type=pytesseract.Output.DICT,
            )
        except pytesseract.TesseractError as exc:
            raise RecognitionError(f"Tesseract failed: {exc}") from exc

        confidences = [
            float(conf)
            for conf, word in zip(data["conf"], data["text"])
            if float(conf) > 0 and str(word).strip()
        ]
        confidence = sum(confidences) / len(confidences) if confidences else None

        self._report(1.0)
        logger.info(
            "Recognized %d words with average confidence %s",
            len(confidences),
            f"{confidence:.2f}" if confidence is not None else "n/a",
        )
        return RecognitionResult(text=text, confidence=confidence)

    def close(self) -> None:
        """Release the engine. Further recognition attempts raise."""
        self.closed = True
        self.progress_handler = None
        logger.debug("Recognition engine closed")

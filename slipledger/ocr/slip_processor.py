"""End-to-end slip scanning: decode, preprocess, recognize, parse."""

import io
from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from slipledger.errors import ImageLoadError
from slipledger.extraction.slip_parser import SlipParseResult
from slipledger.preprocessing.pipeline import PreprocessingPipeline, QualityMetrics
from slipledger.utils.config import AppConfig
from slipledger.utils.logger import get_logger

from .job_runner import OcrJobRunner
from .tesseract_engine import ProgressHandler, TesseractEngine

logger = get_logger(__name__)


@dataclass
class SlipScanResult:
    """Parsed fields and image quality figures for one scanned slip."""

    source_file: str
    parse_result: SlipParseResult
    quality_metrics: QualityMetrics


def build_runner(config: AppConfig) -> OcrJobRunner:
    """Create a job runner whose engine is built from the OCR settings."""

    def engine_factory() -> TesseractEngine:
        return TesseractEngine(
            tesseract_cmd=config.ocr.tesseract_cmd,
            lang=config.ocr.lang,
            psm=config.ocr.psm,
        )

    return OcrJobRunner(
        engine_factory,
        placeholder_note=config.parser.placeholder_note,
        note_max_length=config.parser.note_max_length,
    )


class SlipProcessor:
    """Slip scanning pipeline.

    Args:
        config: Application configuration object.
        runner: Shared job runner. When omitted, the processor builds and
            owns one, and closes it in :meth:`close`.
    """

    def __init__(self, config: AppConfig, runner: OcrJobRunner | None = None) -> None:
        self.config = config
        self.preprocessing = PreprocessingPipeline(config.preprocessing)
        self._owns_runner = runner is None
        self.runner = runner if runner is not None else build_runner(config)

    def scan(
        self,
        source: Path | bytes,
        filename: str = "slip",
        on_progress: ProgressHandler | None = None,
    ) -> SlipScanResult:
        """Scan one slip image from a file path or raw bytes.

        Args:
            source: Path to an image file, or raw image bytes.
            filename: Display name for the source image.
            on_progress: Optional recognition progress callback.

        Returns:
            Parsed slip with preprocessing quality metrics.

        Raises:
            ImageLoadError: If the source is not a decodable image.
            RecognitionError: If the recognition engine fails.
        """
        logger.info("Scanning slip: %s", filename)
        image = self.load_image(source)
        processed, metrics = self.preprocessing.process(image)
        parsed = self.runner.run(processed, on_progress)
        return SlipScanResult(
            source_file=filename,
            parse_result=parsed,
            quality_metrics=metrics,
        )

    @staticmethod
    def load_image(source: Path | bytes) -> np.ndarray:
        """Decode an image into a BGR numpy array.

        Args:
            source: Path or raw bytes of a PNG, JPEG, WebP, or TIFF image.

        Returns:
            Image as a BGR ``uint8`` array.

        Raises:
            ImageLoadError: If the data cannot be decoded.
        """
        try:
            if isinstance(source, bytes):
                img = Image.open(io.BytesIO(source))
            else:
                img = Image.open(Path(source))
            rgb = np.array(img.convert("RGB"))
        except (UnidentifiedImageError, OSError) as exc:
            raise ImageLoadError(f"Cannot decode image: {exc}") from exc

        return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)

    def close(self) -> None:
        if self._owns_runner:
            self.runner.close()

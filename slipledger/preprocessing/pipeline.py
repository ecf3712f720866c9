"""Configurable image preprocessing pipeline for slip recognition.

Orchestrates resizing and contrast thresholding with quality metrics
tracking.
"""

from dataclasses import dataclass

import cv2
import numpy as np

from slipledger.utils.config import PreprocessingConfig
from slipledger.utils.logger import get_logger

from .enhance import enhance_slip, resize_to_width, to_gray

logger = get_logger(__name__)


@dataclass
class QualityMetrics:
    """Before/after image quality measurements."""

    sharpness_before: float
    sharpness_after: float
    contrast_before: float
    contrast_after: float


def calculate_sharpness(image: np.ndarray) -> float:
    """Calculate image sharpness using Laplacian variance.

    Args:
        image: Input image (BGR or grayscale).

    Returns:
        Sharpness score (higher means sharper).
    """
    return float(cv2.Laplacian(to_gray(image), cv2.CV_64F).var())


def calculate_contrast(image: np.ndarray) -> float:
    """Calculate image contrast as the standard deviation of pixel intensities."""
    return float(to_gray(image).std())


class PreprocessingPipeline:
    """Slip image preprocessing pipeline.

    Applies the steps enabled in the configuration and measures quality
    before and after processing.

    Args:
        config: Preprocessing configuration controlling which steps to apply.
    """

    def __init__(self, config: PreprocessingConfig) -> None:
        self.config = config

    def process(self, image: np.ndarray) -> tuple[np.ndarray, QualityMetrics]:
        """Run the full preprocessing pipeline on an image.

        Args:
            image: Input slip image (BGR or grayscale).

        Returns:
            Tuple of (processed_image, quality_metrics).
        """
        metrics = QualityMetrics(
            sharpness_before=calculate_sharpness(image),
            contrast_before=calculate_contrast(image),
            sharpness_after=0.0,
            contrast_after=0.0,
        )

        result = image.copy()

        if self.config.resize_enabled:
            result = resize_to_width(result, self.config.target_width)

        if self.config.enhance_enabled:
            result = enhance_slip(
                result,
                contrast=self.config.contrast,
                threshold_offset=self.config.threshold_offset,
                min_threshold=self.config.min_threshold,
                ink_darkening=self.config.ink_darkening,
            )

        metrics.sharpness_after = calculate_sharpness(result)
        metrics.contrast_after = calculate_contrast(result)

        logger.info(
            "Preprocessing complete: sharpness %.1f->%.1f, contrast %.1f->%.1f",
            metrics.sharpness_before,
            metrics.sharpness_after,
            metrics.contrast_before,
            metrics.contrast_after,
        )
        return result, metrics

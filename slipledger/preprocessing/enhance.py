"""Slip-specific resizing and contrast thresholding.

Photographed transfer slips are mostly a flat bright background with
dark glyphs. The threshold is derived from the bright-side histogram
peak so that paper tint and uneven lighting are flattened to white
while text strokes are pushed darker.
"""

import cv2
import numpy as np

from slipledger.utils.logger import get_logger

logger = get_logger(__name__)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an image to grayscale if it has color channels.

    Args:
        image: Input image (BGR, BGRA, or grayscale).

    Returns:
        Grayscale image.
    """
    if len(image.shape) == 3:
        if image.shape[2] == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return image


def resize_to_width(image: np.ndarray, target_width: int = 1800) -> np.ndarray:
    """Downscale an image to ``target_width`` pixels, keeping its aspect ratio.

    Images already narrower than the target are returned unchanged.
    """
    height, width = image.shape[:2]
    if width <= target_width:
        return image

    ratio = target_width / width
    new_height = max(1, round(height * ratio))
    resized = cv2.resize(image, (target_width, new_height), interpolation=cv2.INTER_AREA)
    logger.debug("Resized slip from %dx%d to %dx%d", width, height, target_width, new_height)
    return resized


def background_peak(gray: np.ndarray) -> int:
    """Return the most frequent intensity in the bright half (128-255)."""
    histogram = np.bincount(gray.ravel(), minlength=256)
    bright = histogram[128:256]
    if not bright.any():
        return 255
    return 128 + int(np.argmax(bright))


def contrast_factor(contrast: float) -> float:
    """Standard contrast-adjustment factor for a contrast amount in (-255, 259)."""
    return (259.0 * (contrast + 255.0)) / (255.0 * (259.0 - contrast))


def enhance_slip(
    image: np.ndarray,
    contrast: float = 60.0,
    threshold_offset: int = 25,
    min_threshold: int = 100,
    ink_darkening: int = 40,
) -> np.ndarray:
    """Flatten the slip background to white and darken the text.

    Args:
        image: Input image (BGR or grayscale).
        contrast: Contrast amount applied around mid-gray.
        threshold_offset: Distance below the background peak that still
            counts as background.
        min_threshold: Lower bound for the computed threshold.
        ink_darkening: Amount subtracted from non-background pixels.

    Returns:
        Grayscale ``uint8`` image ready for recognition.
    """
    gray = to_gray(image)
    if gray.dtype != np.uint8:
        gray = np.clip(gray, 0, 255).astype(np.uint8)

    threshold = max(min_threshold, background_peak(gray) - threshold_offset)

    factor = contrast_factor(contrast)
    stretched = np.clip(factor * (gray.astype(np.float32) - 128.0) + 128.0, 0, 255)
    darkened = np.maximum(stretched - ink_darkening, 0)
    result = np.where(stretched > threshold, 255.0, darkened).astype(np.uint8)

    logger.debug("Enhanced slip with threshold %d (contrast factor %.2f)", threshold, factor)
    return result

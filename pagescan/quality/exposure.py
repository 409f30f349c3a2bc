"""Brightness and contrast estimators."""

import logging
from typing import Dict, Optional

import cv2
import numpy as np

from pagescan.utils.image import to_gray_uint8, to_uint8

logger = logging.getLogger(__name__)

# Rec. 709 luma weights (perceived brightness)
_LUMA_WEIGHTS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float64)


def _luminance(image: np.ndarray) -> np.ndarray:
    """Per-pixel perceived luminance on a 0-255 scale, float64."""
    img_uint8 = to_uint8(image)
    if img_uint8.ndim == 3 and img_uint8.shape[2] >= 3:
        return img_uint8[:, :, :3].astype(np.float64) @ _LUMA_WEIGHTS
    return to_gray_uint8(img_uint8).astype(np.float64)


def brightness(image: np.ndarray, normalize: bool = False) -> float:
    """Mean perceived brightness of an image.

    Args:
        image: RGB image, float32 [0, 1] or uint8 [0, 255], or a gray image.
        normalize: Return the value in [0, 1] instead of [0, 255].

    Returns:
        Mean luminance.
    """
    luma = _luminance(image)
    if normalize:
        luma = luma / 255.0

    value = float(np.mean(luma))
    logger.debug(f"Brightness: {value:.3f}")
    return value


def contrast(
    image: np.ndarray,
    brightness_value: Optional[float] = None,
    normalize: bool = False,
) -> float:
    """RMS contrast: root mean squared deviation of luminance from the brightness.

    Args:
        image: RGB image, float32 [0, 1] or uint8 [0, 255], or a gray image.
        brightness_value: Reference brightness on the same scale as ``normalize``
            implies. Defaults to the image's own mean brightness.
        normalize: Work in [0, 1] instead of [0, 255].

    Returns:
        RMS contrast.
    """
    luma = _luminance(image)
    if normalize:
        luma = luma / 255.0

    if brightness_value is None:
        brightness_value = float(np.mean(luma))

    value = float(np.sqrt(np.mean((luma - brightness_value) ** 2)))
    logger.debug(f"Contrast: {value:.3f}")
    return value


def compute_histogram_stats(image: np.ndarray) -> Dict[str, float]:
    """Compute histogram-based statistics.

    Args:
        image: RGB image, float32 [0, 1] or uint8 [0, 255], or a gray image.

    Returns:
        Dictionary with histogram statistics:
        - mean_brightness: Mean of gray pixels [0, 1]
        - contrast: Standard deviation [0, 1]
        - dynamic_range: Max - min value [0, 1]
        - histogram_entropy: Shannon entropy of histogram
    """
    gray = to_gray_uint8(image)

    hist = cv2.calcHist([gray], [0], None, [256], [0, 256]).flatten()
    hist = hist / hist.sum()
    hist = hist[hist > 0]
    entropy = float(-np.sum(hist * np.log2(hist)))

    gray_f = gray.astype(np.float64) / 255.0

    return {
        'mean_brightness': float(np.mean(gray_f)),
        'contrast': float(np.std(gray_f)),
        'dynamic_range': float(np.max(gray_f) - np.min(gray_f)),
        'histogram_entropy': entropy,
    }

"""Sharpness metrics for blur assessment.

All metrics are computed on the 8-bit gray version of the image so that their
values (and the thresholds built on them) do not depend on whether the caller
passes float32 RGB [0, 1] or uint8 data.

References for the focus measures: Pech2000 (LAPV), Nayar89 (LAPM),
Krotkov86 (TENG), Santos97 (GLVN).
"""

import logging

import cv2
import numpy as np

from pagescan.utils.image import to_gray_uint8

logger = logging.getLogger(__name__)


def variance_of_laplacian(image: np.ndarray) -> float:
    """Compute sharpness using Laplacian variance (LAPV).

    High variance = lots of edges = sharp image.
    Low variance = few edges = likely blurry.

    Args:
        image: RGB image, float32 [0, 1] or uint8 [0, 255], or a gray image.

    Returns:
        Variance of the Laplacian response (0 for a flat image).
    """
    gray = to_gray_uint8(image)
    laplacian = cv2.Laplacian(gray, cv2.CV_64F)
    return float(laplacian.var())


def modified_laplacian(image: np.ndarray) -> float:
    """Compute the modified Laplacian focus measure (LAPM).

    Filters with the 1-D kernel [-1, 2, -1] along one axis and a 3-tap Gaussian
    along the other, in both directions, and averages the summed absolute
    responses.

    Args:
        image: RGB image, float32 [0, 1] or uint8 [0, 255], or a gray image.

    Returns:
        Mean of |Lx| + |Ly|.
    """
    gray = to_gray_uint8(image)

    m = np.array([-1.0, 2.0, -1.0], dtype=np.float64)
    g = cv2.getGaussianKernel(3, -1, cv2.CV_64F)

    lx = cv2.sepFilter2D(gray, cv2.CV_64F, m, g)
    ly = cv2.sepFilter2D(gray, cv2.CV_64F, g, m)

    return float(np.mean(np.abs(lx) + np.abs(ly)))


def tenengrad(image: np.ndarray, ksize: int = 3) -> float:
    """Compute the Tenengrad focus measure (TENG).

    Args:
        image: RGB image, float32 [0, 1] or uint8 [0, 255], or a gray image.
        ksize: Sobel kernel size (1, 3, 5 or 7).

    Returns:
        Mean of the squared gradient magnitude.
    """
    gray = to_gray_uint8(image)

    gx = cv2.Sobel(gray, cv2.CV_64F, 1, 0, ksize=ksize)
    gy = cv2.Sobel(gray, cv2.CV_64F, 0, 1, ksize=ksize)

    return float(np.mean(gx * gx + gy * gy))


def normalized_graylevel_variance(image: np.ndarray) -> float:
    """Compute the normalized gray-level variance (GLVN): variance / mean.

    Args:
        image: RGB image, float32 [0, 1] or uint8 [0, 255], or a gray image.

    Returns:
        Gray variance divided by gray mean, 0.0 for an all-black image.
    """
    gray = to_gray_uint8(image).astype(np.float64)

    mean = float(np.mean(gray))
    if mean <= 0.0:
        logger.debug("Gray mean is zero, normalized variance undefined; returning 0")
        return 0.0

    return float(np.var(gray)) / mean


def median_intensity(image: np.ndarray) -> int:
    """Median gray level from a 256-bin histogram.

    Returns the first intensity whose cumulative count exceeds half the pixels.
    """
    gray = to_gray_uint8(image)

    hist = cv2.calcHist([gray], [0], None, [256], [0, 256]).flatten()
    half = gray.size / 2.0
    cumulative = np.cumsum(hist)

    return int(np.searchsorted(cumulative, half, side="right"))

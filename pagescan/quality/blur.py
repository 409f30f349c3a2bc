"""Blur verdict built on the sharpness metrics."""

import logging
from dataclasses import dataclass

import numpy as np

from pagescan.quality.metrics import (
    modified_laplacian,
    normalized_graylevel_variance,
    tenengrad,
    variance_of_laplacian,
)

logger = logging.getLogger(__name__)

# Below both thresholds an image is considered blurry.
MIN_VARIANCE_OF_LAPLACIAN = 70.0
MIN_MODIFIED_LAPLACIAN = 4.0


@dataclass
class SharpnessReport:
    """All sharpness metrics of one image and the resulting verdict."""

    variance_of_laplacian: float
    modified_laplacian: float
    tenengrad: float
    normalized_graylevel_variance: float
    is_blurry: bool


def _blurry(lapv: float, lapm: float) -> bool:
    return lapv < MIN_VARIANCE_OF_LAPLACIAN and lapm < MIN_MODIFIED_LAPLACIAN


def is_blurry(image: np.ndarray) -> bool:
    """Return True if the image is probably too blurry for OCR.

    Both the variance of Laplacian and the modified Laplacian must fall below
    their thresholds; one low score alone is not enough.

    Args:
        image: RGB image, float32 [0, 1] or uint8 [0, 255], or a gray image.
    """
    lapv = variance_of_laplacian(image)
    lapm = modified_laplacian(image)

    if _blurry(lapv, lapm):
        logger.info(
            f"Blurry image: variance_of_laplacian={lapv:.3f}, "
            f"modified_laplacian={lapm:.3f}"
        )
        return True

    return False


def assess_sharpness(image: np.ndarray) -> SharpnessReport:
    """Compute every sharpness metric and the blur verdict in one pass."""
    lapv = variance_of_laplacian(image)
    lapm = modified_laplacian(image)

    report = SharpnessReport(
        variance_of_laplacian=lapv,
        modified_laplacian=lapm,
        tenengrad=tenengrad(image),
        normalized_graylevel_variance=normalized_graylevel_variance(image),
        is_blurry=_blurry(lapv, lapm),
    )

    logger.debug(
        f"Sharpness: lapv={report.variance_of_laplacian:.2f}, "
        f"lapm={report.modified_laplacian:.2f}, teng={report.tenengrad:.2f}, "
        f"glvn={report.normalized_graylevel_variance:.2f}, blurry={report.is_blurry}"
    )

    return report

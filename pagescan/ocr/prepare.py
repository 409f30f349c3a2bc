"""Binarize a page image for OCR.

gray -> (histogram equalization) -> bilateral filter -> adaptive threshold
-> (blend with the gray image)

Blending the binarized page back over the gray image softens isolated noise
pixels from thresholding while keeping text contrast high.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from pagescan.utils.image import match_representation, to_gray_uint8

logger = logging.getLogger(__name__)


@dataclass
class OcrConfig:
    """Tunable parameters of OCR preparation."""

    bilateral_diameter: int = 7
    bilateral_sigma: float = 75.0
    block_size: int = 13      # adaptive threshold neighborhood, odd
    threshold_c: float = 4.0  # constant subtracted from the local mean
    binary_weight: float = 0.6
    gray_weight: float = 0.4


def prepare_for_ocr(
    image: np.ndarray,
    equalize_hist: bool = False,
    blend: bool = True,
    config: Optional[OcrConfig] = None,
) -> np.ndarray:
    """Produce a thresholded gray image tuned for text legibility.

    Args:
        image: Page image, float32 RGB [0, 1] or uint8 (gray or RGB).
        equalize_hist: Equalize the gray histogram before thresholding.
        blend: Blend the binarized result with the gray image (0.6 / 0.4).
        config: Threshold and filter parameters. Defaults to OcrConfig().

    Returns:
        Single-channel image (H, W) in the input's representation. On failure,
        an unmodified copy of the input.
    """
    config = config or OcrConfig()

    try:
        gray = to_gray_uint8(image)

        if equalize_hist:
            gray = cv2.equalizeHist(gray)

        smoothed = cv2.bilateralFilter(
            gray,
            config.bilateral_diameter,
            config.bilateral_sigma,
            config.bilateral_sigma,
        )

        binary = cv2.adaptiveThreshold(
            smoothed, 255,
            cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY,
            config.block_size, config.threshold_c,
        )

        if blend:
            result = cv2.addWeighted(
                binary, config.binary_weight, gray, config.gray_weight, 0.0,
            )
        else:
            result = binary

    except Exception as e:
        logger.error(f"Preparing image for OCR failed with {e!r}", exc_info=True)
        return image.copy()

    logger.debug(
        f"Prepared {result.shape[1]}x{result.shape[0]} image for OCR "
        f"(equalize={equalize_hist}, blend={blend})"
    )

    return match_representation(result, image)

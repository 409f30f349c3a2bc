"""Perspective correction via homographic transform.

Takes detected page corners and warps the image to a fronto-parallel rectangle.
"""

import logging
from typing import Optional

import cv2
import numpy as np

from pagescan.geometry.corners import PointsLike, order_corners, target_rect_size
from pagescan.utils.image import match_representation, to_uint8

logger = logging.getLogger(__name__)


def correct_perspective(
    image: np.ndarray,
    corners: Optional[PointsLike],
) -> np.ndarray:
    """Warp the quadrilateral defined by four corners into a rectangle.

    The corners may be given in any order; they are put into canonical
    top-left, top-right, bottom-right, bottom-left order first. The output size
    is taken from the longer of each pair of opposite edges.

    Args:
        image: Input image, float32 RGB [0, 1] or uint8 (gray or RGB).
        corners: Four (x, y) points in image coordinates.

    Returns:
        New warped image in the input's representation. If the corners are not
        exactly four finite points or the warp fails, an unmodified copy of the
        input.
    """
    if corners is None:
        logger.warning("No corner points given, returning input unchanged")
        return image.copy()

    try:
        points = np.asarray(corners, dtype=np.float32).reshape(-1, 2)
        if len(points) != 4:
            logger.warning(
                f"Got {len(points)} instead of 4 corner points, returning input unchanged"
            )
            return image.copy()

        src = order_corners(points)
        width, height = target_rect_size(*src)
        out_w, out_h = int(round(width)), int(round(height))

        if out_w < 1 or out_h < 1:
            logger.warning(
                f"Degenerate output size {width:.1f}x{height:.1f} from corners, "
                "returning input unchanged"
            )
            return image.copy()

        dst = np.array([
            [0, 0],
            [width - 1, 0],
            [width - 1, height - 1],
            [0, height - 1],
        ], dtype=np.float32)

        matrix = cv2.getPerspectiveTransform(src, dst)

        # Warp in uint8 for consistent interpolation behavior
        warped_uint8 = cv2.warpPerspective(
            to_uint8(image),
            matrix,
            (out_w, out_h),
            flags=cv2.INTER_CUBIC,
            borderMode=cv2.BORDER_REPLICATE,
        )
    except Exception as e:
        logger.error(f"Perspective transformation failed with {e!r}", exc_info=True)
        return image.copy()

    logger.info(
        f"Perspective corrected: {image.shape[1]}x{image.shape[0]} -> {out_w}x{out_h}"
    )

    return match_representation(warped_uint8, image)

"""Corner ordering and quadrilateral measurements.

Pure functions on point arrays. Nothing here touches pixel data.
"""

from typing import Sequence, Tuple, Union

import numpy as np

PointsLike = Union[np.ndarray, Sequence[Sequence[float]]]


def order_corners(points: PointsLike) -> np.ndarray:
    """Order four corner points as: top-left, top-right, bottom-right, bottom-left.

    Top-left has the smallest x + y and bottom-right the largest. Top-right has
    the largest x - y (the smallest y - x) and bottom-left the smallest.

    Args:
        points: Four (x, y) points in any order, any array-like of shape (4, 2)
            or an OpenCV contour of shape (4, 1, 2).

    Returns:
        Ordered float32 array of shape (4, 2).

    Raises:
        ValueError: If the input does not hold exactly four points.
    """
    pts = np.asarray(points, dtype=np.float32).reshape(-1, 2)
    if len(pts) != 4:
        raise ValueError(f"Expected 4 corner points, got {len(pts)}")

    s = pts.sum(axis=1)
    d = np.diff(pts, axis=1).flatten()  # y - x

    ordered = np.zeros((4, 2), dtype=np.float32)
    ordered[0] = pts[np.argmin(s)]   # top-left
    ordered[1] = pts[np.argmin(d)]   # top-right
    ordered[2] = pts[np.argmax(s)]   # bottom-right
    ordered[3] = pts[np.argmax(d)]   # bottom-left

    return ordered


def target_rect_size(
    tl: np.ndarray,
    tr: np.ndarray,
    br: np.ndarray,
    bl: np.ndarray,
) -> Tuple[float, float]:
    """Size of the rectangle a quadrilateral is warped into.

    Uses the longer of each pair of opposite edges so a skewed page is never
    shrunk.

    Returns:
        (width, height) as floats.
    """
    tl, tr, br, bl = (np.asarray(p, dtype=np.float64) for p in (tl, tr, br, bl))

    width = max(np.linalg.norm(br - bl), np.linalg.norm(tr - tl))
    height = max(np.linalg.norm(tr - br), np.linalg.norm(tl - bl))

    return float(width), float(height)


def polygon_area(points: PointsLike) -> float:
    """Absolute area of a simple polygon (shoelace formula)."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 3:
        return 0.0
    x = pts[:, 0]
    y = pts[:, 1]
    return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))) / 2.0)


def full_frame_corners(width: int, height: int) -> np.ndarray:
    """Corners of the whole image: (0,0), (W,0), (0,H), (W,H).

    This is the no-op page used whenever no page boundary is found.
    """
    return np.array([
        [0, 0],
        [width, 0],
        [0, height],
        [width, height],
    ], dtype=np.float32)

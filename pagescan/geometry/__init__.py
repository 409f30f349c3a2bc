"""Geometry utilities: corner ordering and quadrilateral measurements."""

from pagescan.geometry.corners import (
    full_frame_corners,
    order_corners,
    polygon_area,
    target_rect_size,
)

__all__ = [
    'full_frame_corners',
    'order_corners',
    'polygon_area',
    'target_rect_size',
]

"""Debug visualization and output utilities.

Visualization is kept out of the detection code: the detector only hands its
intermediate artifacts to an observer, and the helpers here turn them into
images on disk.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional, Union

import cv2
import numpy as np

from pagescan.page_detection.detector import PageDetection
from pagescan.utils.image import to_uint8

logger = logging.getLogger(__name__)

# BGR colors for the ranked contours, largest first
_CONTOUR_COLORS = [
    (55, 55, 255),
    (0, 255, 0),
    (255, 0, 0),
    (0, 255, 255),
    (255, 255, 0),
]


def _to_bgr(image: np.ndarray) -> np.ndarray:
    """Convert a float32 [0,1] or uint8 gray/RGB/RGBA image to uint8 BGR."""
    img_uint8 = to_uint8(image)

    if img_uint8.ndim == 2:
        return cv2.cvtColor(img_uint8, cv2.COLOR_GRAY2BGR)
    elif img_uint8.shape[2] == 3:
        return cv2.cvtColor(img_uint8, cv2.COLOR_RGB2BGR)
    elif img_uint8.shape[2] == 4:
        return cv2.cvtColor(img_uint8, cv2.COLOR_RGBA2BGR)

    raise ValueError(f"Unsupported number of channels: {img_uint8.shape[2]}")


def save_image(
    image: np.ndarray,
    output_path: Union[str, Path],
    quality: int = 95
) -> Path:
    """Save an image; the format follows the file suffix (PNG, JPEG, ...).

    Args:
        image: Image array as float32 RGB [0,1], uint8 RGB or uint8 gray
        output_path: Destination path
        quality: JPEG quality (0-100), ignored for other formats

    Returns:
        The path written.

    Raises:
        IOError: If OpenCV could not encode or write the file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    img_uint8 = to_uint8(image)
    if img_uint8.ndim == 3:
        img_uint8 = _to_bgr(img_uint8)

    params: List[int] = []
    if output_path.suffix.lower() in ('.jpg', '.jpeg'):
        params = [cv2.IMWRITE_JPEG_QUALITY, quality]

    if not cv2.imwrite(str(output_path), img_uint8, params):
        raise IOError(f"Could not write image: {output_path}")

    return output_path


def save_debug_image(
    image: np.ndarray,
    output_path: Union[str, Path],
    description: Optional[str] = None,
    quality: int = 95
) -> None:
    """Save debug image with step numbering, always as JPEG for easy viewing.

    Args:
        image: Image array as float32 RGB [0,1] or uint8 RGB/gray [0,255]
        output_path: Path to save debug image (should include step number prefix)
        description: Optional description to log
        quality: JPEG quality (0-100)
    """
    output_path = Path(output_path)

    if output_path.suffix.lower() not in ['.jpg', '.jpeg']:
        output_path = output_path.with_suffix('.jpg')

    save_image(image, output_path, quality=quality)

    if description:
        logger.debug(f"Saved debug image: {output_path} - {description}")
    else:
        logger.debug(f"Saved debug image: {output_path}")


def draw_page_detection(
    image: np.ndarray,
    detection: PageDetection,
) -> np.ndarray:
    """Draw page detection overlay on image for debugging.

    Args:
        image: Input image as float32 RGB [0, 1] or uint8.
        detection: PageDetection result.

    Returns:
        Image with overlay as uint8 RGB.
    """
    img_bgr = _to_bgr(image)
    corners = np.round(detection.ordered_corners()).astype(np.int32)

    color = (0, 255, 0) if not detection.is_full_frame else (0, 0, 255)
    thickness = max(2, int(max(img_bgr.shape[:2]) / 300))

    for i in range(4):
        pt1 = tuple(int(v) for v in corners[i])
        pt2 = tuple(int(v) for v in corners[(i + 1) % 4])
        cv2.line(img_bgr, pt1, pt2, color, thickness)

    for corner in corners:
        cv2.circle(img_bgr, tuple(int(v) for v in corner), thickness * 3, (255, 0, 0), -1)

    text = f"{detection.outcome.value} strategy:{detection.strategy} area:{detection.area_ratio:.2f}"
    cv2.putText(img_bgr, text, (20, 40), cv2.FONT_HERSHEY_SIMPLEX, 1.0, color, 2)

    return cv2.cvtColor(img_bgr, cv2.COLOR_BGR2RGB)


def draw_ranked_contours(edges: np.ndarray, contours: List[np.ndarray]) -> np.ndarray:
    """Draw ranked candidate contours over an edge map, largest first.

    Returns:
        uint8 RGB image of the edge map size.
    """
    canvas = cv2.cvtColor(edges, cv2.COLOR_GRAY2BGR)

    for i, contour in enumerate(contours):
        color = _CONTOUR_COLORS[i % len(_CONTOUR_COLORS)]
        cv2.drawContours(canvas, [contour.astype(np.int32)], -1, color, 2)
        area = cv2.contourArea(contour)
        cv2.putText(
            canvas, f"#{i + 1} {area:.0f}",
            (10, canvas.shape[0] - 10 - 20 * i),
            cv2.FONT_HERSHEY_PLAIN, 1.2, color, 1,
        )

    return cv2.cvtColor(canvas, cv2.COLOR_BGR2RGB)


class DebugArtifactWriter:
    """Detection observer that writes intermediate artifacts as numbered images."""

    def __init__(self, debug_dir: Union[str, Path], prefix: str = "02") -> None:
        self.debug_dir = Path(debug_dir)
        self.prefix = prefix
        self._edges: Optional[np.ndarray] = None

    def __call__(self, stage: str, artifact: Any) -> None:
        if stage == "edges":
            self._edges = artifact
            save_debug_image(
                artifact,
                self.debug_dir / f"{self.prefix}a_edges.jpg",
                "Padded edge map"
            )
        elif stage == "contours" and self._edges is not None:
            save_debug_image(
                draw_ranked_contours(self._edges, artifact),
                self.debug_dir / f"{self.prefix}b_contours.jpg",
                f"Top {len(artifact)} ranked contours"
            )
        elif stage == "page" and self._edges is not None:
            save_debug_image(
                draw_ranked_contours(self._edges, [artifact.reshape(-1, 1, 2)]),
                self.debug_dir / f"{self.prefix}c_page_contour.jpg",
                "Accepted page contour"
            )

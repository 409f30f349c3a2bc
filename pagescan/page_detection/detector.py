"""Detect the document page in a photograph.

The page is searched for at a reduced resolution: details that confuse the
Canny edge detector (text lines, paper texture) disappear when the image is
shrunk to a fixed analysis envelope, while the page boundary survives. A solid
black border is added before edge detection so that a page touching the photo
frame still produces a closed contour.

Pipeline:
  gray -> bilateral filter -> resize -> black border -> Gaussian blur
  -> Canny (thresholds from the median) -> contours -> rank -> walk largest first

The walk stops at the first candidate that simplifies to a convex quadrilateral
of plausible size. When nothing qualifies (or anything fails) the full frame is
returned, so downstream perspective correction becomes a no-op.

Based on the 4-point transform and zero-parameter Canny techniques described at
pyimagesearch.com.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

import cv2
import numpy as np

from pagescan.geometry.corners import full_frame_corners, order_corners, polygon_area
from pagescan.page_detection.ranking import ContourRankingStrategy, get_ranking_strategy
from pagescan.quality.metrics import median_intensity
from pagescan.utils.image import to_gray_uint8

logger = logging.getLogger(__name__)

# Fraction of the original picture that a detected page must cover at least.
# Guards against cropping to a text block when the real boundary is missed.
MIN_PAGE_FRACTION = 0.5

# Pixels lost around the analysis area to the artificial border's edge contour
_BORDER_SLACK = 4

DetectionObserver = Callable[[str, Any], None]


class DetectionOutcome(str, Enum):
    """How a detection call ended."""

    FOUND = "found"        # a convex quadrilateral was accepted
    FALLBACK = "fallback"  # analysis ran, no candidate qualified
    ERROR = "error"        # analysis failed, full frame returned


@dataclass
class DetectionConfig:
    """Tunable parameters of the page detector."""

    analysis_size: Tuple[int, int] = (640, 480)  # (width, height) envelope
    border_size: int = 15
    max_candidates: int = 5
    bilateral_diameter: int = 7
    bilateral_sigma: float = 75.0
    blur_kernel: int = 5
    canny_sigma: float = 0.33
    approx_epsilon: float = 0.02  # fraction of the contour perimeter
    strategy: str = "area"
    contour_retrieval: str = "list"  # "list" (all contours) or "external"
    erode_iterations: int = 0


@dataclass
class PageDetection:
    """Result of page detection."""

    corners: np.ndarray  # shape (4, 2), (x, y) in original image coordinates
    outcome: DetectionOutcome
    strategy: str = field(default="area")
    area_ratio: float = field(default=1.0)  # page area / image area
    reason: str = field(default="")         # why the full frame was used

    @property
    def is_full_frame(self) -> bool:
        return self.outcome != DetectionOutcome.FOUND

    def ordered_corners(self) -> np.ndarray:
        """Corners as [top-left, top-right, bottom-right, bottom-left]."""
        return order_corners(self.corners)


def auto_canny_thresholds(image: np.ndarray, sigma: float = 0.33) -> Tuple[int, int]:
    """Derive Canny thresholds from the median intensity of an image.

    Returns:
        (low, high) where low = max(0, (1 - sigma) * median) and
        high = max(255, (1 + sigma) * median).
    """
    median = median_intensity(image)
    lower = int(max(0.0, (1.0 - sigma) * median))
    upper = int(max(255.0, (1.0 + sigma) * median))
    return lower, upper


def _analysis_ratio(width: int, height: int, analysis_size: Tuple[int, int]) -> float:
    """Scale factor that fits (width, height) into the analysis envelope."""
    env_w, env_h = analysis_size
    return min(env_w / width, env_h / height)


def _edge_map(
    image: np.ndarray,
    config: DetectionConfig,
) -> Tuple[np.ndarray, float]:
    """Build the padded edge map used for contour search.

    Returns:
        (edges, ratio) where ratio maps original coordinates to analysis
        coordinates (before padding).
    """
    height, width = image.shape[:2]

    gray = to_gray_uint8(image)

    # Bilateral filter keeps edges better than a Gaussian blur
    smoothed = cv2.bilateralFilter(
        gray,
        config.bilateral_diameter,
        config.bilateral_sigma,
        config.bilateral_sigma,
    )

    ratio = _analysis_ratio(width, height, config.analysis_size)
    new_size = (max(1, int(round(width * ratio))), max(1, int(round(height * ratio))))
    interpolation = cv2.INTER_AREA if ratio < 1.0 else cv2.INTER_LINEAR
    working = cv2.resize(smoothed, new_size, interpolation=interpolation)

    b = config.border_size
    working = cv2.copyMakeBorder(working, b, b, b, b, cv2.BORDER_CONSTANT, value=0)

    k = config.blur_kernel
    working = cv2.GaussianBlur(working, (k, k), 0)

    if config.erode_iterations > 0:
        kernel3 = cv2.getStructuringElement(cv2.MORPH_RECT, (3, 3))
        working = cv2.erode(working, kernel3, iterations=config.erode_iterations)

    lower, upper = auto_canny_thresholds(working, config.canny_sigma)
    edges = cv2.Canny(working, lower, upper, apertureSize=3, L2gradient=True)

    logger.debug(
        f"Edge map: {width}x{height} -> {new_size[0]}x{new_size[1]} "
        f"(ratio={ratio:.3f}, border={b}), canny=({lower}, {upper})"
    )

    return edges, ratio


def _find_contours(edges: np.ndarray, retrieval: str) -> List[np.ndarray]:
    if retrieval == "external":
        mode = cv2.RETR_EXTERNAL
    elif retrieval == "list":
        mode = cv2.RETR_LIST
    else:
        raise ValueError(f"Unknown contour retrieval mode: {retrieval!r}")

    contours, _ = cv2.findContours(edges, mode, cv2.CHAIN_APPROX_SIMPLE)
    return list(contours)


def _select_page_contour(
    candidates: List[np.ndarray],
    analysis_area: float,
    min_page_fraction: float,
    approx_epsilon: float,
) -> Tuple[Optional[np.ndarray], str]:
    """Walk ranked candidates, largest first, and pick the page quadrilateral.

    Returns:
        (approx, reason): the accepted 4-point contour or None, and a short
        reason when nothing was accepted.
    """
    min_area = analysis_area * min_page_fraction
    reason = "no candidate contours"

    for contour in candidates:
        peri = cv2.arcLength(contour.astype(np.float32), True)
        approx = cv2.approxPolyDP(contour.astype(np.float32), approx_epsilon * peri, True)
        approx_int = approx.astype(np.int32)

        area = float(cv2.contourArea(approx))
        convex = bool(cv2.isContourConvex(approx_int))

        logger.debug(
            f"Candidate: points={len(contour)}, approx={len(approx)}, "
            f"convex={convex}, area={area:.0f}, analysis_area={analysis_area:.0f}"
        )

        if area < min_area:
            # Ranked descending: everything after this is smaller still
            logger.info(
                f"Largest remaining candidate too small for a page: "
                f"{area:.0f} < {min_area:.0f}"
            )
            return None, "page candidates too small"

        if area > analysis_area:
            logger.debug(f"Skipping border contour: area {area:.0f} > {analysis_area:.0f}")
            reason = "only the border contour was found"
            continue

        if len(approx) == 4 and convex:
            return approx.reshape(4, 2), ""

        logger.debug(
            f"Rejected candidate: {len(approx)} points, convex={convex}, area={area:.0f}"
        )
        reason = "no convex quadrilateral among the candidates"

    return None, reason


def _fallback(
    width: int,
    height: int,
    outcome: DetectionOutcome,
    strategy: str,
    reason: str,
) -> PageDetection:
    return PageDetection(
        corners=full_frame_corners(width, height),
        outcome=outcome,
        strategy=strategy,
        area_ratio=1.0,
        reason=reason,
    )


def detect_page(
    image: np.ndarray,
    min_page_fraction: float = MIN_PAGE_FRACTION,
    strategy: Optional[str] = None,
    config: Optional[DetectionConfig] = None,
    observer: Optional[DetectionObserver] = None,
) -> PageDetection:
    """Detect the document page in a photograph.

    Args:
        image: Input image, float32 RGB [0, 1] or uint8 RGB / gray.
        min_page_fraction: Minimum page area as a fraction of the image area.
        strategy: Contour ranking strategy name ("area", "min_rect",
            "convex_hull"). Defaults to ``config.strategy``.
        config: Detector parameters. Defaults to DetectionConfig().
        observer: Optional callback receiving intermediate artifacts as
            (stage, artifact): ("edges", edge map), ("contours", ranked
            candidates), ("page", accepted quadrilateral in analysis
            coordinates). Used for debug output.

    Returns:
        PageDetection. Never raises for image problems: failures yield the
        full-frame corners with outcome ERROR.

    Raises:
        ValueError: If the strategy name is unknown.
    """
    config = config or DetectionConfig()
    strategy_name = strategy or config.strategy
    ranking: ContourRankingStrategy = get_ranking_strategy(strategy_name)

    if image.ndim < 2:
        logger.warning(f"Expected a 2-D or 3-D image, got shape {image.shape}, using full frame")
        return _fallback(0, 0, DetectionOutcome.ERROR, strategy_name, "not an image")

    height, width = image.shape[:2]
    image_area = float(width * height)

    if width == 0 or height == 0:
        logger.warning("Empty image, using full frame")
        return _fallback(width, height, DetectionOutcome.ERROR, strategy_name, "empty image")

    try:
        edges, ratio = _edge_map(image, config)
        if observer is not None:
            observer("edges", edges)

        contours = _find_contours(edges, config.contour_retrieval)
        candidates = ranking.rank(contours, config.max_candidates)
        logger.debug(
            f"Contours: {len(contours)} found, {len(candidates)} kept "
            f"(strategy={ranking.name})"
        )
        if observer is not None:
            observer("contours", candidates)

        border = config.border_size
        analysis_area = float(
            (edges.shape[0] - 2 * border - _BORDER_SLACK)
            * (edges.shape[1] - 2 * border - _BORDER_SLACK)
        )

        page, reason = _select_page_contour(
            candidates, analysis_area, min_page_fraction, config.approx_epsilon,
        )

        if page is None:
            logger.info(f"No page boundary detected ({reason}), using full frame")
            return _fallback(
                width, height, DetectionOutcome.FALLBACK, strategy_name, reason,
            )

        if observer is not None:
            observer("page", page)

        corners = np.round((page.astype(np.float64) - border) / ratio)
        corners[:, 0] = np.clip(corners[:, 0], 0, width)
        corners[:, 1] = np.clip(corners[:, 1], 0, height)
        corners = corners.astype(np.float32)

    except Exception as e:
        logger.error(f"Finding page failed with {e!r}", exc_info=True)
        return _fallback(width, height, DetectionOutcome.ERROR, strategy_name, str(e))

    area_ratio = polygon_area(order_corners(corners)) / image_area

    if area_ratio < min_page_fraction or area_ratio > 1.0:
        logger.info(
            f"Rescaled page area ratio {area_ratio:.3f} outside "
            f"[{min_page_fraction:.2f}, 1.0], using full frame"
        )
        return _fallback(
            width, height, DetectionOutcome.FALLBACK, strategy_name,
            "rescaled page outside area bounds",
        )

    logger.info(
        f"Page detected via {strategy_name}: area_ratio={area_ratio:.3f}, "
        f"corners={corners.astype(int).tolist()}"
    )

    return PageDetection(
        corners=corners,
        outcome=DetectionOutcome.FOUND,
        strategy=strategy_name,
        area_ratio=area_ratio,
    )

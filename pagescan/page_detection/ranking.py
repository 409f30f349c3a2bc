"""Contour ranking strategies for page detection.

A page is one of the largest regions in the edge map, so candidates are ranked
by an area proxy and only the top few are examined. Three proxies are offered
because edge maps of real photos vary in quality:

- "area": raw contour area. Fastest, but an open (broken) contour has almost no
  area and drops out of the ranking.
- "min_rect": area of the minimum-area rotated bounding rectangle. Tolerates
  open contours; non-convex survivors are replaced by their rectangle.
- "convex_hull": every non-convex contour is replaced by its convex hull before
  ranking by area. Tolerates small dents from compression artifacts.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Sequence

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class ContourRankingStrategy(ABC):
    """Ranks candidate contours by how plausibly they outline the page."""

    name: str = "base"

    @abstractmethod
    def score(self, contour: np.ndarray) -> float:
        """Area proxy used for ranking. Larger is more page-like."""

    def close(self, contour: np.ndarray) -> np.ndarray:
        """Return a closed version of the contour. Identity by default."""
        return contour

    def rank(self, contours: Sequence[np.ndarray], limit: int) -> List[np.ndarray]:
        """Sort contours by score (descending), keep ``limit`` and close them.

        Args:
            contours: Contours as returned by cv2.findContours.
            limit: Number of candidates to keep.

        Returns:
            New list of at most ``limit`` contours, largest first.
        """
        ranked = sorted(contours, key=self.score, reverse=True)[:max(0, limit)]
        return [self.close(c) for c in ranked]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class AreaRanking(ContourRankingStrategy):
    """Rank by raw contour area."""

    name = "area"

    def score(self, contour: np.ndarray) -> float:
        return float(cv2.contourArea(contour))


class MinRectRanking(ContourRankingStrategy):
    """Rank by the area of the minimum-area bounding rectangle."""

    name = "min_rect"

    def score(self, contour: np.ndarray) -> float:
        try:
            _, (w, h), _ = cv2.minAreaRect(contour.astype(np.float32))
        except cv2.error as e:
            logger.warning(f"minAreaRect failed for contour of {len(contour)} points: {e}")
            return 0.0
        return float(w * h)

    def close(self, contour: np.ndarray) -> np.ndarray:
        if cv2.isContourConvex(contour):
            return contour
        box = cv2.boxPoints(cv2.minAreaRect(contour.astype(np.float32)))
        return box.reshape(-1, 1, 2).astype(np.float32)


class ConvexHullRanking(ContourRankingStrategy):
    """Replace non-convex contours by their convex hull, then rank by area."""

    name = "convex_hull"

    def score(self, contour: np.ndarray) -> float:
        return float(cv2.contourArea(contour))

    def close(self, contour: np.ndarray) -> np.ndarray:
        if cv2.isContourConvex(contour):
            return contour
        return cv2.convexHull(contour)

    def rank(self, contours: Sequence[np.ndarray], limit: int) -> List[np.ndarray]:
        # Hulls can be much larger than the raw contour, so close before sorting
        closed = [self.close(c) for c in contours]
        return sorted(closed, key=self.score, reverse=True)[:max(0, limit)]


_STRATEGIES: Dict[str, type] = {
    AreaRanking.name: AreaRanking,
    MinRectRanking.name: MinRectRanking,
    ConvexHullRanking.name: ConvexHullRanking,
}

RANKING_STRATEGIES = tuple(_STRATEGIES)


def get_ranking_strategy(name: str) -> ContourRankingStrategy:
    """Return a ranking strategy by name.

    Raises:
        ValueError: If the name is not one of RANKING_STRATEGIES.
    """
    try:
        return _STRATEGIES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown contour ranking strategy: {name!r}. "
            f"Use one of {', '.join(repr(n) for n in RANKING_STRATEGIES)}."
        ) from None

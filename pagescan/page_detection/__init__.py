"""Page detection and perspective correction module."""

from pagescan.page_detection.detector import (
    MIN_PAGE_FRACTION,
    DetectionConfig,
    DetectionOutcome,
    PageDetection,
    detect_page,
)
from pagescan.page_detection.perspective import correct_perspective
from pagescan.page_detection.ranking import (
    RANKING_STRATEGIES,
    AreaRanking,
    ContourRankingStrategy,
    ConvexHullRanking,
    MinRectRanking,
    get_ranking_strategy,
)

__all__ = [
    "MIN_PAGE_FRACTION",
    "DetectionConfig",
    "DetectionOutcome",
    "PageDetection",
    "detect_page",
    "correct_perspective",
    "RANKING_STRATEGIES",
    "AreaRanking",
    "ContourRankingStrategy",
    "ConvexHullRanking",
    "MinRectRanking",
    "get_ranking_strategy",
]

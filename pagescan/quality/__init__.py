"""Image-quality metrics: sharpness, blur verdict, brightness and contrast."""

from pagescan.quality.metrics import (
    variance_of_laplacian,
    modified_laplacian,
    tenengrad,
    normalized_graylevel_variance,
    median_intensity,
)
from pagescan.quality.exposure import (
    brightness,
    contrast,
    compute_histogram_stats,
)
from pagescan.quality.blur import (
    MIN_MODIFIED_LAPLACIAN,
    MIN_VARIANCE_OF_LAPLACIAN,
    SharpnessReport,
    assess_sharpness,
    is_blurry,
)

__all__ = [
    # Sharpness metrics
    'variance_of_laplacian',
    'modified_laplacian',
    'tenengrad',
    'normalized_graylevel_variance',
    'median_intensity',
    # Exposure
    'brightness',
    'contrast',
    'compute_histogram_stats',
    # Blur verdict
    'MIN_MODIFIED_LAPLACIAN',
    'MIN_VARIANCE_OF_LAPLACIAN',
    'SharpnessReport',
    'assess_sharpness',
    'is_blurry',
]

"""Simplest color balance: percentile clipping and histogram stretch.

In a well balanced photo the brightest color should be white and the darkest
black. Each channel is clipped at its low and high percentiles (so a few
outliers do not dominate) and then stretched linearly over the full range.
This is the technique behind Photoshop's "auto levels".

http://web.stanford.edu/~sujason/ColorBalancing/simplestcb.html
"""

import logging
import math

import numpy as np

from pagescan.utils.image import match_representation, to_uint8

logger = logging.getLogger(__name__)

# Percentage of pixels clipped in total (half at each end) when the caller's
# value is unusable.
DEFAULT_BALANCE_PERCENT = 1.0


def _percentile_bounds(values: np.ndarray, half_percent: float) -> tuple:
    """Low and high clipping values of a flattened, sorted channel."""
    n = values.size
    low_idx = int(math.floor(n * half_percent))
    high_idx = int(math.ceil(n * (1.0 - half_percent)))
    low_idx = min(max(low_idx, 0), n - 1)
    high_idx = min(max(high_idx, 0), n - 1)
    return float(values[low_idx]), float(values[high_idx])


def simplest_color_balance(
    image: np.ndarray,
    percent: float = DEFAULT_BALANCE_PERCENT,
    full_range: bool = True,
) -> np.ndarray:
    """Balance colors by per-channel percentile clipping and stretching.

    Args:
        image: Input image, float32 RGB [0, 1] or uint8 (gray or RGB).
        percent: Percentage of pixels to saturate, split evenly between the
            dark and bright ends. Values <= 0 or >= 100 are replaced by
            DEFAULT_BALANCE_PERCENT.
        full_range: Stretch to [0, 255]. When False, stretch to half of that
            range ([0, 127.5]).

    Returns:
        New balanced image in the input's representation.
    """
    if not 0 < percent < 100:
        logger.warning(
            f"Invalid balance percent {percent}, using {DEFAULT_BALANCE_PERCENT}"
        )
        percent = DEFAULT_BALANCE_PERCENT

    half_percent = percent / 200.0
    top = 255.0 if full_range else 255.0 / 2

    img_uint8 = to_uint8(image)
    channels = img_uint8[:, :, np.newaxis] if img_uint8.ndim == 2 else img_uint8

    balanced = np.empty(channels.shape, dtype=np.float64)

    for i in range(channels.shape[2]):
        channel = channels[:, :, i].astype(np.float64)
        low_val, high_val = _percentile_bounds(np.sort(channel, axis=None), half_percent)

        clipped = np.clip(channel, low_val, high_val)

        if high_val > low_val:
            balanced[:, :, i] = (clipped - low_val) * (top / (high_val - low_val))
        else:
            # Flat channel: nothing to stretch
            balanced[:, :, i] = clipped

        logger.debug(f"Channel {i}: clip [{low_val:.0f}, {high_val:.0f}] -> [0, {top:.1f}]")

    result = np.clip(np.round(balanced), 0, 255).astype(np.uint8)
    if img_uint8.ndim == 2:
        result = result[:, :, 0]

    return match_representation(result, image)

"""Color and lighting normalization.

Percentile-based histogram stretching used to even out lighting before page
detection or OCR preparation.
"""

from pagescan.color.balance import (
    DEFAULT_BALANCE_PERCENT,
    simplest_color_balance,
)

__all__ = [
    'DEFAULT_BALANCE_PERCENT',
    'simplest_color_balance',
]

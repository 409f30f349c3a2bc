"""OCR preparation of corrected page images."""

from pagescan.ocr.prepare import OcrConfig, prepare_for_ocr

__all__ = [
    "OcrConfig",
    "prepare_for_ocr",
]

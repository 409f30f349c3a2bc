"""Conversions between the pipeline's float32 RGB images and 8-bit arrays.

The pipeline carries images as float32 RGB [0, 1] (as produced by the loader),
while most OpenCV primitives used for detection and metrics want uint8. Every
stage converts at its boundary and hands back a result in the caller's
representation.
"""

import numpy as np
import cv2


def is_float_image(image: np.ndarray) -> bool:
    """Return True for float images, which are assumed to be in [0, 1]."""
    return np.issubdtype(image.dtype, np.floating)


def to_uint8(image: np.ndarray) -> np.ndarray:
    """Convert an image to uint8 [0, 255], keeping its channel layout.

    Args:
        image: float image in [0, 1] or any integer image.

    Returns:
        New uint8 array (never a view of the input).
    """
    if is_float_image(image):
        return np.round(np.clip(image, 0.0, 1.0) * 255).astype(np.uint8)
    if image.dtype == np.uint8:
        return image.copy()
    return np.clip(image, 0, 255).astype(np.uint8)


def to_gray_uint8(image: np.ndarray) -> np.ndarray:
    """Convert an image to a single-channel uint8 gray image.

    Three-channel input is treated as RGB, four-channel as RGBA.
    """
    img_uint8 = to_uint8(image)

    if img_uint8.ndim == 2:
        return img_uint8
    if img_uint8.shape[2] == 1:
        return img_uint8[:, :, 0].copy()
    if img_uint8.shape[2] == 3:
        return cv2.cvtColor(img_uint8, cv2.COLOR_RGB2GRAY)
    if img_uint8.shape[2] == 4:
        return cv2.cvtColor(img_uint8, cv2.COLOR_RGBA2GRAY)

    raise ValueError(f"Unsupported number of channels: {img_uint8.shape[2]}")


def match_representation(result: np.ndarray, like: np.ndarray) -> np.ndarray:
    """Return a uint8 result in the same representation family as ``like``.

    Float inputs get float32 [0, 1] back, everything else stays uint8.
    """
    if is_float_image(like):
        return result.astype(np.float32) / 255.0
    return result

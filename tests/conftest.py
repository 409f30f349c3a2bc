"""Shared synthetic images for the test suite."""

import cv2
import numpy as np
import pytest


def create_outlined_page_image(
    width: int = 800,
    height: int = 600,
    top_left: tuple = (100, 100),
    bottom_right: tuple = (700, 500),
    page_gray: int = 128,
    outline_thickness: int = 4,
) -> np.ndarray:
    """White canvas with a black-outlined gray rectangle (the page).

    Returns:
        Float32 RGB image [0, 1] with shape (height, width, 3).
    """
    canvas = np.full((height, width, 3), 255, dtype=np.uint8)
    cv2.rectangle(canvas, top_left, bottom_right, (page_gray,) * 3, -1)
    cv2.rectangle(canvas, top_left, bottom_right, (0, 0, 0), outline_thickness)
    return canvas.astype(np.float32) / 255.0


def create_checkerboard(size: int = 400, square: int = 8) -> np.ndarray:
    """uint8 gray checkerboard with hard black/white squares."""
    idx = np.arange(size) // square
    board = ((idx[:, None] + idx[None, :]) % 2) * 255
    return board.astype(np.uint8)


@pytest.fixture
def page_image() -> np.ndarray:
    return create_outlined_page_image()


@pytest.fixture
def flat_image() -> np.ndarray:
    return np.full((300, 400, 3), 0.5, dtype=np.float32)


@pytest.fixture
def checkerboard() -> np.ndarray:
    return create_checkerboard()

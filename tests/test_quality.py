"""Tests for sharpness metrics, the blur verdict and exposure estimators."""

import logging

import numpy as np
import pytest

from pagescan.quality import (
    MIN_MODIFIED_LAPLACIAN,
    MIN_VARIANCE_OF_LAPLACIAN,
    assess_sharpness,
    brightness,
    compute_histogram_stats,
    contrast,
    is_blurry,
    median_intensity,
    modified_laplacian,
    normalized_graylevel_variance,
    tenengrad,
    variance_of_laplacian,
)


class TestSharpnessMetrics:

    def test_flat_image_scores_zero(self, flat_image: np.ndarray) -> None:
        assert variance_of_laplacian(flat_image) == pytest.approx(0.0)
        assert modified_laplacian(flat_image) == pytest.approx(0.0)
        assert tenengrad(flat_image) == pytest.approx(0.0)
        assert normalized_graylevel_variance(flat_image) == pytest.approx(0.0)

    def test_checkerboard_is_sharp(self, checkerboard: np.ndarray) -> None:
        assert variance_of_laplacian(checkerboard) > MIN_VARIANCE_OF_LAPLACIAN
        assert modified_laplacian(checkerboard) > MIN_MODIFIED_LAPLACIAN
        assert tenengrad(checkerboard) > 0.0

    def test_float_and_uint8_agree(self, checkerboard: np.ndarray) -> None:
        as_float = np.stack([checkerboard] * 3, axis=-1).astype(np.float32) / 255.0
        assert variance_of_laplacian(as_float) == pytest.approx(
            variance_of_laplacian(checkerboard)
        )
        assert modified_laplacian(as_float) == pytest.approx(
            modified_laplacian(checkerboard)
        )

    def test_glvn_black_image(self) -> None:
        assert normalized_graylevel_variance(np.zeros((20, 20), dtype=np.uint8)) == 0.0

    def test_glvn_two_levels(self) -> None:
        image = np.zeros((10, 10), dtype=np.uint8)
        image[:, 5:] = 200
        # mean 100, variance 100^2
        assert normalized_graylevel_variance(image) == pytest.approx(100.0)

    def test_unsupported_channel_count(self) -> None:
        with pytest.raises(ValueError):
            variance_of_laplacian(np.zeros((10, 10, 2), dtype=np.uint8))


class TestMedianIntensity:

    def test_uniform(self) -> None:
        assert median_intensity(np.full((10, 10), 100, dtype=np.uint8)) == 100

    def test_three_levels(self) -> None:
        image = np.repeat(np.array([10, 20, 30], dtype=np.uint8), 30).reshape(9, 10)
        assert median_intensity(image) == 20


class TestBlurVerdict:

    def test_flat_image_is_blurry(self, flat_image: np.ndarray) -> None:
        assert is_blurry(flat_image)

    def test_smooth_gradient_is_blurry(self) -> None:
        gradient = np.tile(np.linspace(0, 1, 300, dtype=np.float32), (200, 1))
        assert is_blurry(gradient)

    def test_checkerboard_is_not_blurry(self, checkerboard: np.ndarray) -> None:
        assert not is_blurry(checkerboard)

    def test_blurry_image_is_logged(self, flat_image: np.ndarray, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="pagescan.quality.blur"):
            is_blurry(flat_image)
        assert "Blurry image" in caplog.text

    def test_report_matches_verdict(self, checkerboard: np.ndarray, flat_image: np.ndarray) -> None:
        sharp = assess_sharpness(checkerboard)
        flat = assess_sharpness(flat_image)

        assert sharp.is_blurry is False
        assert flat.is_blurry is True
        assert sharp.variance_of_laplacian == pytest.approx(variance_of_laplacian(checkerboard))
        assert sharp.tenengrad > flat.tenengrad


class TestExposure:

    def test_brightness_of_pure_red(self) -> None:
        image = np.zeros((4, 4, 3), dtype=np.uint8)
        image[:, :, 0] = 255
        assert brightness(image) == pytest.approx(0.2126 * 255)
        assert brightness(image, normalize=True) == pytest.approx(0.2126)

    def test_brightness_float_input(self, flat_image: np.ndarray) -> None:
        # 0.5 rounds to 128 in 8 bits
        assert brightness(flat_image) == pytest.approx(128.0)

    def test_contrast_of_flat_image(self, flat_image: np.ndarray) -> None:
        assert contrast(flat_image) == pytest.approx(0.0)

    def test_contrast_with_reference_brightness(self) -> None:
        image = np.full((4, 4), 100, dtype=np.uint8)
        assert contrast(image, brightness_value=90.0) == pytest.approx(10.0)

    def test_histogram_stats(self, checkerboard: np.ndarray) -> None:
        stats = compute_histogram_stats(checkerboard)

        assert stats['mean_brightness'] == pytest.approx(0.5)
        assert stats['contrast'] == pytest.approx(0.5)
        assert stats['dynamic_range'] == pytest.approx(1.0)
        assert stats['histogram_entropy'] == pytest.approx(1.0)

"""End-to-end tests for the pipeline orchestrator."""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from pagescan.page_detection.detector import DetectionOutcome
from pagescan.pipeline import Pipeline, PipelineConfig, PipelineResult
from pagescan.utils.image import to_uint8

from conftest import create_outlined_page_image


@pytest.fixture
def page_file(tmp_path: Path) -> Path:
    path = tmp_path / "page.png"
    Image.fromarray(to_uint8(create_outlined_page_image())).save(path)
    return path


@pytest.fixture
def flat_file(tmp_path: Path) -> Path:
    path = tmp_path / "flat.png"
    Image.fromarray(np.full((300, 400, 3), 128, dtype=np.uint8)).save(path)
    return path


@pytest.fixture
def pipeline() -> Pipeline:
    return Pipeline(PipelineConfig(page_detect_min_page_fraction=0.25))


class TestPipelineConfig:

    def test_defaults(self) -> None:
        config = PipelineConfig()
        assert config.page_detect_strategy == "area"
        assert config.page_detect_min_page_fraction == 0.5
        assert config.balance_percent is None
        assert config.ocr_blend is True
        assert config.ocr_equalize_hist is False

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PAGESCAN_STRATEGY", "convex_hull")
        monkeypatch.setenv("PAGESCAN_MIN_PAGE_FRACTION", "0.3")
        monkeypatch.setenv("PAGESCAN_BALANCE_PERCENT", "2")
        monkeypatch.setenv("PAGESCAN_EQUALIZE", "yes")
        monkeypatch.setenv("PAGESCAN_BLEND", "0")
        monkeypatch.setenv("PAGESCAN_CHECK_BLUR", "false")
        monkeypatch.setenv("PAGESCAN_SAVE_PAGE", "true")

        config = PipelineConfig.from_env()

        assert config.page_detect_strategy == "convex_hull"
        assert config.page_detect_min_page_fraction == pytest.approx(0.3)
        assert config.balance_percent == pytest.approx(2.0)
        assert config.ocr_equalize_hist is True
        assert config.ocr_blend is False
        assert config.check_blur is False
        assert config.save_page is True

    def test_from_env_ignores_bad_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PAGESCAN_STRATEGY", "nonsense")
        monkeypatch.setenv("PAGESCAN_MIN_PAGE_FRACTION", "half")

        config = PipelineConfig.from_env()

        assert config.page_detect_strategy == "area"
        assert config.page_detect_min_page_fraction == 0.5

    def test_from_env_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in (
            "PAGESCAN_STRATEGY",
            "PAGESCAN_MIN_PAGE_FRACTION",
            "PAGESCAN_BALANCE_PERCENT",
            "PAGESCAN_EQUALIZE",
            "PAGESCAN_BLEND",
            "PAGESCAN_CHECK_BLUR",
            "PAGESCAN_SAVE_PAGE",
        ):
            monkeypatch.delenv(name, raising=False)
        assert PipelineConfig.from_env() == PipelineConfig()


class TestPipelineProcess:

    def test_detects_and_flattens_page(self, pipeline: Pipeline, page_file: Path) -> None:
        result = pipeline.process(str(page_file))

        assert isinstance(result, PipelineResult)
        assert result.page_detection.outcome == DetectionOutcome.FOUND
        assert result.steps_completed == [
            'load', 'blur_check', 'page_detect', 'perspective', 'ocr_prepare'
        ]

        h, w = result.page_image.shape[:2]
        assert abs(w - 604) <= 12 and abs(h - 404) <= 12
        assert result.ocr_image.shape == (h, w)
        assert result.ocr_image.dtype == np.float32
        assert result.metadata.format == "PNG"
        assert result.input_path == str(page_file)
        assert result.processing_time >= 0.0

    def test_default_config_finds_page(self, page_file: Path) -> None:
        result = Pipeline().process(str(page_file))

        assert result.page_detection.outcome == DetectionOutcome.FOUND
        assert result.page_detection.area_ratio >= 0.5
        assert 'perspective' in result.steps_completed
        h, w = result.page_image.shape[:2]
        assert abs(w - 604) <= 12 and abs(h - 404) <= 12

    def test_full_frame_skips_perspective(self, pipeline: Pipeline, flat_file: Path) -> None:
        result = pipeline.process(str(flat_file))

        assert result.page_detection.is_full_frame
        assert 'perspective' not in result.steps_completed
        assert result.page_image.shape == (300, 400, 3)
        assert result.ocr_image.shape == (300, 400)
        assert result.is_blurry

    def test_balance_step(self, page_file: Path) -> None:
        config = PipelineConfig(page_detect_min_page_fraction=0.25, balance_percent=1.0)
        result = Pipeline(config).process(str(page_file))
        assert 'balance' in result.steps_completed

    def test_blur_check_disabled(self, flat_file: Path) -> None:
        result = Pipeline(PipelineConfig(check_blur=False)).process(str(flat_file))

        assert result.sharpness is None
        assert not result.is_blurry
        assert 'blur_check' not in result.steps_completed

    def test_missing_file_raises(self, pipeline: Pipeline, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            pipeline.process(str(tmp_path / "missing.png"))

    def test_debug_output(self, pipeline: Pipeline, page_file: Path, tmp_path: Path) -> None:
        debug_dir = tmp_path / "debug"
        pipeline.process(str(page_file), debug_output_dir=str(debug_dir))

        for name in (
            "01_loaded.jpg",
            "02a_edges.jpg",
            "02b_contours.jpg",
            "02c_page_contour.jpg",
            "03_page_detected.jpg",
            "04_page_warped.jpg",
            "05_ocr.jpg",
        ):
            assert (debug_dir / name).exists(), name


class TestProcessBatch:

    @pytest.mark.parametrize("workers", [1, 3])
    def test_failures_are_left_out(
        self, pipeline: Pipeline, page_file: Path, flat_file: Path, tmp_path: Path, workers: int
    ) -> None:
        paths = [str(page_file), str(tmp_path / "missing.png"), str(flat_file)]

        results = pipeline.process_batch(paths, max_workers=workers)

        assert [r.input_path for r in results] == [str(page_file), str(flat_file)]

    def test_per_image_debug_directories(
        self, pipeline: Pipeline, page_file: Path, flat_file: Path, tmp_path: Path
    ) -> None:
        debug_dir = tmp_path / "debug"
        pipeline.process_batch([str(page_file), str(flat_file)], debug_output_dir=str(debug_dir))

        assert (debug_dir / "page" / "01_loaded.jpg").exists()
        assert (debug_dir / "flat" / "01_loaded.jpg").exists()

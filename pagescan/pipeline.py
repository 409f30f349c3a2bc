"""Main pipeline orchestrator for page scanning."""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from pagescan.color.balance import simplest_color_balance
from pagescan.ocr.prepare import OcrConfig, prepare_for_ocr
from pagescan.page_detection.detector import (
    MIN_PAGE_FRACTION,
    DetectionConfig,
    PageDetection,
    detect_page,
)
from pagescan.page_detection.perspective import correct_perspective
from pagescan.page_detection.ranking import RANKING_STRATEGIES
from pagescan.preprocessing.loader import ImageMetadata, load_image
from pagescan.quality.blur import SharpnessReport, assess_sharpness

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Ignoring {name}={value!r}: not a number")
        return default


@dataclass
class PipelineConfig:
    """All tunable parameters in one place."""

    # Quality
    check_blur: bool = True

    # Lighting normalization (None disables the step)
    balance_percent: Optional[float] = None

    # Page detection
    page_detect_strategy: str = "area"  # "area", "min_rect" or "convex_hull"
    page_detect_min_page_fraction: float = MIN_PAGE_FRACTION
    detection: DetectionConfig = field(default_factory=DetectionConfig)

    # OCR preparation
    ocr_equalize_hist: bool = False
    ocr_blend: bool = True
    ocr: OcrConfig = field(default_factory=OcrConfig)

    # Output
    save_page: bool = False
    jpeg_quality: int = 92

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Build a config from PAGESCAN_* environment variables.

        Unset variables keep their defaults. Recognized variables:
        PAGESCAN_STRATEGY, PAGESCAN_MIN_PAGE_FRACTION, PAGESCAN_EQUALIZE,
        PAGESCAN_BLEND, PAGESCAN_BALANCE_PERCENT, PAGESCAN_CHECK_BLUR,
        PAGESCAN_SAVE_PAGE.
        """
        config = cls()

        strategy = os.getenv('PAGESCAN_STRATEGY', '').strip()
        if strategy:
            if strategy not in RANKING_STRATEGIES:
                logger.warning(f"Ignoring PAGESCAN_STRATEGY={strategy!r}: unknown strategy")
            else:
                config.page_detect_strategy = strategy

        config.page_detect_min_page_fraction = _env_float(
            'PAGESCAN_MIN_PAGE_FRACTION', config.page_detect_min_page_fraction
        )
        config.balance_percent = _env_float('PAGESCAN_BALANCE_PERCENT', config.balance_percent)
        config.ocr_equalize_hist = _env_bool('PAGESCAN_EQUALIZE', config.ocr_equalize_hist)
        config.ocr_blend = _env_bool('PAGESCAN_BLEND', config.ocr_blend)
        config.check_blur = _env_bool('PAGESCAN_CHECK_BLUR', config.check_blur)
        config.save_page = _env_bool('PAGESCAN_SAVE_PAGE', config.save_page)

        return config


@dataclass
class PipelineResult:
    """Result of pipeline processing."""

    ocr_image: np.ndarray
    page_image: np.ndarray
    metadata: ImageMetadata
    processing_time: float
    steps_completed: List[str]
    input_path: str = ""
    sharpness: Optional[SharpnessReport] = None
    page_detection: Optional[PageDetection] = None

    @property
    def is_blurry(self) -> bool:
        return bool(self.sharpness and self.sharpness.is_blurry)


class Pipeline:
    """Page scanning pipeline: detect, flatten and binarize one photo at a time."""

    def __init__(self, config: Optional[PipelineConfig] = None) -> None:
        """Initialize pipeline with configuration.

        Args:
            config: Pipeline configuration. If None, uses defaults.
        """
        self.config = config or PipelineConfig()

    def process(
        self,
        input_path: str,
        debug_output_dir: Optional[str] = None,
    ) -> PipelineResult:
        """Process a single image through the pipeline.

        Args:
            input_path: Path to input image
            debug_output_dir: Optional directory for debug output

        Returns:
            PipelineResult with the corrected page and the OCR image
        """
        start_time = time.time()
        step_times: Dict[str, float] = {}
        steps_completed: List[str] = []
        debug_dir: Optional[Path] = None

        if debug_output_dir:
            debug_dir = Path(debug_output_dir)
            debug_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"Processing: {input_path}")

        # Step 1: Load image (caller-input errors propagate)
        step_start = time.time()
        image, metadata = load_image(input_path)
        step_times['load'] = time.time() - step_start
        steps_completed.append('load')

        if debug_dir:
            from pagescan.utils.debug import save_debug_image
            save_debug_image(image, debug_dir / "01_loaded.jpg", "Loaded image")

        # Step 2: Sharpness on the original photo
        sharpness: Optional[SharpnessReport] = None
        if self.config.check_blur:
            step_start = time.time()
            try:
                sharpness = assess_sharpness(image)
                steps_completed.append('blur_check')
                if sharpness.is_blurry:
                    logger.warning(
                        f"BLUR - {input_path}: variance_of_laplacian="
                        f"{sharpness.variance_of_laplacian:.3f}, "
                        f"modified_laplacian={sharpness.modified_laplacian:.3f}"
                    )
            except Exception as e:
                logger.warning(f"Blur check failed, continuing: {e}")
            step_times['blur_check'] = time.time() - step_start

        working_image = image

        # Step 3: Optional lighting normalization
        if self.config.balance_percent is not None:
            step_start = time.time()
            try:
                working_image = simplest_color_balance(
                    working_image, self.config.balance_percent,
                )
                steps_completed.append('balance')
            except Exception as e:
                logger.warning(f"Color balance failed, passing through: {e}")
            step_times['balance'] = time.time() - step_start

        # Step 4: Page detection & perspective correction
        step_start = time.time()
        observer = None
        if debug_dir:
            from pagescan.utils.debug import DebugArtifactWriter
            observer = DebugArtifactWriter(debug_dir)

        page_detection = detect_page(
            working_image,
            min_page_fraction=self.config.page_detect_min_page_fraction,
            strategy=self.config.page_detect_strategy,
            config=self.config.detection,
            observer=observer,
        )
        steps_completed.append('page_detect')

        if debug_dir:
            from pagescan.utils.debug import draw_page_detection, save_debug_image
            save_debug_image(
                draw_page_detection(working_image, page_detection),
                debug_dir / "03_page_detected.jpg",
                f"Page detection ({page_detection.outcome.value})"
            )

        if not page_detection.is_full_frame:
            working_image = correct_perspective(working_image, page_detection.corners)
            steps_completed.append('perspective')

            if debug_dir:
                from pagescan.utils.debug import save_debug_image
                save_debug_image(
                    working_image,
                    debug_dir / "04_page_warped.jpg",
                    "After perspective correction"
                )
        else:
            logger.info(
                f"Full frame used ({page_detection.reason}), skipping perspective correction"
            )
        step_times['page_detect'] = time.time() - step_start

        # Step 5: OCR preparation
        step_start = time.time()
        ocr_image = prepare_for_ocr(
            working_image,
            equalize_hist=self.config.ocr_equalize_hist,
            blend=self.config.ocr_blend,
            config=self.config.ocr,
        )
        steps_completed.append('ocr_prepare')
        step_times['ocr_prepare'] = time.time() - step_start

        if debug_dir:
            from pagescan.utils.debug import save_debug_image
            save_debug_image(ocr_image, debug_dir / "05_ocr.jpg", "Prepared for OCR")

        total_time = time.time() - start_time
        logger.info(
            f"Total processing time: {total_time:.3f}s ("
            + ", ".join(f"{k}={v:.3f}s" for k, v in step_times.items())
            + ")"
        )

        return PipelineResult(
            ocr_image=ocr_image,
            page_image=working_image,
            metadata=metadata,
            processing_time=total_time,
            steps_completed=steps_completed,
            input_path=str(input_path),
            sharpness=sharpness,
            page_detection=page_detection,
        )

    def _process_safe(
        self,
        path: str,
        debug_output_dir: Optional[str],
    ) -> Optional[PipelineResult]:
        # Create separate debug directory for each image if debug is enabled
        debug_dir = None
        if debug_output_dir:
            debug_dir = str(Path(debug_output_dir) / Path(path).stem)

        try:
            return self.process(path, debug_output_dir=debug_dir)
        except Exception as e:
            logger.error(f"Error processing {path}: {e}", exc_info=True)
            return None

    def process_batch(
        self,
        input_paths: List[str],
        debug_output_dir: Optional[str] = None,
        max_workers: int = 1,
    ) -> List[PipelineResult]:
        """Process multiple images through the pipeline.

        Images are independent; with ``max_workers > 1`` they run in a thread
        pool (OpenCV releases the GIL in its native calls). Images that fail are
        logged and left out of the results.

        Args:
            input_paths: List of paths to input images
            debug_output_dir: Optional directory for debug output
            max_workers: Number of worker threads

        Returns:
            List of PipelineResult objects, in input order
        """
        if max_workers <= 1:
            results = []
            for i, path in enumerate(input_paths, 1):
                logger.info(f"Processing {i}/{len(input_paths)}: {path}")
                results.append(self._process_safe(path, debug_output_dir))
        else:
            with ThreadPoolExecutor(max_workers=max_workers) as ex:
                results = list(ex.map(
                    lambda p: self._process_safe(p, debug_output_dir), input_paths
                ))

        return [r for r in results if r is not None]

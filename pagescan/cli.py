"""Command-line interface for page scanning."""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
from dotenv import load_dotenv

from pagescan import __version__
from pagescan.page_detection.ranking import RANKING_STRATEGIES
from pagescan.pipeline import Pipeline, PipelineConfig
from pagescan.preprocessing.loader import SUPPORTED_EXTENSIONS, load_image
from pagescan.quality.blur import assess_sharpness
from pagescan.quality.exposure import compute_histogram_stats
from pagescan.utils.debug import save_image

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def _collect_inputs(
    input_paths: tuple,
    batch: bool,
    filter_pattern: Optional[str],
) -> List[Path]:
    """Expand files and (in batch mode) directories into a list of image files."""
    input_files: List[Path] = []

    for input_path_str in input_paths:
        input_path = Path(input_path_str)

        if input_path.is_file():
            input_files.append(input_path)
        elif input_path.is_dir():
            if not batch:
                raise click.UsageError(
                    f"Directory provided but --batch not specified: {input_path}"
                )
            if filter_pattern:
                pattern_files = sorted(input_path.glob(filter_pattern))
                input_files.extend(pattern_files)
                logger.info(f"Found {len(pattern_files)} files matching {filter_pattern}")
            else:
                input_files.extend(
                    sorted(
                        p for p in input_path.iterdir()
                        if p.is_file() and p.suffix.lower() in SUPPORTED_EXTENSIONS
                    )
                )
        else:
            raise click.UsageError(f"Invalid input path: {input_path}")

    return input_files


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """pagescan - Find, flatten and binarize document pages in photographs."""
    load_dotenv()


@main.command()
@click.argument('input_paths', nargs=-1, required=True, type=click.Path(exists=True))
@click.option(
    '--output',
    '-o',
    'output_dir',
    type=click.Path(),
    default='./output',
    help='Output directory for processed images'
)
@click.option(
    '--strategy',
    type=click.Choice(RANKING_STRATEGIES),
    default=None,
    help='Contour ranking strategy for page detection'
)
@click.option(
    '--min-page-fraction',
    type=click.FloatRange(0.0, 1.0),
    default=None,
    help='Minimum page area as a fraction of the photo'
)
@click.option(
    '--equalize/--no-equalize',
    default=None,
    help='Equalize the histogram before thresholding'
)
@click.option(
    '--blend/--no-blend',
    default=None,
    help='Blend the binarized page with the gray image'
)
@click.option(
    '--balance',
    'balance_percent',
    type=float,
    default=None,
    help='Apply a color balance clipping this percentage of pixels first'
)
@click.option(
    '--save-page',
    is_flag=True,
    default=False,
    help='Also save the perspective-corrected color page'
)
@click.option(
    '--batch',
    is_flag=True,
    help='Process all images in directory'
)
@click.option(
    '--filter',
    'filter_pattern',
    type=str,
    help='Glob pattern to filter files (e.g., "*.jpg")'
)
@click.option(
    '--workers',
    type=click.IntRange(1, None),
    default=1,
    help='Number of images processed in parallel'
)
@click.option(
    '--debug',
    is_flag=True,
    help='Save debug visualizations at each pipeline step'
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose logging'
)
def process(
    input_paths: tuple,
    output_dir: str,
    strategy: Optional[str],
    min_page_fraction: Optional[float],
    equalize: Optional[bool],
    blend: Optional[bool],
    balance_percent: Optional[float],
    save_page: bool,
    batch: bool,
    filter_pattern: Optional[str],
    workers: int,
    debug: bool,
    verbose: bool
) -> None:
    """Detect the page in each photo, correct its perspective and prepare it for OCR.

    INPUT_PATHS: One or more image files or directories to process
    """
    _configure_logging(verbose)

    input_files = _collect_inputs(input_paths, batch, filter_pattern)
    if not input_files:
        logger.error("No input files found")
        sys.exit(1)

    logger.info(f"Processing {len(input_files)} file(s)")

    # Command-line options override the environment
    config = PipelineConfig.from_env()
    if strategy is not None:
        config.page_detect_strategy = strategy
    if min_page_fraction is not None:
        config.page_detect_min_page_fraction = min_page_fraction
    if equalize is not None:
        config.ocr_equalize_hist = equalize
    if blend is not None:
        config.ocr_blend = blend
    if balance_percent is not None:
        config.balance_percent = balance_percent
    if save_page:
        config.save_page = True

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    debug_dir = None
    if debug:
        debug_dir = Path('./debug')
        debug_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Debug output will be saved to: {debug_dir}")

    pipeline = Pipeline(config)
    results = pipeline.process_batch(
        [str(f) for f in input_files],
        debug_output_dir=str(debug_dir) if debug_dir else None,
        max_workers=workers,
    )

    blurry = 0
    for result in results:
        stem = Path(result.input_path).stem

        ocr_file = save_image(result.ocr_image, output_path / f"{stem}.png")
        logger.info(f"Saved: {ocr_file.name}")

        if config.save_page:
            page_file = save_image(
                result.page_image,
                output_path / f"{stem}_page.jpg",
                quality=config.jpeg_quality,
            )
            logger.info(f"Saved: {page_file.name}")

        if result.is_blurry:
            blurry += 1

        detection = result.page_detection
        logger.info(
            f"{stem}: page={detection.outcome.value if detection else 'n/a'}, "
            f"blurry={result.is_blurry}, time={result.processing_time:.3f}s"
        )

    logger.info(f"\n{'=' * 60}")
    logger.info(f"COMPLETE: Processed {len(results)}/{len(input_files)} file(s), {blurry} blurry")
    logger.info(f"Output directory: {output_path.absolute()}")
    if debug_dir:
        logger.info(f"Debug directory: {debug_dir.absolute()}")
    logger.info(f"{'=' * 60}")

    if len(results) < len(input_files):
        sys.exit(1)


@main.command()
@click.argument('input_paths', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose logging'
)
def check(input_paths: tuple, verbose: bool) -> None:
    """Report sharpness metrics and flag blurry photos.

    INPUT_PATHS: One or more image files
    """
    _configure_logging(verbose)

    any_blurry = False
    for input_path in input_paths:
        try:
            image, _ = load_image(input_path)
        except ValueError as e:
            raise click.ClickException(str(e)) from e

        report = assess_sharpness(image)
        stats = compute_histogram_stats(image)

        verdict = click.style("BLURRY", fg="red", bold=True) if report.is_blurry \
            else click.style("SHARP", fg="green", bold=True)

        click.echo(f"{Path(input_path).name}: {verdict}")
        click.echo(f"  variance_of_laplacian:         {report.variance_of_laplacian:10.3f}")
        click.echo(f"  modified_laplacian:            {report.modified_laplacian:10.3f}")
        click.echo(f"  tenengrad:                     {report.tenengrad:10.3f}")
        click.echo(f"  normalized_graylevel_variance: {report.normalized_graylevel_variance:10.3f}")
        click.echo(f"  mean_brightness:               {stats['mean_brightness']:10.3f}")
        click.echo(f"  contrast:                      {stats['contrast']:10.3f}")

        any_blurry = any_blurry or report.is_blurry

    if any_blurry:
        sys.exit(2)


if __name__ == '__main__':
    main()

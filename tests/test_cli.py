"""Tests for the command-line interface."""

from pathlib import Path

import numpy as np
import pytest
from click.testing import CliRunner
from PIL import Image

from pagescan import __version__
from pagescan.cli import main
from pagescan.utils.image import to_uint8

from conftest import create_checkerboard, create_outlined_page_image


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def page_file(tmp_path: Path) -> Path:
    path = tmp_path / "page.png"
    Image.fromarray(to_uint8(create_outlined_page_image())).save(path)
    return path


@pytest.fixture
def flat_file(tmp_path: Path) -> Path:
    path = tmp_path / "flat.png"
    Image.fromarray(np.full((120, 160, 3), 128, dtype=np.uint8)).save(path)
    return path


@pytest.fixture
def sharp_file(tmp_path: Path) -> Path:
    path = tmp_path / "sharp.png"
    Image.fromarray(create_checkerboard(200)).save(path)
    return path


def test_version(runner: CliRunner):
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


class TestProcessCommand:

    def test_writes_ocr_image(self, runner: CliRunner, page_file: Path, tmp_path: Path):
        out = tmp_path / "out"
        result = runner.invoke(
            main, ["process", str(page_file), "-o", str(out), "--min-page-fraction", "0.25"]
        )

        assert result.exit_code == 0, result.output
        written = np.array(Image.open(out / "page.png"))
        assert written.ndim == 2
        assert abs(written.shape[1] - 604) <= 12
        assert not (out / "page_page.jpg").exists()

    def test_save_page(self, runner: CliRunner, page_file: Path, tmp_path: Path):
        out = tmp_path / "out"
        result = runner.invoke(
            main,
            ["process", str(page_file), "-o", str(out), "--save-page", "--strategy", "min_rect"],
        )

        assert result.exit_code == 0, result.output
        assert (out / "page.png").exists()
        assert (out / "page_page.jpg").exists()

    def test_directory_requires_batch(self, runner: CliRunner, page_file: Path, tmp_path: Path):
        result = runner.invoke(main, ["process", str(tmp_path), "-o", str(tmp_path / "out")])
        assert result.exit_code == 2
        assert "--batch" in result.output

    def test_batch_directory(
        self, runner: CliRunner, page_file: Path, flat_file: Path, tmp_path: Path
    ):
        out = tmp_path / "out"
        result = runner.invoke(
            main, ["process", str(tmp_path), "--batch", "--workers", "2", "-o", str(out)]
        )

        assert result.exit_code == 0, result.output
        assert (out / "page.png").exists()
        assert (out / "flat.png").exists()

    def test_batch_filter(self, runner: CliRunner, page_file: Path, flat_file: Path, tmp_path: Path):
        out = tmp_path / "out"
        result = runner.invoke(
            main, ["process", str(tmp_path), "--batch", "--filter", "flat*", "-o", str(out)]
        )

        assert result.exit_code == 0, result.output
        assert (out / "flat.png").exists()
        assert not (out / "page.png").exists()

    def test_unknown_strategy_rejected(self, runner: CliRunner, page_file: Path):
        result = runner.invoke(main, ["process", str(page_file), "--strategy", "largest"])
        assert result.exit_code == 2

    def test_unreadable_image_fails(self, runner: CliRunner, tmp_path: Path):
        broken = tmp_path / "broken.png"
        broken.write_bytes(b"not a png")

        result = runner.invoke(main, ["process", str(broken), "-o", str(tmp_path / "out")])

        assert result.exit_code == 1


class TestCheckCommand:

    def test_sharp_image(self, runner: CliRunner, sharp_file: Path):
        result = runner.invoke(main, ["check", str(sharp_file)])

        assert result.exit_code == 0, result.output
        assert "SHARP" in result.output
        assert "variance_of_laplacian" in result.output

    def test_blurry_image_exit_code(self, runner: CliRunner, flat_file: Path, sharp_file: Path):
        result = runner.invoke(main, ["check", str(sharp_file), str(flat_file)])

        assert result.exit_code == 2
        assert "BLURRY" in result.output

    def test_unsupported_format(self, runner: CliRunner, tmp_path: Path):
        notes = tmp_path / "notes.txt"
        notes.write_text("hello")

        result = runner.invoke(main, ["check", str(notes)])

        assert result.exit_code == 1
        assert "Unsupported image format" in result.output

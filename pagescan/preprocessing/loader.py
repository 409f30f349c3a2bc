"""Image loading module with support for JPEG, PNG, TIFF, BMP and HEIC formats."""

import logging
from pathlib import Path
from typing import Tuple

import numpy as np
from PIL import Image, ExifTags

logger = logging.getLogger(__name__)

STANDARD_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.tiff', '.tif', '.bmp')
HEIC_EXTENSIONS = ('.heic', '.heif')
SUPPORTED_EXTENSIONS = STANDARD_EXTENSIONS + HEIC_EXTENSIONS


class ImageMetadata:
    """Metadata extracted from loaded image."""

    def __init__(
        self,
        original_size: Tuple[int, int],
        format: str,
        bit_depth: int,
        orientation: int = 1
    ) -> None:
        self.original_size = original_size  # (width, height)
        self.format = format
        self.bit_depth = bit_depth
        self.orientation = orientation


def _exif_orientation(img: Image.Image) -> int:
    """Read the EXIF orientation tag, 1 (upright) if absent."""
    try:
        exif = img.getexif()
    except (AttributeError, OSError) as e:
        logger.debug(f"Could not read EXIF data: {e}")
        return 1

    for tag, name in ExifTags.TAGS.items():
        if name == 'Orientation':
            return int(exif.get(tag, 1) or 1)
    return 1


def _apply_exif_orientation(img: Image.Image, orientation: int) -> Image.Image:
    """Rotate/flip a PIL Image according to its EXIF orientation."""
    if orientation == 2:
        img = img.transpose(Image.FLIP_LEFT_RIGHT)
    elif orientation == 3:
        img = img.rotate(180, expand=True)
    elif orientation == 4:
        img = img.rotate(180, expand=True).transpose(Image.FLIP_LEFT_RIGHT)
    elif orientation == 5:
        img = img.rotate(-90, expand=True).transpose(Image.FLIP_LEFT_RIGHT)
    elif orientation == 6:
        img = img.rotate(-90, expand=True)
    elif orientation == 7:
        img = img.rotate(90, expand=True).transpose(Image.FLIP_LEFT_RIGHT)
    elif orientation == 8:
        img = img.rotate(90, expand=True)

    if orientation != 1:
        logger.debug(f"Applied EXIF orientation: {orientation}")

    return img


def _to_rgb_array(img: Image.Image) -> np.ndarray:
    """Convert a PIL Image to float32 RGB [0, 1]."""
    if img.mode not in ('RGB', 'L'):
        img = img.convert('RGB')

    arr = np.array(img).astype(np.float32) / 255.0

    if arr.ndim == 2:
        arr = np.stack([arr, arr, arr], axis=-1)

    return arr


def _load_with_pil(path: str, format_name: str) -> Tuple[np.ndarray, ImageMetadata]:
    with Image.open(path) as img:
        original_size = img.size
        orientation = _exif_orientation(img)
        img = _apply_exif_orientation(img, orientation)
        arr = _to_rgb_array(img)

    metadata = ImageMetadata(
        original_size=original_size,
        format=format_name,
        bit_depth=8,
        orientation=orientation,
    )

    logger.info(f"Loaded {format_name}: {path} ({arr.shape[1]}x{arr.shape[0]})")

    return arr, metadata


def load_heic(path: str) -> Tuple[np.ndarray, ImageMetadata]:
    """Load HEIC/HEIF image using pillow-heif.

    Args:
        path: Path to HEIC file

    Returns:
        Tuple of (RGB array as float32 [0,1], metadata)
    """
    try:
        from pillow_heif import register_heif_opener
        register_heif_opener()
    except ImportError as e:
        raise ImportError(
            "pillow-heif is required for HEIC support. "
            "Install with: pip install 'pagescan[heic]'"
        ) from e

    return _load_with_pil(path, "HEIC")


def load_standard(path: str) -> Tuple[np.ndarray, ImageMetadata]:
    """Load JPEG, PNG, TIFF or BMP using PIL.

    Args:
        path: Path to image file

    Returns:
        Tuple of (RGB array as float32 [0,1], metadata)
    """
    format_name = Path(path).suffix.lower().lstrip('.').upper()
    if format_name == 'JPG':
        format_name = 'JPEG'
    return _load_with_pil(path, format_name)


def load_image(path: str) -> Tuple[np.ndarray, ImageMetadata]:
    """Load image from any supported format.

    Returns normalized float32 RGB array [0, 1] with shape (H, W, 3).

    Args:
        path: Path to image file

    Returns:
        Tuple of (RGB array as float32 [0,1], metadata)

    Raises:
        ValueError: If file format is not supported
        FileNotFoundError: If file does not exist
    """
    path_obj = Path(path)

    if not path_obj.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    ext = path_obj.suffix.lower()

    if ext in HEIC_EXTENSIONS:
        return load_heic(path)
    elif ext in STANDARD_EXTENSIONS:
        return load_standard(path)
    else:
        raise ValueError(f"Unsupported image format: {ext}")

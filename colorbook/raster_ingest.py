"""Raster image ingestion and pre-blurring."""
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, ImageFilter, ImageOps, UnidentifiedImageError

from colorbook.types import ImageLoadError, IngestResult, PreconditionError, to_uint8


def blur_image(image: np.ndarray, radius: float) -> np.ndarray:
    """
    Gaussian blur an (H, W, 3) uint8 image.

    Blurring before quantization merges fine detail into larger flat areas.
    A radius of 0 returns the input unchanged.
    """
    if radius < 0:
        raise PreconditionError(f"Blur radius must be >= 0, got {radius}")
    if radius == 0:
        return image
    blurred = Image.fromarray(np.ascontiguousarray(image)).filter(ImageFilter.GaussianBlur(radius))
    return np.array(blurred, dtype=np.uint8)


def _to_rgb(img: Image.Image):
    """Convert a PIL image to RGB, compositing transparency on white."""
    if img.mode in ('RGBA', 'LA') or (img.mode == 'P' and 'transparency' in img.info):
        rgba = img.convert('RGBA')
        background = Image.new('RGB', rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[3])
        return background, True
    if img.mode != 'RGB':
        return img.convert('RGB'), False
    return img, False


def ingest(path: Union[str, Path], blur_radius: float = 0.0) -> IngestResult:
    """
    Load a raster image file.

    Args:
        path: Path to image file
        blur_radius: Gaussian blur radius applied to the working image

    Returns:
        IngestResult with the original and the (blurred) working image

    Raises:
        FileNotFoundError: If file doesn't exist
        ImageLoadError: If file cannot be decoded
        PreconditionError: If the image has zero area
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    if not path.is_file():
        raise ImageLoadError(f"Path is not a file: {path}")

    try:
        with Image.open(path) as img:
            # Apply EXIF orientation transformation to handle rotation
            img = ImageOps.exif_transpose(img)
            img, has_alpha = _to_rgb(img)
            original = np.array(img, dtype=np.uint8)
    except (UnidentifiedImageError, OSError) as e:
        raise ImageLoadError(f"Failed to load image {path}: {e}") from e

    return ingest_from_array(original, path=str(path), blur_radius=blur_radius, has_alpha=has_alpha)


def ingest_from_array(
    image: np.ndarray,
    path: str = "",
    blur_radius: float = 0.0,
    has_alpha: bool = False
) -> IngestResult:
    """
    Create IngestResult from a numpy array.

    Args:
        image: (H, W), (H, W, 3) or (H, W, 4) array; converted with to_uint8
        path: Optional path for reference
        blur_radius: Gaussian blur radius applied to the working image
        has_alpha: Whether the source had transparency

    Returns:
        IngestResult
    """
    if image.ndim == 2:
        # Grayscale - convert to RGB
        image = np.stack([image] * 3, axis=-1)

    if image.ndim != 3:
        raise PreconditionError(f"Expected 3D array, got {image.ndim}D")

    image = to_uint8(image)

    if image.shape[2] == 4:
        # RGBA - composite on white
        has_alpha = True
        alpha = image[..., 3:4].astype(np.float64) / 255.0
        rgb = image[..., :3].astype(np.float64)
        image = np.rint(rgb * alpha + 255.0 * (1 - alpha)).astype(np.uint8)
    elif image.shape[2] != 3:
        raise PreconditionError(f"Expected 3 or 4 channels, got {image.shape[2]}")

    height, width = image.shape[:2]
    if width == 0 or height == 0:
        raise PreconditionError(f"Image has zero area: {width}x{height}")

    return IngestResult(
        image=blur_image(image, blur_radius),
        original=image,
        original_path=path,
        width=width,
        height=height,
        has_alpha=has_alpha
    )

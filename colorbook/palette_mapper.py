"""Map image pixels to their nearest palette color."""
import logging
from typing import Sequence

import numpy as np

from colorbook.color_distance import color_distance, nearest_indices
from colorbook.types import Palette, PreconditionError

logger = logging.getLogger(__name__)


def nearest_palette_index(color: Sequence[int], palette: Palette) -> int:
    """
    Index of the palette entry closest to ``color``.

    Linear scan; the first entry wins on exact ties.

    Raises:
        PreconditionError: If the palette is empty
    """
    if len(palette) == 0:
        raise PreconditionError("Palette is empty")
    best_index = 0
    best_distance = float('inf')
    for i, entry in enumerate(palette):
        distance = color_distance(color, entry.rgb)
        if distance < best_distance:
            best_distance = distance
            best_index = i
    return best_index


def map_to_palette(image: np.ndarray, palette: Palette, chunk_size: int = 65536) -> np.ndarray:
    """
    Assign every pixel to its nearest palette entry.

    Args:
        image: (H, W, 3) uint8 array, usually pre-blurred
        palette: Target palette
        chunk_size: Pixels compared per batch

    Returns:
        (H, W) int32 array of palette indices
    """
    if len(palette) == 0:
        raise PreconditionError("Palette is empty")
    h, w = image.shape[:2]
    pixels = image.reshape(-1, 3).astype(np.int64)
    indices = nearest_indices(pixels, palette.as_array(), chunk_size=chunk_size)
    logger.debug(f"Mapped {h * w} pixels onto {len(palette)} palette colors")
    return indices.reshape(h, w).astype(np.int32)


def quantized_image(indices: np.ndarray, palette: Palette) -> np.ndarray:
    """Render a palette index map back to an (H, W, 3) uint8 image."""
    return palette.as_array().astype(np.uint8)[indices]

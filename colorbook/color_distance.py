"""Weighted RGB color distance."""
import math
from typing import Sequence

import numpy as np

# Per-channel weights (R, G, B); green dominates perceived luminance
CHANNEL_WEIGHTS = (2, 4, 3)

_WEIGHTS = np.array(CHANNEL_WEIGHTS, dtype=np.float64)


def color_distance(c1: Sequence[int], c2: Sequence[int]) -> float:
    """
    Distance between two RGB colors.

    sqrt(2*dr^2 + 4*dg^2 + 3*db^2)

    Args:
        c1: First color as (r, g, b)
        c2: Second color as (r, g, b)

    Returns:
        Non-negative distance
    """
    dr = int(c1[0]) - int(c2[0])
    dg = int(c1[1]) - int(c2[1])
    db = int(c1[2]) - int(c2[2])
    wr, wg, wb = CHANNEL_WEIGHTS
    return math.sqrt(wr * dr * dr + wg * dg * dg + wb * db * db)


def squared_distances(colors: np.ndarray, palette: np.ndarray) -> np.ndarray:
    """
    Weighted squared distances between every color and every palette entry.

    Squared values preserve ordering, so callers that only need the nearest
    entry can skip the square root.

    Args:
        colors: (N, 3) array of colors
        palette: (K, 3) array of colors

    Returns:
        (N, K) float64 array
    """
    diff = colors[:, None, :].astype(np.float64) - palette[None, :, :].astype(np.float64)
    return np.einsum('nkc,c->nk', diff * diff, _WEIGHTS)


def nearest_indices(
    colors: np.ndarray,
    palette: np.ndarray,
    chunk_size: int = 65536
) -> np.ndarray:
    """
    Index of the nearest palette entry for every color.

    Ties go to the lowest palette index. Weighted squared distances of
    integer colors are exact in float64, so ties are detected exactly.

    Args:
        colors: (N, 3) array of colors
        palette: (K, 3) array of colors, K >= 1
        chunk_size: Number of colors compared per batch, bounds memory use

    Returns:
        (N,) int64 array of palette indices
    """
    n = len(colors)
    result = np.empty(n, dtype=np.int64)
    for start in range(0, n, chunk_size):
        stop = min(start + chunk_size, n)
        result[start:stop] = np.argmin(squared_distances(colors[start:stop], palette), axis=1)
    return result

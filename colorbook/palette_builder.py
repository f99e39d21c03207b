"""Palette construction by weighted k-means over sampled colors."""
import logging
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from colorbook.color_distance import CHANNEL_WEIGHTS, nearest_indices
from colorbook.types import Palette, PaletteColor, PreconditionError

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 20
TOLERANCE = 1.0

SampleInput = Union[np.ndarray, Sequence[Sequence[int]]]


def sample_colors(image: np.ndarray, step: int = 2) -> np.ndarray:
    """
    Sample every ``step``-th pixel in both directions, row-major.

    Args:
        image: (H, W, 3) uint8 array
        step: Sampling stride in pixels

    Returns:
        (N, 3) int64 array of sampled colors
    """
    if step < 1:
        raise PreconditionError(f"step must be >= 1, got {step}")
    if image.ndim != 3 or image.shape[2] != 3:
        raise PreconditionError(f"Input must be HxWx3 array, got shape {image.shape}")
    return image[::step, ::step].reshape(-1, 3).astype(np.int64)


def _as_samples(samples: SampleInput) -> np.ndarray:
    array = np.asarray(samples, dtype=np.int64)
    if array.size == 0:
        return np.zeros((0, 3), dtype=np.int64)
    if array.ndim != 2 or array.shape[1] != 3:
        raise PreconditionError(f"Samples must be an (N, 3) array, got shape {array.shape}")
    return array


def kmeans_step(
    samples: np.ndarray,
    weights: np.ndarray,
    centroids: np.ndarray,
    centroid_weights: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Run one assignment + update round.

    Every sample joins its nearest centroid (lowest index on ties). Each
    non-empty cluster moves to the weighted mean of its members, rounded
    half-up, and takes the members' total weight. Empty clusters keep
    their centroid and weight.

    Args:
        samples: (N, 3) int64 colors
        weights: (N,) int64 sample weights
        centroids: (K, 3) int64 current centroids
        centroid_weights: (K,) int64 current centroid weights

    Returns:
        Tuple of (new_centroids, new_centroid_weights)
    """
    k = len(centroids)
    assignment = nearest_indices(samples, centroids)

    totals = np.bincount(assignment, weights=weights, minlength=k)
    new_centroids = centroids.copy()
    new_weights = centroid_weights.copy()

    occupied = totals > 0
    if np.any(occupied):
        weighted = samples * weights[:, None]
        for channel in range(3):
            sums = np.bincount(assignment, weights=weighted[:, channel], minlength=k)
            means = sums[occupied] / totals[occupied]
            new_centroids[occupied, channel] = np.floor(means + 0.5).astype(np.int64)
        new_weights[occupied] = np.rint(totals[occupied]).astype(np.int64)

    return new_centroids, new_weights


def _centroid_shift(old: np.ndarray, new: np.ndarray) -> np.ndarray:
    diff = (new - old).astype(np.float64)
    return np.sqrt((diff * diff) @ np.array(CHANNEL_WEIGHTS, dtype=np.float64))


def build_palette(
    samples: SampleInput,
    k: int,
    weights: Optional[Sequence[int]] = None,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = TOLERANCE
) -> Palette:
    """
    Reduce sampled colors to an ordered palette of at most ``k`` colors.

    Centroids start as the first ``k`` samples in input order, so the result
    is fully deterministic. The loop stops after ``max_iterations`` rounds or
    once no centroid moves by more than ``tolerance``. Final entries are
    sorted by descending weight; equal weights keep centroid order.

    Args:
        samples: (N, 3) colors
        k: Requested palette size, >= 1
        weights: Optional per-sample weights (default 1 each)
        max_iterations: Iteration cap
        tolerance: Convergence threshold on centroid movement

    Returns:
        Palette

    Raises:
        PreconditionError: If k < 1 or samples is empty
    """
    if k < 1:
        raise PreconditionError(f"k must be >= 1, got {k}")

    samples = _as_samples(samples)
    if len(samples) == 0:
        raise PreconditionError("Cannot build a palette from an empty sample set")

    if weights is None:
        weights = np.ones(len(samples), dtype=np.int64)
    else:
        weights = np.asarray(weights, dtype=np.int64)
        if weights.shape != (len(samples),):
            raise PreconditionError(
                f"Expected {len(samples)} weights, got shape {weights.shape}"
            )

    if len(samples) <= k:
        logger.info(f"Only {len(samples)} samples for {k} colors, using samples as palette")
        return Palette([
            PaletteColor(int(r), int(g), int(b), count=int(w))
            for (r, g, b), w in zip(samples[:k], weights[:k])
        ])

    centroids = samples[:k].copy()
    centroid_weights = weights[:k].copy()

    converged = False
    iterations = 0
    for iterations in range(1, max_iterations + 1):
        new_centroids, centroid_weights = kmeans_step(
            samples, weights, centroids, centroid_weights
        )
        shift = _centroid_shift(centroids, new_centroids)
        centroids = new_centroids
        logger.debug(f"k-means iteration {iterations}: max shift {shift.max():.3f}")
        if np.all(shift <= tolerance):
            converged = True
            break

    if not converged:
        logger.debug(f"k-means stopped at the {max_iterations} iteration cap without converging")

    # Stable sort keeps centroid order for equal weights
    order = np.argsort(-centroid_weights, kind='stable')
    palette = Palette([
        PaletteColor(
            int(centroids[i, 0]),
            int(centroids[i, 1]),
            int(centroids[i, 2]),
            count=int(centroid_weights[i])
        )
        for i in order
    ])
    logger.info(f"Built {len(palette)}-color palette in {iterations} iterations")
    return palette

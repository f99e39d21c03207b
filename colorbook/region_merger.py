"""Small-region elimination by absorption into neighboring regions."""
import dataclasses
import logging
import math
from typing import Dict, List, Optional, Tuple

import numpy as np

from colorbook.types import PreconditionError, Region

logger = logging.getLogger(__name__)


def min_area_for(width: int, height: int, min_area_percent: float) -> int:
    """Minimum region size in pixels for an image: floor(w * h * percent)."""
    if width <= 0 or height <= 0:
        raise PreconditionError(f"Image has zero area: {width}x{height}")
    return int(math.floor(width * height * min_area_percent))


def neighbor_labels(region: Region, label_map: np.ndarray) -> np.ndarray:
    """
    Labels of in-bounds 4-neighbors of a region's pixels, one entry per
    adjacency, excluding the region's own label.
    """
    h, w = label_map.shape
    xs, ys = region.xs, region.ys
    nx = np.concatenate([xs - 1, xs + 1, xs, xs])
    ny = np.concatenate([ys, ys, ys - 1, ys + 1])
    inside = (nx >= 0) & (nx < w) & (ny >= 0) & (ny < h)
    labels = label_map[ny[inside], nx[inside]]
    return labels[labels != region.label]


class _RegionArena:
    """Regions indexed by label, with deferred pixel concatenation."""

    def __init__(self, regions: List[Region]):
        size = max((r.label for r in regions), default=-1) + 1
        self.slots: List[Optional[Region]] = [None] * size
        self.areas = np.zeros(size, dtype=np.int64)
        self._pending: Dict[int, List[np.ndarray]] = {}
        for region in regions:
            if self.slots[region.label] is not None:
                raise PreconditionError(f"Duplicate region label {region.label}")
            self.slots[region.label] = dataclasses.replace(region, pixels=region.pixels.copy())
            self.areas[region.label] = region.area

    def pixels(self, label: int) -> np.ndarray:
        region = self.slots[label]
        chunks = self._pending.pop(label, None)
        if chunks:
            region.pixels = np.concatenate([region.pixels] + chunks)
        return region.pixels

    def absorb(self, source: int, target: int) -> np.ndarray:
        """Move every pixel of ``source`` into ``target``; returns moved pixels."""
        moved = self.pixels(source)
        self._pending.setdefault(target, []).append(moved)
        self.areas[target] += len(moved)
        self.areas[source] = 0
        self.slots[source].pixels = moved[:0]
        return moved

    def prune(self) -> None:
        for label, region in enumerate(self.slots):
            if region is None:
                continue
            if self.areas[label] == 0:
                self.slots[label] = None
            else:
                self.pixels(label)

    def live(self) -> List[Region]:
        return [r for r in self.slots if r is not None]


def _merge_target(
    region: Region,
    label_map: np.ndarray,
    areas: np.ndarray,
    min_area: int
) -> Optional[int]:
    """
    Pick the neighbor that absorbs ``region``, or None.

    Qualifying neighbors are regions at or above ``min_area``. The one with
    the most shared pixel edges wins; equal tallies go to the lowest label.
    """
    labels = neighbor_labels(region, label_map)
    if len(labels) == 0:
        return None
    unique, tally = np.unique(labels, return_counts=True)
    qualifies = areas[unique] >= min_area
    if not np.any(qualifies):
        return None
    unique, tally = unique[qualifies], tally[qualifies]
    return int(unique[np.argmax(tally)])


def merge_small_regions(
    label_map: np.ndarray,
    regions: List[Region],
    min_area: int
) -> Tuple[np.ndarray, List[Region]]:
    """
    Absorb regions smaller than ``min_area`` into neighboring regions.

    Passes run over live regions in label order until a full pass absorbs
    nothing, so chains of small regions cascade into a large neighbor over
    several passes. A small region whose neighbors are all small stays as
    it is. Emptied regions are dropped at the end of each pass.

    Args:
        label_map: (H, W) label map from segmentation (not modified)
        regions: Region table from segmentation (not modified)
        min_area: Minimum region size in pixels

    Returns:
        Tuple of (label_map, regions) after merging
    """
    label_map = label_map.copy()
    arena = _RegionArena(regions)
    before = len(regions)

    passes = 0
    absorbed_total = 0
    while True:
        passes += 1
        absorbed = 0
        for label, region in enumerate(arena.slots):
            if region is None:
                continue
            area = arena.areas[label]
            if area == 0 or area >= min_area:
                continue

            arena.pixels(label)
            target = _merge_target(region, label_map, arena.areas, min_area)
            if target is None:
                continue

            moved = arena.absorb(label, target)
            label_map[moved[:, 1], moved[:, 0]] = target
            absorbed += 1

        arena.prune()
        absorbed_total += absorbed
        logger.debug(f"Merge pass {passes}: absorbed {absorbed} regions")
        if absorbed == 0:
            break

    merged = arena.live()
    logger.info(
        f"Merged {before} regions into {len(merged)} "
        f"(min_area={min_area}, {absorbed_total} absorbed in {passes} passes)"
    )
    return label_map, merged

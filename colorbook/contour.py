"""Region boundary pixels and label placement."""
import logging
from typing import List, Tuple

import numpy as np

from colorbook.types import Palette, Point, PreconditionError, Region, RegionOutline

logger = logging.getLogger(__name__)

MIN_OUTLINE_PIXELS = 2


def extract_boundary(region: Region) -> np.ndarray:
    """
    Pixels of ``region`` with at least one 4-neighbor outside its pixel set.

    Neighbors beyond the image edge are outside the set, so pixels on the
    image border are always boundary pixels.

    Returns:
        (M, 2) array of (x, y) boundary pixels, in region pixel order
    """
    if region.is_dead:
        return np.zeros((0, 2), dtype=np.int64)

    xs, ys = region.xs, region.ys
    x0, y0 = xs.min(), ys.min()
    # One cell of padding on every side stands in for "not in set"
    h = int(ys.max() - y0) + 3
    w = int(xs.max() - x0) + 3
    inside = np.zeros((h, w), dtype=bool)
    lx = xs - x0 + 1
    ly = ys - y0 + 1
    inside[ly, lx] = True

    interior = (
        inside[ly, lx - 1] & inside[ly, lx + 1] & inside[ly - 1, lx] & inside[ly + 1, lx]
    )
    return region.pixels[~interior]


def region_centroid(region: Region) -> Point:
    """Integer-truncated mean (x, y) of a region's pixels."""
    n = region.area
    if n == 0:
        raise PreconditionError(f"Region {region.label} has no pixels")
    return (int(region.xs.sum()) // n, int(region.ys.sum()) // n)


def extract_outlines(
    regions: List[Region],
    palette: Palette,
    min_pixels: int = MIN_OUTLINE_PIXELS
) -> List[RegionOutline]:
    """
    Boundary pixels, centroid and palette number for every drawable region.

    Regions with fewer than ``min_pixels`` pixels are skipped.

    Args:
        regions: Regions after merging
        palette: Palette the regions' hex codes refer to
        min_pixels: Smallest region that gets an outline

    Returns:
        List of RegionOutline in region order
    """
    outlines = []
    skipped = 0
    for region in regions:
        if region.area < min_pixels:
            skipped += 1
            continue
        outlines.append(RegionOutline(
            label=region.label,
            number=palette.index_of(region.hex) + 1,
            hex=region.hex,
            boundary=extract_boundary(region),
            centroid=region_centroid(region),
            area=region.area,
        ))
    if skipped:
        logger.debug(f"Skipped {skipped} regions smaller than {min_pixels} pixels")
    return outlines


def outline_pixel_count(outlines: List[RegionOutline]) -> Tuple[int, int]:
    """Total boundary pixels and total region area across outlines."""
    boundary = sum(len(o.boundary) for o in outlines)
    area = sum(o.area for o in outlines)
    return boundary, area

"""Connected-component segmentation of a quantized image."""
import logging
from typing import List, Optional, Tuple

import numpy as np
from scipy import ndimage

from colorbook.types import UNASSIGNED, Palette, PreconditionError, Region

logger = logging.getLogger(__name__)

# 4-connectivity: axis neighbors only
FOUR_CONNECTED = ndimage.generate_binary_structure(2, 1)


def flood_fill_labels(color_ids: np.ndarray) -> np.ndarray:
    """
    Label 4-connected same-id components with an explicit stack.

    Seeds are taken in row-major order, so label numbers follow the
    position of each component's first pixel.

    Args:
        color_ids: (H, W) integer array of quantized color identities

    Returns:
        (H, W) int32 label map with labels 0..N-1
    """
    h, w = color_ids.shape
    ids = color_ids.tolist()
    labels = [[UNASSIGNED] * w for _ in range(h)]
    next_label = 0

    for y in range(h):
        for x in range(w):
            if labels[y][x] != UNASSIGNED:
                continue

            color = ids[y][x]
            stack = [(x, y)]
            while stack:
                cx, cy = stack.pop()
                if cx < 0 or cy < 0 or cx >= w or cy >= h:
                    continue
                if labels[cy][cx] != UNASSIGNED or ids[cy][cx] != color:
                    continue
                labels[cy][cx] = next_label
                stack.append((cx + 1, cy))
                stack.append((cx - 1, cy))
                stack.append((cx, cy + 1))
                stack.append((cx, cy - 1))

            next_label += 1

    return np.array(labels, dtype=np.int32).reshape(h, w)


def ndimage_labels(color_ids: np.ndarray) -> np.ndarray:
    """
    Same result as flood_fill_labels, computed with scipy.ndimage.label.

    Each color identity is labeled separately, then labels are renumbered by
    the row-major position of each component's first pixel.
    """
    h, w = color_ids.shape
    labels = np.full((h, w), UNASSIGNED, dtype=np.int64)
    offset = 0

    for value in np.unique(color_ids):
        components, count = ndimage.label(color_ids == value, structure=FOUR_CONNECTED)
        mask = components > 0
        labels[mask] = components[mask] + (offset - 1)
        offset += count

    flat = labels.ravel()
    _, first_index = np.unique(flat, return_index=True)
    remap = np.empty(offset, dtype=np.int64)
    remap[np.argsort(first_index, kind='stable')] = np.arange(offset)
    return remap[flat].reshape(h, w).astype(np.int32)


def collect_regions(
    label_map: np.ndarray,
    color_ids: np.ndarray,
    palette: Optional[Palette] = None
) -> List[Region]:
    """
    Build the region table for a label map.

    Returns one Region per label, indexed by label. Pixels are stored as
    (x, y) rows in row-major order.
    """
    h, w = label_map.shape
    flat = label_map.ravel().astype(np.int64)
    n_labels = int(flat.max()) + 1 if flat.size else 0

    order = np.argsort(flat, kind='stable')
    counts = np.bincount(flat, minlength=n_labels)
    bounds = np.concatenate([[0], np.cumsum(counts)])
    ids_flat = color_ids.ravel()

    regions = []
    for label in range(n_labels):
        positions = order[bounds[label]:bounds[label + 1]]
        if len(positions) == 0:
            continue
        pixels = np.stack([positions % w, positions // w], axis=1)
        color_index = int(ids_flat[positions[0]])
        hex_code = palette[color_index].hex if palette is not None else ""
        regions.append(Region(label=label, color_index=color_index, hex=hex_code, pixels=pixels))
    return regions


def segment(
    color_ids: np.ndarray,
    palette: Optional[Palette] = None,
    method: str = "ndimage"
) -> Tuple[np.ndarray, List[Region]]:
    """
    Group same-color 4-connected pixels into regions.

    Args:
        color_ids: (H, W) integer array of quantized color identities
        palette: Palette the ids index into; used for region hex codes
        method: "ndimage" (vectorized) or "flood" (explicit-stack flood fill)

    Returns:
        Tuple of (label_map, regions) where regions[i].label == i

    Raises:
        PreconditionError: If the image has zero area or method is unknown
    """
    if color_ids.ndim != 2:
        raise PreconditionError(f"Expected an (H, W) array, got shape {color_ids.shape}")
    if color_ids.size == 0:
        raise PreconditionError(f"Image has zero area: {color_ids.shape}")

    if method == "ndimage":
        label_map = ndimage_labels(color_ids)
    elif method == "flood":
        label_map = flood_fill_labels(color_ids)
    else:
        raise PreconditionError(f"Unknown segmentation method: {method}")

    regions = collect_regions(label_map, color_ids, palette)
    logger.info(f"Segmented {color_ids.shape[1]}x{color_ids.shape[0]} image into {len(regions)} regions")
    return label_map, regions

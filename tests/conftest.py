"""Pytest configuration and fixtures."""

import numpy as np
import pytest
from PIL import Image

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)
YELLOW = (255, 255, 0)


def quadrant_image(size: int = 4) -> np.ndarray:
    """Square image split into four equal quadrants of distinct colors."""
    half = size // 2
    image = np.zeros((size, size, 3), dtype=np.uint8)
    image[:half, :half] = RED
    image[:half, half:] = GREEN
    image[half:, :half] = BLUE
    image[half:, half:] = YELLOW
    return image


def neighbor_areas(label_map: np.ndarray, region, areas: dict) -> list:
    """Areas of all distinct regions touching ``region``."""
    h, w = label_map.shape
    labels = set()
    for x, y in region.pixels:
        for dx, dy in [(-1, 0), (1, 0), (0, -1), (0, 1)]:
            nx, ny = x + dx, y + dy
            if 0 <= nx < w and 0 <= ny < h and label_map[ny, nx] != region.label:
                labels.add(int(label_map[ny, nx]))
    return [areas[label] for label in labels]


@pytest.fixture
def quadrants():
    """4x4 image with four 2x2 quadrants."""
    return quadrant_image(4)


@pytest.fixture
def solid():
    """10x10 single-color image."""
    return np.full((10, 10, 3), (30, 120, 200), dtype=np.uint8)


@pytest.fixture
def blocky_image():
    """60x60 image of large blocks sprinkled with small specks."""
    image = np.zeros((60, 60, 3), dtype=np.uint8)
    image[:, :30] = (200, 40, 40)
    image[:, 30:] = (40, 40, 200)
    image[40:, :] = (40, 200, 40)
    # Specks well below 1.5% of the image
    image[5:7, 5:7] = (250, 250, 250)
    image[10, 45] = (10, 10, 10)
    image[50:52, 20:23] = (250, 250, 0)
    image[20:22, 29:31] = (250, 250, 250)
    return image


@pytest.fixture
def image_file(tmp_path):
    """Quadrant image saved as PNG."""
    path = tmp_path / "quadrants.png"
    Image.fromarray(quadrant_image(40)).save(path)
    return path

"""Rasterize coloring book results with PIL."""
import logging

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from colorbook.types import ColoringResult

logger = logging.getLogger(__name__)

DEFAULT_FONT_SIZE = 18


def render_outline(
    result: ColoringResult,
    font_size: int = DEFAULT_FONT_SIZE,
    draw_numbers: bool = True
) -> Image.Image:
    """
    Draw the coloring page: black boundaries on white, palette numbers at
    each region's centroid.

    Args:
        result: Pipeline result
        font_size: Size of the region numbers
        draw_numbers: Whether to draw the numbers

    Returns:
        RGB PIL image
    """
    canvas = np.full((result.height, result.width, 3), 255, dtype=np.uint8)
    for outline in result.outlines:
        if len(outline.boundary):
            canvas[outline.boundary[:, 1], outline.boundary[:, 0]] = 0

    image = Image.fromarray(canvas)
    if draw_numbers and result.outlines:
        draw = ImageDraw.Draw(image)
        font = ImageFont.load_default(size=font_size)
        for outline in result.outlines:
            draw.text(outline.centroid, str(outline.number), fill=(0, 0, 0), font=font, anchor="mm")

    logger.debug(f"Rendered outline with {len(result.outlines)} regions")
    return image


def render_filled(result: ColoringResult) -> Image.Image:
    """Paint every region with its palette color."""
    lookup = np.zeros((int(result.label_map.max()) + 1, 3), dtype=np.uint8)
    colors = result.palette.as_array().astype(np.uint8)
    for region in result.regions:
        lookup[region.label] = colors[region.color_index]
    return Image.fromarray(lookup[result.label_map])

"""Paint-by-number coloring book generator."""
from colorbook.types import (
    ArrayPixelSource,
    ColoringBookError,
    ColoringConfig,
    ColoringResult,
    ImageLoadError,
    Palette,
    PaletteColor,
    PixelSource,
    PreconditionError,
    Region,
    RegionOutline,
)
from colorbook.pipeline import ColoringBookPipeline, generate_coloring_book

__version__ = "0.1.0"

__all__ = [
    "ArrayPixelSource",
    "ColoringBookError",
    "ColoringBookPipeline",
    "ColoringConfig",
    "ColoringResult",
    "ImageLoadError",
    "Palette",
    "PaletteColor",
    "PixelSource",
    "PreconditionError",
    "Region",
    "RegionOutline",
    "generate_coloring_book",
]

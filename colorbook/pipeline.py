"""Main pipeline orchestrator for colorbook."""
import logging
import time
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np

from colorbook.contour import extract_outlines, outline_pixel_count
from colorbook.palette_builder import build_palette, sample_colors
from colorbook.palette_io import save_palette
from colorbook.palette_mapper import map_to_palette, quantized_image
from colorbook.raster_ingest import ingest
from colorbook.region_merger import merge_small_regions, min_area_for
from colorbook.render import render_filled, render_outline
from colorbook.segmenter import segment
from colorbook.types import (
    ColoringBookError,
    ColoringConfig,
    ColoringResult,
    source_to_array,
)

logger = logging.getLogger(__name__)

MIN_COLORS = 10
MAX_COLORS = 50


def clamp_num_colors(num_colors: int, low: int = MIN_COLORS, high: int = MAX_COLORS) -> int:
    """Clamp a requested color count to the supported range."""
    return max(low, min(high, int(num_colors)))


class ColoringBookPipeline:
    """Turns an image into a palette, merged regions and numbered outlines."""

    def __init__(self, config: Optional[ColoringConfig] = None):
        """
        Initialize pipeline with configuration.

        Args:
            config: Pipeline configuration. Uses defaults if None.
        """
        self.config = config or ColoringConfig()
        self.debug_stages: List[Tuple[str, np.ndarray]] = []

    def run(self, source, debug: bool = False) -> ColoringResult:
        """
        Run the analysis on an already-blurred image.

        Args:
            source: (H, W, 3) uint8 array or any PixelSource
            debug: If True, collect intermediate stage images

        Returns:
            ColoringResult

        Raises:
            PreconditionError: For zero-area images or invalid configuration
        """
        self.config.validate()
        image = source_to_array(source)
        height, width = image.shape[:2]

        self.debug_stages = []
        if debug:
            self.debug_stages.append(("1_input", image))

        # Step 1: Palette from sampled colors
        samples = sample_colors(image, self.config.sample_step)
        palette = build_palette(
            samples,
            self.config.num_colors,
            max_iterations=self.config.max_iterations,
            tolerance=self.config.tolerance,
        )

        # Step 2: Nearest palette color per pixel
        indices = map_to_palette(image, palette)
        if debug:
            self.debug_stages.append(("2_quantized", quantized_image(indices, palette)))

        # Step 3: Connected regions
        label_map, regions = segment(indices, palette, method=self.config.segment_method)

        # Step 4: Absorb small regions
        min_area = min_area_for(width, height, self.config.min_area_percent)
        label_map, merged = merge_small_regions(label_map, regions, min_area)

        # Step 5: Boundaries and label positions
        outlines = extract_outlines(merged, palette, self.config.min_outline_pixels)
        boundary_pixels, covered = outline_pixel_count(outlines)
        logger.info(
            f"{len(outlines)} outlines, {boundary_pixels} boundary pixels "
            f"covering {covered}/{width * height} pixels"
        )

        result = ColoringResult(
            palette=palette,
            label_map=label_map,
            regions=merged,
            outlines=outlines,
            quantized=indices,
            min_area=min_area,
            regions_before_merge=len(regions),
        )

        if debug:
            self.debug_stages.append(("3_merged", np.array(render_filled(result))))
            self.debug_stages.append(("4_outline", np.array(render_outline(result))))

        return result

    def process(
        self,
        image_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None,
        palette_path: Optional[Union[str, Path]] = None,
        preview_path: Optional[Union[str, Path]] = None,
        font_size: int = 18,
        debug: bool = False,
    ) -> ColoringResult:
        """
        Process an image file into a coloring page.

        Args:
            image_path: Path to input image
            output_path: Optional path to save the numbered outline PNG
            palette_path: Optional path to save the palette JSON
            preview_path: Optional path to save the filled-color preview PNG
            font_size: Font size of region numbers
            debug: If True, collect intermediate stage images

        Returns:
            ColoringResult

        Raises:
            FileNotFoundError: If input file doesn't exist
            ColoringBookError: If processing fails
        """
        start_time = time.time()
        try:
            ingest_result = ingest(image_path, blur_radius=self.config.blur_radius)
            logger.info(f"Loaded {image_path}: {ingest_result.width}x{ingest_result.height}")

            result = self.run(ingest_result.image, debug=debug)
            result.source_path = ingest_result.original_path

            if output_path:
                render_outline(result, font_size=font_size).save(output_path)
            if preview_path:
                render_filled(result).save(preview_path)
            if palette_path:
                save_palette(result.palette, palette_path)

        except (FileNotFoundError, ColoringBookError):
            raise
        except Exception as e:
            raise ColoringBookError(f"Pipeline processing failed: {e}") from e

        logger.info(f"Processed {image_path} in {time.time() - start_time:.2f}s")
        return result


def generate_coloring_book(
    image_path: Union[str, Path],
    output_path: Optional[Union[str, Path]] = None,
    palette_path: Optional[Union[str, Path]] = None,
    config: Optional[ColoringConfig] = None,
) -> ColoringResult:
    """
    Process an image through the coloring book pipeline.

    Convenience function for one-off processing.

    Example:
        >>> result = generate_coloring_book("photo.jpg", "page.png", "palette.json")
        >>> result = generate_coloring_book("photo.jpg", config=ColoringConfig(num_colors=20))
    """
    pipeline = ColoringBookPipeline(config)
    return pipeline.process(image_path, output_path, palette_path)

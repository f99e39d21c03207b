"""Command line interface for colorbook."""
import argparse
import logging
import sys
from pathlib import Path

import numpy as np
from PIL import Image

from colorbook.pipeline import ColoringBookPipeline, clamp_num_colors
from colorbook.types import ColoringBookError, ColoringConfig


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog='colorbook',
        description='Turn a photo into a paint-by-number coloring page',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  colorbook photo.jpg
  colorbook photo.jpg -o page.png --palette palette.json --colors 20
  colorbook photo.jpg --preview filled.png --blur 4 --min-area-percent 0.01
        """,
    )

    parser.add_argument(
        'input',
        type=str,
        help='Input image path'
    )

    parser.add_argument(
        '-o', '--output',
        type=str,
        help='Output outline PNG path (default: input_coloring.png)'
    )

    parser.add_argument(
        '--palette',
        type=str,
        default=None,
        help='Palette JSON path (default: input_palette.json)'
    )

    parser.add_argument(
        '--preview',
        type=str,
        default=None,
        help='Optional filled-color preview PNG path'
    )

    parser.add_argument(
        '-c', '--colors',
        type=int,
        default=10,
        help='Number of palette colors, clamped to 10-50 (default: 10)'
    )

    parser.add_argument(
        '--blur',
        type=float,
        default=8.0,
        help='Gaussian blur radius applied before quantization (default: 8)'
    )

    parser.add_argument(
        '--min-area-percent',
        type=float,
        default=0.015,
        help='Regions smaller than this fraction of the image are merged (default: 0.015)'
    )

    parser.add_argument(
        '--font-size',
        type=int,
        default=18,
        help='Font size of region numbers (default: 18)'
    )

    parser.add_argument(
        '--method',
        choices=['ndimage', 'flood'],
        default='ndimage',
        help='Segmentation engine (default: ndimage)'
    )

    parser.add_argument(
        '--save-stages',
        type=str,
        default=None,
        help='Directory to save pipeline stage debug images'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Log pipeline progress'
    )

    return parser


def save_debug_stages(pipeline: ColoringBookPipeline, stages_dir: Path) -> None:
    """Save collected stage images as PNGs."""
    stages_dir.mkdir(parents=True, exist_ok=True)
    for stage_name, stage_image in pipeline.debug_stages:
        stage_file = stages_dir / f"{stage_name}.png"
        Image.fromarray(stage_image.astype(np.uint8)).save(stage_file)
        print(f"  Saved debug stage: {stage_file}")


def main(args=None):
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.verbose:
        logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')

    input_path = Path(parsed_args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    output_path = Path(parsed_args.output) if parsed_args.output else \
        input_path.with_name(f"{input_path.stem}_coloring.png")
    palette_path = Path(parsed_args.palette) if parsed_args.palette else \
        input_path.with_name(f"{input_path.stem}_palette.json")

    num_colors = clamp_num_colors(parsed_args.colors)
    if num_colors != parsed_args.colors:
        print(f"Note: colors clamped from {parsed_args.colors} to {num_colors}")

    config = ColoringConfig(
        num_colors=num_colors,
        blur_radius=parsed_args.blur,
        min_area_percent=parsed_args.min_area_percent,
        segment_method=parsed_args.method,
    )

    print(f"Processing: {input_path}")
    print(f"  Colors: {num_colors}")
    print(f"  Blur radius: {config.blur_radius}")
    print(f"  Min area: {config.min_area_percent:.3%} of image")

    try:
        pipeline = ColoringBookPipeline(config)
        result = pipeline.process(
            input_path,
            output_path=output_path,
            palette_path=palette_path,
            preview_path=parsed_args.preview,
            font_size=parsed_args.font_size,
            debug=bool(parsed_args.save_stages),
        )
    except (ColoringBookError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"  Palette: {len(result.palette)} colors")
    print(f"  Regions: {result.regions_before_merge} -> {len(result.regions)} after merging")
    print(f"  Outline saved: {output_path}")
    print(f"  Palette saved: {palette_path}")
    if parsed_args.preview:
        print(f"  Preview saved: {parsed_args.preview}")

    if parsed_args.save_stages:
        save_debug_stages(pipeline, Path(parsed_args.save_stages))

    return 0


if __name__ == '__main__':
    sys.exit(main())

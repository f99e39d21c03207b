"""Palette persistence as JSON."""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from colorbook.types import ColoringBookError, Palette, PaletteColor, hex_to_rgb

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def palette_to_dict(palette: Palette, generated_at: Optional[datetime] = None) -> dict:
    """
    Serializable palette description.

    Returns:
        {"total_colors": N,
         "colors": [{"number", "hex", "rgb": {"r", "g", "b"}}, ...],
         "generated_at": "YYYY-MM-DD HH:MM:SS"}
    """
    generated_at = generated_at or datetime.now()
    return {
        "total_colors": len(palette),
        "colors": [
            {
                "number": color.number,
                "hex": color.hex,
                "rgb": {"r": color.r, "g": color.g, "b": color.b},
            }
            for color in palette
        ],
        "generated_at": generated_at.strftime(TIMESTAMP_FORMAT),
    }


def palette_from_dict(data: dict) -> Palette:
    """Rebuild a Palette from palette_to_dict output, ordered by number."""
    try:
        entries = sorted(data["colors"], key=lambda c: c["number"])
        colors = []
        for entry in entries:
            rgb = entry.get("rgb")
            if rgb is not None:
                r, g, b = rgb["r"], rgb["g"], rgb["b"]
            else:
                r, g, b = hex_to_rgb(entry["hex"])
            colors.append(PaletteColor(int(r), int(g), int(b)))
    except (KeyError, TypeError) as e:
        raise ColoringBookError(f"Malformed palette data: {e}") from e
    return Palette(colors)


def save_palette(palette: Palette, path: Union[str, Path]) -> Path:
    """
    Write the palette as pretty-printed JSON.

    Raises:
        ColoringBookError: If the palette is empty
    """
    if len(palette) == 0:
        raise ColoringBookError("No colors available. Generate a coloring book first.")
    path = Path(path)
    path.write_text(json.dumps(palette_to_dict(palette), indent=4), encoding="utf-8")
    logger.info(f"Saved {len(palette)}-color palette to {path}")
    return path


def load_palette(path: Union[str, Path]) -> Palette:
    """Read a palette JSON written by save_palette."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ColoringBookError(f"Invalid palette file {path}: {e}") from e
    return palette_from_dict(data)

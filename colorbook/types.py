"""Core types for the coloring book pipeline."""
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Protocol, Sequence, Tuple

import numpy as np

# Label map sentinel for pixels not yet assigned to a region
UNASSIGNED = -1

RGB = Tuple[int, int, int]
Point = Tuple[int, int]


class ColoringBookError(Exception):
    """Base exception for coloring book errors."""
    pass


class PreconditionError(ColoringBookError, ValueError):
    """Raised when the caller violates an input precondition."""
    pass


class ImageLoadError(ColoringBookError):
    """Raised when an input image cannot be read."""
    pass


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """Format an RGB triple as a lower-case ``#rrggbb`` string."""
    return f"#{int(r):02x}{int(g):02x}{int(b):02x}"


def hex_to_rgb(hex_code: str) -> RGB:
    """Parse ``#rrggbb`` (leading ``#`` optional) into an RGB triple."""
    value = hex_code.lstrip('#')
    if len(value) != 6:
        raise ColoringBookError(f"Invalid hex color: {hex_code!r}")
    return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))


def to_uint8(image: np.ndarray) -> np.ndarray:
    """
    Convert image values to uint8.

    Floats are read as [0, 1] and scaled by 255 unless the maximum exceeds
    1.0, in which case they are already in 0-255. Integer values must lie
    in 0-255.

    Raises:
        PreconditionError: For non-numeric dtypes, non-finite floats or
            integers outside 0-255
    """
    if image.dtype == np.uint8:
        return image

    if np.issubdtype(image.dtype, np.floating):
        if image.size == 0:
            return image.astype(np.uint8)
        if not np.isfinite(image).all():
            raise PreconditionError("Image contains NaN or infinite values")
        if image.max() <= 1.0:
            image = image * 255.0
        return np.clip(np.rint(image), 0, 255).astype(np.uint8)

    if np.issubdtype(image.dtype, np.integer):
        if image.size and (image.min() < 0 or image.max() > 255):
            raise PreconditionError(
                f"Integer image values must be in 0-255, got {image.min()}..{image.max()}"
            )
        return image.astype(np.uint8)

    raise PreconditionError(f"Unsupported image dtype: {image.dtype}")


class PixelSource(Protocol):
    """Anything the pipeline can read pixels from."""

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def color_at(self, x: int, y: int) -> RGB: ...


class ArrayPixelSource:
    """PixelSource adapter over an (H, W, 3) array, converted with to_uint8."""

    def __init__(self, image: np.ndarray):
        if not isinstance(image, np.ndarray):
            raise PreconditionError("Input must be a numpy array")
        if image.ndim != 3 or image.shape[2] != 3:
            raise PreconditionError(f"Input must be HxWx3 array, got shape {image.shape}")
        self._image = to_uint8(image)

    @property
    def width(self) -> int:
        return self._image.shape[1]

    @property
    def height(self) -> int:
        return self._image.shape[0]

    @property
    def array(self) -> np.ndarray:
        return self._image

    def color_at(self, x: int, y: int) -> RGB:
        r, g, b = self._image[y, x]
        return (int(r), int(g), int(b))


def source_to_array(source) -> np.ndarray:
    """
    Materialize a pixel source as an (H, W, 3) uint8 array.

    Arrays and ArrayPixelSource instances are returned without copying;
    any other PixelSource is read pixel by pixel.

    Raises:
        PreconditionError: If the source has zero area
    """
    if isinstance(source, np.ndarray):
        array = ArrayPixelSource(source).array
    elif isinstance(source, ArrayPixelSource):
        array = source.array
    else:
        width, height = int(source.width), int(source.height)
        array = np.zeros((max(height, 0), max(width, 0), 3), dtype=np.uint8)
        for y in range(height):
            for x in range(width):
                array[y, x] = source.color_at(x, y)

    if array.shape[0] == 0 or array.shape[1] == 0:
        raise PreconditionError(f"Image has zero area: {array.shape[1]}x{array.shape[0]}")
    return array


@dataclass
class PaletteColor:
    """One palette entry."""
    r: int
    g: int
    b: int
    count: int = 1
    number: int = 0  # 1-based display number, set by Palette

    @property
    def hex(self) -> str:
        return rgb_to_hex(self.r, self.g, self.b)

    @property
    def rgb(self) -> RGB:
        return (self.r, self.g, self.b)


class Palette:
    """
    Ordered palette; order defines the numbers shown to the user.

    Duplicated colors resolve to their first index, not the last one a
    plain hex-to-number table would keep, so index_of agrees with the
    nearest-color mapping.
    """

    def __init__(self, colors: Sequence[PaletteColor]):
        self.colors: List[PaletteColor] = list(colors)
        self._index_by_hex: Dict[str, int] = {}
        for i, color in enumerate(self.colors):
            color.number = i + 1
            self._index_by_hex.setdefault(color.hex, i)

    def __len__(self) -> int:
        return len(self.colors)

    def __getitem__(self, index: int) -> PaletteColor:
        return self.colors[index]

    def __iter__(self) -> Iterator[PaletteColor]:
        return iter(self.colors)

    def __repr__(self) -> str:
        return f"Palette({[c.hex for c in self.colors]})"

    def index_of(self, hex_code: str) -> int:
        """Return the palette index for a hex color (first match)."""
        try:
            return self._index_by_hex[hex_code.lower()]
        except KeyError:
            raise ColoringBookError(f"Color {hex_code} is not in the palette") from None

    def as_array(self) -> np.ndarray:
        """Palette as a (K, 3) int64 array."""
        if not self.colors:
            return np.zeros((0, 3), dtype=np.int64)
        return np.array([c.rgb for c in self.colors], dtype=np.int64)

    @property
    def hex_codes(self) -> List[str]:
        return [c.hex for c in self.colors]


@dataclass
class Region:
    """Connected set of same-color pixels."""
    label: int
    color_index: int
    hex: str
    pixels: np.ndarray = field(default_factory=lambda: np.zeros((0, 2), dtype=np.int64))

    @property
    def area(self) -> int:
        return int(len(self.pixels))

    @property
    def is_dead(self) -> bool:
        return len(self.pixels) == 0

    @property
    def xs(self) -> np.ndarray:
        return self.pixels[:, 0]

    @property
    def ys(self) -> np.ndarray:
        return self.pixels[:, 1]


@dataclass
class RegionOutline:
    """Boundary pixels and label position for one region."""
    label: int
    number: int
    hex: str
    boundary: np.ndarray
    centroid: Point
    area: int


@dataclass
class ColoringConfig:
    """Configuration for the coloring book pipeline."""
    # Palette
    num_colors: int = 10
    sample_step: int = 2
    max_iterations: int = 20
    tolerance: float = 1.0

    # Preprocessing (applied when loading from file)
    blur_radius: float = 8.0

    # Segmentation and cleanup
    segment_method: str = "ndimage"  # "ndimage" or "flood"
    min_area_percent: float = 0.015

    # Outlines
    min_outline_pixels: int = 2

    def validate(self) -> None:
        """Raise PreconditionError for out-of-range settings."""
        if self.num_colors < 1:
            raise PreconditionError(f"num_colors must be >= 1, got {self.num_colors}")
        if self.sample_step < 1:
            raise PreconditionError(f"sample_step must be >= 1, got {self.sample_step}")
        if self.max_iterations < 1:
            raise PreconditionError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if not 0.0 <= self.min_area_percent <= 1.0:
            raise PreconditionError(
                f"min_area_percent must be within [0, 1], got {self.min_area_percent}"
            )
        if self.blur_radius < 0:
            raise PreconditionError(f"blur_radius must be >= 0, got {self.blur_radius}")
        if self.segment_method not in ("ndimage", "flood"):
            raise PreconditionError(f"Unknown segment_method: {self.segment_method}")


@dataclass
class ColoringResult:
    """Everything one pipeline run produces."""
    palette: Palette
    label_map: np.ndarray
    regions: List[Region]
    outlines: List[RegionOutline]
    quantized: np.ndarray
    min_area: int
    regions_before_merge: int = 0
    source_path: Optional[str] = None

    @property
    def height(self) -> int:
        return self.label_map.shape[0]

    @property
    def width(self) -> int:
        return self.label_map.shape[1]


@dataclass
class IngestResult:
    """Result from raster image ingestion."""
    image: np.ndarray      # (H, W, 3) uint8, blurred when requested
    original: np.ndarray   # (H, W, 3) uint8 as loaded
    original_path: str
    width: int
    height: int
    has_alpha: bool

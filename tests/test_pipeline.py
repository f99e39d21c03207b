"""Integration tests for the full pipeline."""
import json

import numpy as np
import pytest
from PIL import Image

from colorbook.pipeline import ColoringBookPipeline, clamp_num_colors, generate_coloring_book
from colorbook.types import (
    ArrayPixelSource,
    ColoringBookError,
    ColoringConfig,
    ImageLoadError,
    PreconditionError,
)
from tests.conftest import neighbor_areas


class CallbackSource:
    """PixelSource backed by a function, like an image library adapter."""

    def __init__(self, image):
        self._image = image
        self.width = image.shape[1]
        self.height = image.shape[0]

    def color_at(self, x, y):
        return tuple(int(c) for c in self._image[y, x])


class TestQuadrantScenario:
    """4x4 image of four 2x2 quadrants, four colors, no merging."""

    @pytest.fixture
    def result(self, quadrants):
        config = ColoringConfig(num_colors=4, min_area_percent=0.0)
        return ColoringBookPipeline(config).run(quadrants)

    def test_palette(self, result):
        assert result.palette.hex_codes == ["#ff0000", "#00ff00", "#0000ff", "#ffff00"]
        assert [c.number for c in result.palette] == [1, 2, 3, 4]

    def test_regions(self, result):
        assert result.regions_before_merge == 4
        assert len(result.regions) == 4
        assert all(r.area == 4 for r in result.regions)
        assert result.min_area == 0

    def test_outlines(self, result):
        assert [o.centroid for o in result.outlines] == [(0, 0), (2, 0), (0, 2), (2, 2)]
        assert [o.number for o in result.outlines] == [1, 2, 3, 4]
        for outline, region in zip(result.outlines, result.regions):
            assert len(outline.boundary) == region.area


class TestSolidScenario:
    """10x10 single-color image."""

    def test_single_region(self, solid):
        result = ColoringBookPipeline(ColoringConfig(num_colors=10)).run(solid)

        assert len(result.palette) == 10
        assert result.palette[0].hex == "#1e78c8"
        assert len(result.regions) == 1
        assert result.regions[0].area == 100

        outline = result.outlines[0]
        assert len(outline.boundary) == 36
        assert outline.centroid == (4, 4)
        assert outline.number == 1


def red_blue_halves(scale, dtype):
    image = np.zeros((10, 10, 3), dtype=dtype)
    image[:, :5, 0] = scale
    image[:, 5:, 2] = scale
    return image


class TestInputConversion:
    """Test pixel value normalization of array inputs."""

    @pytest.mark.parametrize("scale, dtype", [
        (1.0, np.float32),
        (1.0, np.float64),
        (255.0, np.float64),
        (255, np.int64),
    ])
    def test_red_blue_palette(self, scale, dtype):
        config = ColoringConfig(num_colors=10, min_area_percent=0.0)

        result = ColoringBookPipeline(config).run(red_blue_halves(scale, dtype))

        assert set(result.palette.hex_codes) == {"#ff0000", "#0000ff"}
        assert result.palette[result.quantized[0, 0]].hex == "#ff0000"
        assert result.palette[result.quantized[0, 9]].hex == "#0000ff"

    @pytest.mark.parametrize("image", [
        np.full((4, 4, 3), 300, dtype=np.int32),
        np.full((4, 4, 3), -1, dtype=np.int16),
        np.full((4, 4, 3), np.nan),
        np.full((4, 4, 3), True),
    ])
    def test_unusable_values_rejected(self, image):
        with pytest.raises(PreconditionError):
            ColoringBookPipeline().run(image)

    def test_float_adapter(self):
        source = ArrayPixelSource(np.full((2, 2, 3), 0.5))

        assert source.color_at(1, 1) == (128, 128, 128)


class TestPipelineRun:
    """Test run() on in-memory images."""

    def test_pixel_source_matches_array(self, blocky_image):
        pipeline = ColoringBookPipeline(ColoringConfig(num_colors=6))

        from_array = pipeline.run(blocky_image)
        from_adapter = pipeline.run(ArrayPixelSource(blocky_image))
        from_callback = pipeline.run(CallbackSource(blocky_image))

        np.testing.assert_array_equal(from_array.label_map, from_callback.label_map)
        np.testing.assert_array_equal(from_array.label_map, from_adapter.label_map)
        assert from_array.palette.hex_codes == from_callback.palette.hex_codes

    def test_small_regions_merged(self, blocky_image):
        result = ColoringBookPipeline(ColoringConfig(num_colors=10)).run(blocky_image)

        assert result.min_area == 54
        assert len(result.regions) <= result.regions_before_merge
        assert sum(r.area for r in result.regions) == 60 * 60

        areas = {r.label: r.area for r in result.regions}
        for region in result.regions:
            if region.area < result.min_area:
                assert all(a < result.min_area for a in neighbor_areas(result.label_map, region, areas))

    def test_segment_methods_agree(self, blocky_image):
        fast = ColoringBookPipeline(ColoringConfig(segment_method="ndimage")).run(blocky_image)
        flood = ColoringBookPipeline(ColoringConfig(segment_method="flood")).run(blocky_image)

        np.testing.assert_array_equal(fast.label_map, flood.label_map)

    def test_debug_stages(self, quadrants):
        pipeline = ColoringBookPipeline(ColoringConfig(num_colors=4, min_area_percent=0.0))

        pipeline.run(quadrants, debug=True)

        names = [name for name, _ in pipeline.debug_stages]
        assert names == ["1_input", "2_quantized", "3_merged", "4_outline"]
        assert all(stage.shape == (4, 4, 3) for _, stage in pipeline.debug_stages)

    def test_zero_area_image(self):
        with pytest.raises(PreconditionError):
            ColoringBookPipeline().run(np.zeros((0, 0, 3), dtype=np.uint8))

    @pytest.mark.parametrize("config", [
        ColoringConfig(num_colors=0),
        ColoringConfig(min_area_percent=1.5),
        ColoringConfig(sample_step=0),
        ColoringConfig(segment_method="magic"),
    ])
    def test_invalid_config(self, quadrants, config):
        with pytest.raises(PreconditionError):
            ColoringBookPipeline(config).run(quadrants)


class TestClampNumColors:
    """Test the upstream color count clamp."""

    def test_clamp(self):
        assert clamp_num_colors(4) == 10
        assert clamp_num_colors(25) == 25
        assert clamp_num_colors(80) == 50


class TestPipelineProcess:
    """Test process() with files."""

    def test_writes_outputs(self, image_file, tmp_path):
        output = tmp_path / "page.png"
        palette_path = tmp_path / "palette.json"
        preview = tmp_path / "preview.png"
        config = ColoringConfig(num_colors=4, blur_radius=0)

        result = ColoringBookPipeline(config).process(
            image_file, output, palette_path, preview_path=preview
        )

        assert result.source_path == str(image_file)
        assert result.width == 40 and result.height == 40
        with Image.open(output) as page:
            assert page.size == (40, 40)
        with Image.open(preview) as filled:
            assert filled.size == (40, 40)
        data = json.loads(palette_path.read_text())
        assert data["total_colors"] == len(result.palette)
        assert [c["hex"] for c in data["colors"]] == result.palette.hex_codes

    def test_blurred_input(self, image_file):
        result = ColoringBookPipeline(ColoringConfig(num_colors=10, blur_radius=3)).process(image_file)

        assert sum(r.area for r in result.regions) == 1600
        assert len(result.palette) == 10
        assert all(o.area >= 2 for o in result.outlines)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ColoringBookPipeline().process(tmp_path / "nonexistent.jpg")

    def test_unreadable_file(self, tmp_path):
        bogus = tmp_path / "bogus.png"
        bogus.write_text("not an image")

        with pytest.raises(ImageLoadError):
            ColoringBookPipeline().process(bogus)

    def test_convenience_function(self, image_file, tmp_path):
        output = tmp_path / "page.png"

        result = generate_coloring_book(
            image_file, output, config=ColoringConfig(num_colors=4, blur_radius=0)
        )

        assert output.exists()
        assert isinstance(result.regions, list)

    def test_errors_are_coloring_book_errors(self, image_file):
        with pytest.raises(ColoringBookError):
            ColoringBookPipeline(ColoringConfig(num_colors=-1)).process(image_file)

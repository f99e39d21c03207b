"""Tests for image loading and blurring."""
import numpy as np
import pytest
from PIL import Image

from colorbook.raster_ingest import blur_image, ingest, ingest_from_array
from colorbook.types import ImageLoadError, PreconditionError
from tests.conftest import quadrant_image


class TestIngest:
    """Test file loading."""

    def test_rgb_png(self, image_file):
        result = ingest(image_file)

        assert (result.width, result.height) == (40, 40)
        assert result.image.dtype == np.uint8
        np.testing.assert_array_equal(result.image, quadrant_image(40))
        assert not result.has_alpha

    def test_rgba_composited_on_white(self, tmp_path):
        rgba = np.zeros((4, 4, 4), dtype=np.uint8)
        rgba[..., 0] = 255
        rgba[:2, :, 3] = 255  # top half opaque red, bottom half transparent
        path = tmp_path / "alpha.png"
        Image.fromarray(rgba).save(path)

        result = ingest(path)

        assert result.has_alpha
        assert tuple(result.image[0, 0]) == (255, 0, 0)
        assert tuple(result.image[3, 3]) == (255, 255, 255)

    def test_grayscale(self, tmp_path):
        path = tmp_path / "gray.png"
        Image.fromarray(np.full((3, 5), 77, dtype=np.uint8)).save(path)

        result = ingest(path)

        assert result.image.shape == (3, 5, 3)
        assert np.all(result.image == 77)

    def test_blur_changes_edges_only(self, image_file):
        result = ingest(image_file, blur_radius=2)

        np.testing.assert_array_equal(result.original, quadrant_image(40))
        assert not np.array_equal(result.image, result.original)
        # Far from any edge the color is unchanged
        np.testing.assert_allclose(result.image[10, 10], (255, 0, 0), atol=1)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ingest(tmp_path / "missing.png")

    def test_directory(self, tmp_path):
        with pytest.raises(ImageLoadError):
            ingest(tmp_path)

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "notes.png"
        path.write_bytes(b"plain text")

        with pytest.raises(ImageLoadError):
            ingest(path)


class TestIngestFromArray:
    """Test array ingestion."""

    def test_float_image(self):
        image = np.ones((2, 2, 3), dtype=np.float32)

        result = ingest_from_array(image)

        assert result.image.dtype == np.uint8
        assert np.all(result.image == 255)

    def test_float_image_in_byte_range(self):
        image = np.full((2, 2, 3), 128.0)

        result = ingest_from_array(image)

        assert np.all(result.image == 128)

    def test_out_of_range_integers(self):
        with pytest.raises(PreconditionError):
            ingest_from_array(np.full((2, 2, 3), 256, dtype=np.int32))

    def test_rgba_array(self):
        image = np.zeros((1, 1, 4), dtype=np.uint8)  # fully transparent black

        result = ingest_from_array(image)

        assert result.has_alpha
        assert tuple(result.image[0, 0]) == (255, 255, 255)

    def test_bad_channels(self):
        with pytest.raises(PreconditionError):
            ingest_from_array(np.zeros((2, 2, 2), dtype=np.uint8))

    def test_zero_area(self):
        with pytest.raises(PreconditionError):
            ingest_from_array(np.zeros((0, 3, 3), dtype=np.uint8))


class TestBlurImage:
    """Test the blur helper."""

    def test_zero_radius_is_identity(self):
        image = quadrant_image(8)
        assert blur_image(image, 0) is image

    def test_negative_radius(self):
        with pytest.raises(PreconditionError):
            blur_image(quadrant_image(8), -1)

    def test_solid_unchanged(self, solid):
        blurred = blur_image(solid, 4).astype(int)
        assert np.abs(blurred - solid.astype(int)).max() <= 1

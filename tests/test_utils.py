"""
Unit tests for image normalisation.
"""

import numpy as np
from PIL import Image

from matrix import ModuleMatrix
from utils import normalize_image, to_luminance


def checkerboard(size=6):
    return ModuleMatrix.from_rows(
        [[(row + column) % 2 for column in range(size)] for row in range(size)]
    ).to_image()


class TestNormalizeImage:
    """Nearest neighbour upscaling to the canonical size."""

    def test_large_image_unchanged(self):
        image = Image.new("L", (600, 500), 255)
        assert normalize_image(image, 500, 500) is image

    def test_small_image_resized_exactly(self):
        image = checkerboard()
        assert normalize_image(image, 500, 400).size == (500, 400)

    def test_one_small_dimension(self):
        image = Image.new("L", (800, 100), 255)
        assert normalize_image(image, 500, 500).size == (500, 500)

    def test_no_smoothing(self):
        """Only the original grey levels survive nearest neighbour scaling."""
        normalized = normalize_image(checkerboard(), 500, 500)
        assert set(np.unique(np.asarray(normalized))) == {0, 255}

    def test_idempotent(self):
        once = normalize_image(checkerboard(), 500, 500)
        twice = normalize_image(once, 500, 500)
        assert np.array_equal(np.asarray(once), np.asarray(twice))


class TestToLuminance:
    """Grey level extraction."""

    def test_shape_is_height_by_width(self):
        luminance = to_luminance(Image.new("RGB", (7, 3), (255, 255, 255)))
        assert luminance.shape == (3, 7)
        assert luminance.dtype == np.uint8

    def test_colour_conversion(self):
        luminance = to_luminance(Image.new("RGB", (2, 2), (0, 0, 0)))
        assert not luminance.any()

    def test_transparent_pixels_are_white(self):
        image = Image.new("RGBA", (4, 4), (0, 0, 0, 0))
        assert (to_luminance(image) == 255).all()

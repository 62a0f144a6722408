"""Tests for fractal/coloring.py: quantization, channel order, QImage."""

import numpy as np
import pytest
from PyQt6.QtGui import QImage

from fractal.coloring import color_to_rgb8, numpy_to_qimage, rgba_to_bgra


class TestRgbaToBgra:
    """Test float RGBA -> BGRA byte conversion."""

    def test_output_shape(self):
        colors = np.zeros((16, 4), dtype=np.float32)
        bgra = rgba_to_bgra(colors, resolution=4)
        assert bgra.shape == (4, 4, 4)
        assert bgra.dtype == np.uint8

    def test_channel_order(self):
        """Red input lands in byte 2, blue in byte 0."""
        colors = np.array([[1.0, 0.5, 0.0, 1.0]], dtype=np.float32)
        bgra = rgba_to_bgra(colors, resolution=1)
        assert list(bgra[0, 0]) == [0, 128, 255, 255]

    def test_clamps_out_of_range(self):
        colors = np.array([[1.7, -0.3, 0.5, 2.0]], dtype=np.float32)
        bgra = rgba_to_bgra(colors, resolution=1)
        assert list(bgra[0, 0]) == [128, 0, 255, 255]

    def test_non_finite_is_black(self):
        colors = np.array([[np.nan, np.nan, np.nan, np.nan]], dtype=np.float32)
        bgra = rgba_to_bgra(colors, resolution=1)
        assert list(bgra[0, 0]) == [0, 0, 0, 0]

    def test_row_major_layout(self):
        colors = np.zeros((4, 4), dtype=np.float32)
        colors[1] = (1.0, 0.0, 0.0, 1.0)  # row 0, column 1
        bgra = rgba_to_bgra(colors, resolution=2)
        assert bgra[0, 1, 2] == 255
        assert bgra[1, 0, 2] == 0

    def test_input_unchanged(self):
        colors = np.array([[1.7, -0.3, 0.5, 2.0]], dtype=np.float32)
        before = colors.copy()
        rgba_to_bgra(colors, resolution=1)
        np.testing.assert_array_equal(colors, before)


class TestColorToRgb8:
    """Test swatch color conversion."""

    def test_primary(self):
        assert color_to_rgb8((0.0, 0.8, 0.8, 0.8)) == (0, 204, 204)

    def test_clamped(self):
        assert color_to_rgb8((2.0, -1.0, 0.5, 1.0)) == (255, 0, 128)


class TestNumpyToQImage:
    """Test QImage construction."""

    def test_dimensions(self):
        bgra = np.zeros((3, 5, 4), dtype=np.uint8)
        image = numpy_to_qimage(bgra)
        assert image.width() == 5
        assert image.height() == 3

    def test_format_is_opaque(self):
        image = numpy_to_qimage(np.zeros((2, 2, 4), dtype=np.uint8))
        assert image.format() == QImage.Format.Format_RGB32

    def test_keeps_array_alive(self):
        image = numpy_to_qimage(np.zeros((2, 2, 4), dtype=np.uint8))
        assert image._numpy_ref.flags["C_CONTIGUOUS"]

    def test_pixel_value(self):
        colors = np.array([[1.0, 0.0, 0.0, 1.0]], dtype=np.float32)
        image = numpy_to_qimage(rgba_to_bgra(colors, resolution=1))
        pixel = image.pixelColor(0, 0)
        assert (pixel.red(), pixel.green(), pixel.blue()) == (255, 0, 0)

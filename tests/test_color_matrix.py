"""
Tests for color matrix algebra.

Tests cover:
- Identity and neutral effect matrices
- Multiplication order and associativity
- Negative matrix with and without color compression
- Applying matrices to pixels
"""

import unittest

import numpy as np
import pytest
from PIL import Image

from BI_Libs.errors import PreconditionError, UnsupportedPixelFormatError
from BI_Libs.ImagingLib.color_matrix import (
    GRAYSCALE_MATRIX,
    SEPIA_MATRIX,
    ColorMatrix,
    compose,
    create_brightness_matrix,
    create_contrast_matrix,
    create_negative_matrix,
    create_opacity_matrix,
    multiply,
)
from BI_Libs.ImagingLib.image_ops import apply_color_matrix


class TestColorMatrix(unittest.TestCase):
    """Test ColorMatrix value semantics."""

    def test_default_is_identity(self):
        """A matrix created without values is the identity."""
        self.assertTrue(ColorMatrix().is_identity())
        self.assertEqual(ColorMatrix(), ColorMatrix.identity())

    def test_values_are_read_only(self):
        """The underlying array cannot be changed."""
        matrix = ColorMatrix.identity()

        with self.assertRaises(ValueError):
            matrix.values[0, 0] = 2.0

    def test_wrong_shape_rejected(self):
        """Only 5x5 matrices are accepted."""
        with self.assertRaises(ValueError):
            ColorMatrix(np.identity(4))

    def test_equal_matrices_hash_alike(self):
        """Equal matrices can be used as dictionary keys."""
        a = create_contrast_matrix(2.0)
        b = create_contrast_matrix(2.0)

        self.assertEqual(a, b)
        self.assertEqual(hash(a), hash(b))

    def test_homogeneous_column(self):
        """Every produced matrix keeps (0, 0, 0, 0, 1) in its last column."""
        matrices = [
            create_brightness_matrix(0.3),
            create_contrast_matrix(2.5),
            create_opacity_matrix(0.4),
            create_negative_matrix(),
            GRAYSCALE_MATRIX,
            SEPIA_MATRIX,
        ]
        for matrix in matrices:
            column = [matrix[row, 4] for row in range(5)]
            self.assertEqual(column, [0.0, 0.0, 0.0, 0.0, 1.0])


class TestNeutralMatrices:
    """Neutral effect parameters produce the identity."""

    def test_brightness_zero(self):
        assert create_brightness_matrix(0).is_identity()

    def test_contrast_one(self):
        assert create_contrast_matrix(1).is_identity()

    def test_opacity_zero(self):
        assert create_opacity_matrix(0).is_identity()


class TestMultiply:
    """Tests for multiply and compose."""

    def test_identity_round_trip(self):
        """Multiplying with the identity leaves a matrix unchanged."""
        identity = ColorMatrix.identity()

        for matrix in (SEPIA_MATRIX, create_negative_matrix(), create_contrast_matrix(0.3)):
            assert multiply(identity, matrix) == matrix
            assert multiply(matrix, identity) == matrix

    def test_associative(self):
        """(A.B).C equals A.(B.C) within float tolerance."""
        a = create_contrast_matrix(1.7)
        b = SEPIA_MATRIX
        c = create_brightness_matrix(-0.2)

        left = multiply(multiply(a, b), c)
        right = multiply(a, multiply(b, c))

        assert left.is_close(right)

    def test_not_commutative(self):
        """Order matters for brightness and contrast."""
        brightness = create_brightness_matrix(0.5)
        contrast = create_contrast_matrix(2.0)

        assert not multiply(brightness, contrast).is_close(multiply(contrast, brightness))

    def test_right_operand_applies_first(self):
        """multiply(left, right) runs right on the pixel before left."""
        brightness = create_brightness_matrix(0.25)
        contrast = create_contrast_matrix(2.0)
        pixel = np.array([0.5, 0.5, 0.5, 1.0, 1.0], dtype=np.float32)

        combined = multiply(contrast, brightness)
        result = pixel @ combined.values

        # (0.5 + 0.25) * 2 - 0.5 = 1.0
        assert result[0] == pytest.approx(1.0)

    def test_then_matches_multiply(self):
        first = create_brightness_matrix(0.1)
        second = create_contrast_matrix(1.5)

        assert first.then(second) == multiply(second, first)

    def test_compose_folds_in_application_order(self):
        first = create_brightness_matrix(0.1)
        second = create_contrast_matrix(1.5)
        third = create_opacity_matrix(0.5)

        expected = multiply(third, multiply(second, first))
        assert compose([first, second, third]).is_close(expected)

    def test_compose_empty_is_identity(self):
        assert compose([]).is_identity()

    def test_none_operand_rejected(self):
        with pytest.raises(PreconditionError):
            multiply(None, ColorMatrix.identity())
        with pytest.raises(PreconditionError):
            multiply(ColorMatrix.identity(), None)


class TestNegativeMatrix:
    """Tests for the negative matrix and its color compression."""

    def test_plain_negative(self):
        pixel = np.array([0.2, 0.0, 1.0, 1.0, 1.0], dtype=np.float32)
        result = pixel @ create_negative_matrix(color_compression=False).values

        assert result[:4] == pytest.approx([0.8, 1.0, 0.0, 1.0])

    def test_compressed_negative_stays_inside_range(self):
        matrix = create_negative_matrix()
        white = np.array([1.0, 1.0, 1.0, 1.0, 1.0], dtype=np.float32) @ matrix.values
        black = np.array([0.0, 0.0, 0.0, 1.0, 1.0], dtype=np.float32) @ matrix.values

        assert white[0] == pytest.approx(0.004, abs=1e-6)
        assert black[0] == pytest.approx(0.996, abs=1e-6)
        assert white[3] == pytest.approx(1.0)


class TestApplyColorMatrix:
    """Tests for applying matrices to images."""

    def test_grayscale_pixels(self):
        image = Image.new("RGBA", (4, 4), (255, 0, 0, 255))

        apply_color_matrix(image, GRAYSCALE_MATRIX)

        r, g, b, a = image.getpixel((0, 0))
        assert r == g == b == round(0.3086 * 255)
        assert a == 255

    def test_modifies_in_place(self):
        image = Image.new("RGBA", (2, 2), (10, 20, 30, 255))

        result = apply_color_matrix(image, create_brightness_matrix(0.5))

        assert result is image
        assert image.getpixel((0, 0))[0] > 10

    def test_opacity_with_clear_surface(self):
        image = Image.new("RGBA", (2, 2), (100, 100, 100, 255))

        apply_color_matrix(image, create_opacity_matrix(0.5), clear_surface=True)

        assert image.getpixel((0, 0))[3] == 128

    def test_rgb_image_keeps_mode(self):
        image = Image.new("RGB", (2, 2), (0, 0, 0))

        apply_color_matrix(image, create_negative_matrix(color_compression=False))

        assert image.mode == "RGB"
        assert image.getpixel((1, 1)) == (255, 255, 255)

    def test_indexed_image_rejected(self, palette_image):
        with pytest.raises(UnsupportedPixelFormatError):
            apply_color_matrix(palette_image, GRAYSCALE_MATRIX)

    def test_missing_matrix_rejected(self):
        with pytest.raises(PreconditionError):
            apply_color_matrix(Image.new("RGBA", (1, 1)), None)

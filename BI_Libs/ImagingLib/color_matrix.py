"""
Color matrix algebra for Better Image.

A color matrix is a 5x5 affine transform applied to every pixel written as
the row vector (R, G, B, A, 1) with channels normalised to 0..1:

    [r' g' b' a' 1] = [r g b a 1] . M

Rows 0-3 hold the per-channel weights, row 4 holds the translation that is
added to each output channel. Column 4 is always (0, 0, 0, 0, 1).

Example:
    >>> combined = multiply(create_contrast_matrix(1.2), GRAYSCALE_MATRIX)
    >>> # applies grayscale first, then contrast
"""

from typing import Any, Iterable, Optional, Sequence

import numpy as np

from BI_Libs.constants import (
    COMPRESSION_BIAS,
    COMPRESSION_SCALE,
    GRAYSCALE_BLUE_WEIGHT,
    GRAYSCALE_GREEN_WEIGHT,
    GRAYSCALE_RED_WEIGHT,
    MATRIX_SIZE,
)
from BI_Libs.errors import PreconditionError


class ColorMatrix:
    """Immutable 5x5 single precision color matrix."""

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Any] = None) -> None:
        if values is None:
            array = np.identity(MATRIX_SIZE, dtype=np.float32)
        else:
            array = np.array(values, dtype=np.float32)
        if array.shape != (MATRIX_SIZE, MATRIX_SIZE):
            raise ValueError(
                f"A color matrix must be {MATRIX_SIZE}x{MATRIX_SIZE}, got shape {array.shape}"
            )
        array.setflags(write=False)
        self._values = array

    @classmethod
    def identity(cls) -> "ColorMatrix":
        return cls()

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the matrix as a float32 array."""
        return self._values

    def __getitem__(self, key):
        return float(self._values[key])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColorMatrix):
            return NotImplemented
        return bool(np.array_equal(self._values, other._values))

    def __hash__(self) -> int:
        return hash(self._values.tobytes())

    def __repr__(self) -> str:
        rows = ", ".join(
            "[" + ", ".join(f"{value:g}" for value in row) + "]" for row in self._values
        )
        return f"ColorMatrix([{rows}])"

    def to_list(self) -> list:
        return self._values.tolist()

    def is_identity(self) -> bool:
        return bool(np.array_equal(self._values, np.identity(MATRIX_SIZE, dtype=np.float32)))

    def is_close(self, other: "ColorMatrix", tolerance: float = 1e-5) -> bool:
        return bool(np.allclose(self._values, other.values, atol=tolerance))

    def then(self, following: "ColorMatrix") -> "ColorMatrix":
        """Return the matrix that applies this matrix first, then ``following``."""
        return multiply(following, self)


def multiply(left: ColorMatrix, right: ColorMatrix) -> ColorMatrix:
    """
    Compose two color matrices.

    Computes ``result[i][j] = sum_k right[i][k] * left[k][j]``, i.e. the
    product ``right . left``. Applied to a pixel this runs ``right`` first and
    ``left`` second; the operation is not commutative.

    Raises:
        PreconditionError: If either operand is None
    """
    if left is None:
        raise PreconditionError("left")
    if right is None:
        raise PreconditionError("right")

    return ColorMatrix(right.values @ left.values)


def compose(matrices: Iterable[ColorMatrix]) -> ColorMatrix:
    """Fold matrices given in application order into a single matrix."""
    result = ColorMatrix.identity()
    for matrix in matrices:
        result = multiply(matrix, result)
    return result


def _scale_and_translate(scale: Sequence[float], translate: Sequence[float]) -> ColorMatrix:
    values = np.identity(MATRIX_SIZE, dtype=np.float32)
    for channel in range(4):
        values[channel, channel] = scale[channel]
        values[4, channel] = translate[channel]
    return ColorMatrix(values)


def create_brightness_matrix(brightness: float) -> ColorMatrix:
    """Add ``brightness`` to the red, green and blue channels."""
    return _scale_and_translate(
        (1.0, 1.0, 1.0, 1.0),
        (brightness, brightness, brightness, 0.0),
    )


def create_contrast_matrix(contrast: float) -> ColorMatrix:
    """Scale red, green and blue by ``contrast`` around the mid tone."""
    translate = (1.0 - contrast) / 2.0
    return _scale_and_translate(
        (contrast, contrast, contrast, 1.0),
        (translate, translate, translate, 0.0),
    )


def create_opacity_matrix(opacity: float) -> ColorMatrix:
    """Scale the alpha channel by ``1 - opacity``; 0 keeps the image opaque."""
    return _scale_and_translate(
        (1.0, 1.0, 1.0, 1.0 - opacity),
        (0.0, 0.0, 0.0, 0.0),
    )


def create_compression_matrix() -> ColorMatrix:
    return _scale_and_translate(
        (COMPRESSION_SCALE, COMPRESSION_SCALE, COMPRESSION_SCALE, 1.0),
        (COMPRESSION_BIAS, COMPRESSION_BIAS, COMPRESSION_BIAS, 0.0),
    )


def create_negative_matrix(color_compression: bool = True) -> ColorMatrix:
    """
    Invert red, green and blue (``c' = 1 - c``).

    With ``color_compression`` the inverted colors are squeezed into
    [0.004, 0.996] so that inverting twice never clips at the extremes.
    """
    negative = _scale_and_translate((-1.0, -1.0, -1.0, 1.0), (1.0, 1.0, 1.0, 0.0))
    if color_compression:
        return multiply(create_compression_matrix(), negative)
    return negative


GRAYSCALE_MATRIX = ColorMatrix([
    [GRAYSCALE_RED_WEIGHT, GRAYSCALE_RED_WEIGHT, GRAYSCALE_RED_WEIGHT, 0.0, 0.0],
    [GRAYSCALE_GREEN_WEIGHT, GRAYSCALE_GREEN_WEIGHT, GRAYSCALE_GREEN_WEIGHT, 0.0, 0.0],
    [GRAYSCALE_BLUE_WEIGHT, GRAYSCALE_BLUE_WEIGHT, GRAYSCALE_BLUE_WEIGHT, 0.0, 0.0],
    [0.0, 0.0, 0.0, 1.0, 0.0],
    [0.0, 0.0, 0.0, 0.0, 1.0],
])

SEPIA_MATRIX = ColorMatrix([
    [0.393, 0.349, 0.272, 0.0, 0.0],
    [0.769, 0.686, 0.534, 0.0, 0.0],
    [0.189, 0.168, 0.131, 0.0, 0.0],
    [0.0, 0.0, 0.0, 1.0, 0.0],
    [0.0, 0.0, 0.0, 0.0, 1.0],
])

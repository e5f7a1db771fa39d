"""
Core pixel operations for Better Image.

This module provides the low-level drawing primitives the transforms are
built on. All of them draw into the image they are given (the caller owns
that buffer) and refuse indexed surfaces.

Functions:
    apply_color_matrix: Run every pixel through a 5x5 color matrix
    composite_layer: Alpha-composite an RGBA layer onto an image
    ensure_drawable: Reject images with an indexed pixel format
"""

from typing import Any

import numpy as np

from BI_Libs.constants import WORKING_MODE
from BI_Libs.errors import PreconditionError, UnsupportedPixelFormatError
from BI_Libs.ImagingLib.color_matrix import ColorMatrix
from BI_Libs.ImagingLib.image_models import has_indexed_pixel_format, require_image
from BI_Libs.pillow_compat import Image


def ensure_drawable(image: Any, operation: str) -> None:
    """
    Raise if a drawing operation cannot run on this image.

    Raises:
        PreconditionError: If image is None
        UnsupportedPixelFormatError: If image has an indexed pixel format
    """
    if has_indexed_pixel_format(image):
        raise UnsupportedPixelFormatError(image.mode, operation)


def _replace_pixels(image: Any, rgba_result: Any) -> None:
    if image.mode != WORKING_MODE:
        rgba_result = rgba_result.convert(image.mode)
    image.paste(rgba_result, (0, 0))


def apply_color_matrix(image: Any, matrix: ColorMatrix, clear_surface: bool = False) -> Any:
    """
    Apply a color matrix to every pixel of an image.

    The image is modified in place. Without ``clear_surface`` the transformed
    pixels are drawn over the existing content (source-over compositing);
    with it the surface is cleared to transparent first, which is required
    whenever the matrix changes the alpha channel.

    Args:
        image: A non-indexed PIL Image
        matrix: The color matrix to apply
        clear_surface: Replace pixels instead of compositing over them

    Returns:
        The same image object

    Raises:
        PreconditionError: If image or matrix is None
        UnsupportedPixelFormatError: If image has an indexed pixel format
    """
    require_image(image)
    if matrix is None:
        raise PreconditionError("matrix")
    ensure_drawable(image, "apply a color matrix")

    source = image.convert(WORKING_MODE) if image.mode != WORKING_MODE else image.copy()
    pixels = np.asarray(source, dtype=np.float32) / 255.0

    values = matrix.values
    transformed = pixels @ values[:4, :4] + values[4, :4]
    transformed = np.rint(np.clip(transformed, 0.0, 1.0) * 255.0).astype(np.uint8)
    result = Image.fromarray(transformed)

    if not clear_surface:
        result = Image.alpha_composite(source, result)

    _replace_pixels(image, result)
    source.close()
    return image


def composite_layer(image: Any, layer: Any) -> Any:
    """
    Alpha-composite an RGBA layer of the same size onto an image in place.

    Raises:
        UnsupportedPixelFormatError: If image has an indexed pixel format
        ValueError: If the layer size differs from the image size
    """
    require_image(image)
    require_image(layer, "layer")
    ensure_drawable(image, "draw a layer")
    if layer.size != image.size:
        raise ValueError(f"Layer size {layer.size} does not match image size {image.size}")

    base = image.convert(WORKING_MODE) if image.mode != WORKING_MODE else image
    overlay = layer if layer.mode == WORKING_MODE else layer.convert(WORKING_MODE)
    _replace_pixels(image, Image.alpha_composite(base, overlay))
    return image

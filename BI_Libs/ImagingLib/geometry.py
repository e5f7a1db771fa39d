"""
Resize and clip geometry for Better Image.

Resize scales an image down to fit inside a box while preserving its aspect
ratio. Clip fills a box exactly: the image is scaled so that it covers the
box and the excess is cropped evenly from both sides.

Example:
    >>> img = Image.new("RGBA", (200, 400))
    >>> thumbnail_size(img, 100, 100)
    (50, 100)
    >>> clip(img, 100, 50).size
    (100, 50)
"""

import logging
from typing import Any, Tuple

from BI_Libs.constants import INDEXED_MODES, WORKING_MODE
from BI_Libs.errors import PreconditionError, RangeViolationError
from BI_Libs.ImagingLib.image_models import (
    GraphicsQuality,
    get_palette_colors,
    has_indexed_pixel_format,
    require_image,
)

logger = logging.getLogger(__name__)

Size = Tuple[int, int]
Rectangle = Tuple[int, int, int, int]


def thumbnail_size(image: Any, max_width: int, max_height: int) -> Size:
    """
    Calculate the size of a thumbnail that fits inside max_width x max_height.

    A maximum of 0 (or less) leaves that dimension unconstrained. Images are
    only ever scaled down; when both dimensions are constrained the smaller
    scale factor wins so the whole image fits.

    Returns:
        (width, height) of the thumbnail
    """
    require_image(image)
    width, height = image.size

    scale_width = max_width / width if max_width > 0 else 0.0
    scale_height = max_height / height if max_height > 0 else 0.0

    scale = 1.0
    if 0 < scale_width < 1 and 0 < scale_height < 1:
        scale = min(scale_width, scale_height)
    elif 0 < scale_width < 1:
        scale = scale_width
    elif 0 < scale_height < 1:
        scale = scale_height

    return max(1, int(scale * width)), max(1, int(scale * height))


def _check_clip_box(max_width: int, max_height: int) -> None:
    if max_width <= 0:
        raise RangeViolationError("max_width", max_width, minimum=1)
    if max_height <= 0:
        raise RangeViolationError("max_height", max_height, minimum=1)


def clipping_size(image: Any, max_width: int, max_height: int) -> Size:
    """
    Calculate the size the image is scaled to before it is clipped.

    The larger of the two scale factors is used so the scaled image covers
    the whole box. Like resize, images are never scaled up.

    Raises:
        RangeViolationError: If max_width or max_height is not positive
    """
    require_image(image)
    _check_clip_box(max_width, max_height)
    width, height = image.size

    scale_width = max_width / width
    scale_height = max_height / height

    scale = 1.0
    if 0 < scale_width < 1 and 0 < scale_height < 1:
        scale = max(scale_width, scale_height)

    return max(1, int(scale * width)), max(1, int(scale * height))


def clip_rectangle(image: Any, max_width: int, max_height: int) -> Rectangle:
    """
    Calculate where the scaled image is drawn inside the clip box.

    Returns:
        (x, y, width, height) in box coordinates. Negative offsets mean the
        scaled image overhangs the box and is cropped on that side.

    Raises:
        RangeViolationError: If max_width or max_height is not positive
    """
    width, height = clipping_size(image, max_width, max_height)

    x = int((max_width - width) / 2) if width != max_width else 0
    y = int((max_height - height) / 2) if height != max_height else 0

    return x, y, width, height


def clip_source_box(image: Any, max_width: int, max_height: int) -> Rectangle:
    """
    Calculate the part of the source image that ends up inside the clip box.

    Returns:
        (left, top, right, bottom) in source image coordinates
    """
    x, y, width, height = clip_rectangle(image, max_width, max_height)
    scale_x = image.width / width
    scale_y = image.height / height

    left = max(0, round(-x * scale_x))
    top = max(0, round(-y * scale_y))
    right = min(image.width, round((max_width - x) * scale_x))
    bottom = min(image.height, round((max_height - y) * scale_y))
    return left, top, right, bottom


def redraw(image: Any, graphics_quality: GraphicsQuality = GraphicsQuality.MEDIUM, mode: str = WORKING_MODE) -> Any:
    """
    Redraw an image into a new buffer with a truecolor pixel format.

    Raises:
        PreconditionError: If the requested mode is an indexed mode
    """
    require_image(image)
    if mode in INDEXED_MODES:
        raise PreconditionError("mode", "Images can only be redrawn to non-indexed pixel formats")

    return _draw_scaled(image, image.size, graphics_quality, mode)


def _draw_scaled(image: Any, size: Size, graphics_quality: GraphicsQuality, mode: str = WORKING_MODE) -> Any:
    converted = image.convert(mode)
    if converted.size == tuple(size):
        return converted

    resized = converted.resize(size, resample=GraphicsQuality.parse(graphics_quality).resample)
    converted.close()
    return resized


def _restore_palette(original: Any, redrawn: Any) -> Any:
    from BI_Libs.QuantizationLib.palette_quantizer import palette_quantize

    quantized = palette_quantize(redrawn, get_palette_colors(original))
    redrawn.close()
    return quantized


def resize(
    image: Any,
    max_width: int,
    max_height: int,
    graphics_quality: GraphicsQuality = GraphicsQuality.MEDIUM,
    maintain_palette: bool = False,
) -> Any:
    """
    Scale an image down to fit inside max_width x max_height.

    The original image is returned unchanged when it already fits, unless it
    has an indexed pixel format and the palette is not maintained: such
    images are always redrawn into a truecolor buffer. With
    ``maintain_palette`` an indexed image is redrawn and then mapped back
    onto its original palette.

    Args:
        image: Source PIL Image (never modified)
        max_width: Maximum width, 0 for no maximum
        max_height: Maximum height, 0 for no maximum
        graphics_quality: Resampling quality
        maintain_palette: Keep the palette of an indexed source image

    Returns:
        The source image itself or a new image
    """
    require_image(image)
    size = thumbnail_size(image, max_width, max_height)
    indexed = has_indexed_pixel_format(image)

    if size[0] < image.width or size[1] < image.height or (indexed and not maintain_palette):
        logger.debug(f"Resizing {image.size} image to {size} (indexed={indexed})")
        result = _draw_scaled(image, size, graphics_quality)
        if maintain_palette and indexed:
            result = _restore_palette(image, result)
        return result

    return image


def clip(
    image: Any,
    max_width: int,
    max_height: int,
    graphics_quality: GraphicsQuality = GraphicsQuality.MEDIUM,
    maintain_palette: bool = False,
) -> Any:
    """
    Scale and center-crop an image to exactly max_width x max_height.

    A maximum of 0 (or less) defaults to the source's own dimension, so no
    clipping happens along that axis. The result is always a new image.

    Returns:
        A new image of size (max_width, max_height)
    """
    require_image(image)
    if max_width <= 0:
        max_width = image.width
    if max_height <= 0:
        max_height = image.height

    x, y, width, height = clip_rectangle(image, max_width, max_height)
    logger.debug(f"Clipping {image.size} image to {(max_width, max_height)} via {(x, y, width, height)}")

    scaled = _draw_scaled(image, (width, height), graphics_quality)
    result = scaled.crop((-x, -y, -x + max_width, -y + max_height))
    scaled.close()

    if maintain_palette and has_indexed_pixel_format(image):
        result = _restore_palette(image, result)

    return result

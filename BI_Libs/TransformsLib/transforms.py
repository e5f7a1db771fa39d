"""
Image transforms for Better Image.

Every transform has a fixed pipeline priority (lower runs first) and either
contributes a color matrix or draws directly on the image surface. Color
matrix transforms can be merged with their neighbours into a single drawing
pass; direct transforms (text, overlays) cannot.

Built-in transforms and their priorities:
    CopyrightTransform   100  direct: draws a copyright text
    GrayscaleTransform   200  matrix
    NegativeTransform    300  matrix
    SepiaTransform       400  matrix
    BrightnessTransform  500  matrix, no-op at 0
    ContrastTransform    600  matrix, no-op at 1
    OpacityTransform     700  matrix, no-op at 0, clears the surface
    custom transforms   1000  unless they override ``priority``

Example:
    >>> image = Image.new("RGBA", (100, 100), "red")
    >>> BrightnessTransform(0.2).transform(image)
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple

from BI_Libs.constants import (
    BRIGHTNESS_MAX,
    BRIGHTNESS_MIN,
    CONTRAST_MAX,
    CONTRAST_MIN,
    COPYRIGHT_BOTTOM_MARGIN,
    COPYRIGHT_FONT_NAMES,
    COPYRIGHT_FONT_SIZES,
    COPYRIGHT_SHADOW_OFFSET,
    COPYRIGHT_TEXT_ALPHA,
    DEFAULT_BRIGHTNESS,
    DEFAULT_CONTRAST,
    DEFAULT_OPACITY,
    OPACITY_MAX,
    OPACITY_MIN,
    PRIORITY_BRIGHTNESS,
    PRIORITY_CONTRAST,
    PRIORITY_COPYRIGHT,
    PRIORITY_DEFAULT,
    PRIORITY_GRAYSCALE,
    PRIORITY_NEGATIVE,
    PRIORITY_OPACITY,
    PRIORITY_SEPIA,
    WORKING_MODE,
)
from BI_Libs.errors import PreconditionError, check_range
from BI_Libs.ImagingLib.color_matrix import (
    GRAYSCALE_MATRIX,
    SEPIA_MATRIX,
    ColorMatrix,
    create_brightness_matrix,
    create_contrast_matrix,
    create_negative_matrix,
    create_opacity_matrix,
)
from BI_Libs.ImagingLib.image_models import GraphicsQuality, require_image
from BI_Libs.ImagingLib.image_ops import apply_color_matrix, composite_layer, ensure_drawable
from BI_Libs.pillow_compat import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)


class ImageTransform(ABC):
    """
    Base class of all transforms.

    Subclasses implement ``transform_core``. Custom transforms handed to the
    pipeline derive from this class (or from ColorMatrixTransform) and may
    override ``priority`` to change where they run.
    """

    priority: int = PRIORITY_DEFAULT
    requires_clear_surface: bool = False

    @property
    def is_color_matrix(self) -> bool:
        """
        True for transforms fully described by a color matrix.

        Matrix transforms (grayscale, sepia, negative, brightness, contrast,
        opacity) can be merged into one drawing pass; all others, such as the
        copyright overlay and custom transforms, draw directly on the image.
        """
        return False

    def is_noop(self) -> bool:
        return False

    def transform(self, image: Any) -> Any:
        """Apply the transform to an image in place and return it."""
        require_image(image)
        self.transform_core(image)
        return image

    @abstractmethod
    def transform_core(self, image: Any) -> None:
        ...

    def set_custom_data(self, data: str) -> None:
        """Receive free-form data passed along with the request; ignored by default."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(priority={self.priority})"


class ColorMatrixTransform(ImageTransform):
    """A transform that is fully described by a color matrix."""

    @property
    def is_color_matrix(self) -> bool:
        return True

    @abstractmethod
    def color_matrix(self) -> ColorMatrix:
        ...

    def transform_core(self, image: Any) -> None:
        if not self.is_noop():
            apply_color_matrix(image, self.color_matrix(), self.requires_clear_surface)


class GrayscaleTransform(ColorMatrixTransform):
    priority = PRIORITY_GRAYSCALE

    def color_matrix(self) -> ColorMatrix:
        return GRAYSCALE_MATRIX


class SepiaTransform(ColorMatrixTransform):
    priority = PRIORITY_SEPIA

    def color_matrix(self) -> ColorMatrix:
        return SEPIA_MATRIX


class NegativeTransform(ColorMatrixTransform):
    """Invert the colors; by default compressed slightly so the result never clips."""

    priority = PRIORITY_NEGATIVE

    def __init__(self, disable_color_compression: bool = False) -> None:
        self.disable_color_compression = disable_color_compression

    def color_matrix(self) -> ColorMatrix:
        return create_negative_matrix(color_compression=not self.disable_color_compression)


class BrightnessTransform(ColorMatrixTransform):
    priority = PRIORITY_BRIGHTNESS

    def __init__(self, brightness: float = DEFAULT_BRIGHTNESS) -> None:
        self.brightness = brightness

    @property
    def brightness(self) -> float:
        return self._brightness

    @brightness.setter
    def brightness(self, value: float) -> None:
        check_range("brightness", value, BRIGHTNESS_MIN, BRIGHTNESS_MAX)
        self._brightness = float(value)

    def is_noop(self) -> bool:
        return self._brightness == DEFAULT_BRIGHTNESS

    def color_matrix(self) -> ColorMatrix:
        return create_brightness_matrix(self._brightness)


class ContrastTransform(ColorMatrixTransform):
    priority = PRIORITY_CONTRAST

    def __init__(self, contrast: float = DEFAULT_CONTRAST) -> None:
        self.contrast = contrast

    @property
    def contrast(self) -> float:
        return self._contrast

    @contrast.setter
    def contrast(self, value: float) -> None:
        check_range("contrast", value, CONTRAST_MIN, CONTRAST_MAX)
        self._contrast = float(value)

    def is_noop(self) -> bool:
        return self._contrast == DEFAULT_CONTRAST

    def color_matrix(self) -> ColorMatrix:
        return create_contrast_matrix(self._contrast)


class OpacityTransform(ColorMatrixTransform):
    """Make the image transparent; 0 is opaque, 1 is fully transparent."""

    priority = PRIORITY_OPACITY
    requires_clear_surface = True

    def __init__(self, opacity: float = DEFAULT_OPACITY) -> None:
        self.opacity = opacity

    @property
    def opacity(self) -> float:
        return self._opacity

    @opacity.setter
    def opacity(self, value: float) -> None:
        check_range("opacity", value, OPACITY_MIN, OPACITY_MAX)
        self._opacity = float(value)

    def is_noop(self) -> bool:
        return self._opacity == DEFAULT_OPACITY

    def color_matrix(self) -> ColorMatrix:
        return create_opacity_matrix(self._opacity)


def load_font(size: int) -> Any:
    """Load a bold sans-serif font, falling back to Pillow's built-in font."""
    for name in COPYRIGHT_FONT_NAMES:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def measure_text(text: str, font: Any) -> Tuple[int, int]:
    scratch = ImageDraw.Draw(Image.new(WORKING_MODE, (1, 1)))
    left, top, right, bottom = scratch.textbbox((0, 0), text, font=font)
    return right - left, bottom - top


class CopyrightTransform(ImageTransform):
    """
    Draw a copyright notice centered near the bottom of the image.

    Args:
        copyright_text: The text to draw (required)
        font_size: Font size in points; 0 picks the largest size from
                   16, 14, ... 4 that fits the image width
    """

    priority = PRIORITY_COPYRIGHT

    def __init__(self, copyright_text: str, font_size: int = 0) -> None:
        self.copyright_text = copyright_text
        self.font_size = font_size

    @property
    def copyright_text(self) -> str:
        return self._copyright_text

    @copyright_text.setter
    def copyright_text(self, value: str) -> None:
        if not value:
            raise PreconditionError("copyright_text")
        self._copyright_text = str(value)

    @property
    def font_size(self) -> int:
        return self._font_size

    @font_size.setter
    def font_size(self, value: int) -> None:
        check_range("font_size", value, minimum=0)
        self._font_size = int(value)

    def choose_font(self, image_width: int) -> Tuple[Any, Tuple[int, int]]:
        """Return the font to draw with and the size of the rendered text."""
        if self._font_size > 0:
            font = load_font(self._font_size)
            return font, measure_text(self._copyright_text, font)

        font = None
        text_size = (0, 0)
        for size in COPYRIGHT_FONT_SIZES:
            font = load_font(size)
            text_size = measure_text(self._copyright_text, font)
            if text_size[0] < image_width:
                break
        return font, text_size

    def transform_core(self, image: Any) -> None:
        ensure_drawable(image, "draw a copyright text")

        width, height = image.size
        font, (text_width, text_height) = self.choose_font(width)

        pixels_from_bottom = int(height * COPYRIGHT_BOTTOM_MARGIN)
        y = (height - pixels_from_bottom) - (text_height / 1.5)
        x = (width / 2) - (text_width / 2)

        layer = Image.new(WORKING_MODE, image.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
        offset = COPYRIGHT_SHADOW_OFFSET
        draw.text(
            (x + offset, y + offset),
            self._copyright_text,
            font=font,
            fill=(0, 0, 0, COPYRIGHT_TEXT_ALPHA),
        )
        draw.text(
            (x, y),
            self._copyright_text,
            font=font,
            fill=(255, 255, 255, COPYRIGHT_TEXT_ALPHA),
        )

        composite_layer(image, layer)
        layer.close()


class WatermarkTransform(ImageTransform):
    """
    Stretch a watermark image over the whole surface at reduced opacity.

    The opacity can be changed per request through custom data, e.g. "0.3".
    """

    def __init__(self, watermark: Any, opacity: float = 0.5, priority: Optional[int] = None) -> None:
        require_image(watermark, "watermark")
        self.watermark = watermark
        self.opacity = opacity
        if priority is not None:
            self.priority = priority

    @property
    def opacity(self) -> float:
        return self._opacity

    @opacity.setter
    def opacity(self, value: float) -> None:
        check_range("opacity", value, OPACITY_MIN, OPACITY_MAX)
        self._opacity = float(value)

    def set_custom_data(self, data: str) -> None:
        try:
            self.opacity = float(data)
        except ValueError:
            logger.warning(f"Ignoring invalid watermark opacity: {data!r}")

    def transform_core(self, image: Any) -> None:
        ensure_drawable(image, "draw a watermark")

        layer = self.watermark.convert(WORKING_MODE).resize(
            image.size, resample=GraphicsQuality.HIGH.resample
        )
        apply_color_matrix(layer, create_opacity_matrix(self._opacity), clear_surface=True)
        composite_layer(image, layer)
        layer.close()

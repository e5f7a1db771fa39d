"""
Image data models for Better Image.

This module defines core data structures used throughout the imaging core.

Classes:
    SourceImage: A decoded image together with its name and modification time
    GraphicsQuality: Resampling quality used when an image is redrawn

Type Aliases:
    RgbaColor: A tuple of 4 integers representing RGBA color values (0-255)

Functions:
    require_image: Validate that an argument is a usable image
    has_indexed_pixel_format: Check whether an image uses a palette
    get_palette_colors: Read the embedded palette of an indexed image
"""

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import Any, List, Optional, Tuple

from BI_Libs.constants import BILEVEL_PALETTE, INDEXED_MODES
from BI_Libs.errors import PreconditionError
from BI_Libs.pillow_compat import Image

RgbaColor = Tuple[int, int, int, int]


class GraphicsQuality(IntEnum):
    DEFAULT = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @property
    def resample(self) -> int:
        """The Pillow resampling filter for this quality level."""
        return _RESAMPLE_FILTERS[self]

    @classmethod
    def parse(cls, value: Any) -> "GraphicsQuality":
        """Accept an enum member, its integer value or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            text = value.strip()
            if text.lstrip("-").isdigit():
                return cls(int(text))
            try:
                return cls[text.upper()]
            except KeyError:
                raise ValueError(f"Unknown graphics quality: {value}") from None
        return cls(int(value))


_RESAMPLE_FILTERS = {
    GraphicsQuality.DEFAULT: Image.Resampling.BILINEAR,
    GraphicsQuality.LOW: Image.Resampling.NEAREST,
    GraphicsQuality.MEDIUM: Image.Resampling.BICUBIC,
    GraphicsQuality.HIGH: Image.Resampling.LANCZOS,
}


@dataclass
class SourceImage:
    """A decoded image handed over by an image source provider.

    Attributes:
        name: File name (with extension) the image was retrieved under
        image: The decoded PIL Image
        last_modified: When the source was last changed, if known
    """
    name: str
    image: 'Image.Image'
    last_modified: Optional[datetime] = None

    @property
    def extension(self) -> str:
        return Path(self.name).suffix.lower()


def require_image(image: Any, argument: str = "image") -> None:
    """
    Validate that an argument is a PIL Image.

    Raises:
        PreconditionError: If image is None
        TypeError: If image is not a PIL Image
    """
    if image is None:
        raise PreconditionError(argument)
    if not hasattr(image, "mode") or not hasattr(image, "size"):
        raise TypeError(f"Expected PIL Image, got {type(image)}")


def has_indexed_pixel_format(image: Any) -> bool:
    """Return True if the image stores palette indices instead of colors."""
    require_image(image)
    return image.mode in INDEXED_MODES


def get_palette_colors(image: Any) -> List[RgbaColor]:
    """
    Read the embedded palette of an indexed image as RGBA colors.

    Bilevel ("1") images have the implicit palette black, white. Palettes
    stored as RGBA carry their own alpha; otherwise transparency is taken
    from ``image.info["transparency"]``, which Pillow stores either as a
    single palette index (GIF, PNG) or as one alpha byte per palette entry
    (PNG tRNS chunk).

    Args:
        image: A PIL Image in mode "1", "P" or "PA"

    Returns:
        The palette entries, in palette order

    Raises:
        PreconditionError: If the image carries no palette
    """
    require_image(image)
    if image.mode == "1":
        return list(BILEVEL_PALETTE)

    rawmode = "RGB"
    if image.mode in ("P", "PA") and getattr(image.palette, "mode", None) == "RGBA":
        rawmode = "RGBA"
    flat = image.getpalette(rawmode) if image.mode in ("P", "PA") else None
    if not flat:
        raise PreconditionError("palette", f"Image in mode '{image.mode}' has no palette")

    if rawmode == "RGBA":
        return [tuple(flat[i:i + 4]) for i in range(0, len(flat) - len(flat) % 4, 4)]

    rgb = [tuple(flat[i:i + 3]) for i in range(0, len(flat) - len(flat) % 3, 3)]
    alphas = [255] * len(rgb)

    transparency = image.info.get("transparency")
    if isinstance(transparency, int):
        if 0 <= transparency < len(alphas):
            alphas[transparency] = 0
    elif isinstance(transparency, (bytes, bytearray)):
        for index, alpha in enumerate(transparency[:len(alphas)]):
            alphas[index] = alpha

    return [(r, g, b, a) for (r, g, b), a in zip(rgb, alphas)]

"""
Output format helpers for Better Image.

Chooses the output format, content type and encoder parameters for a
transformed image and hands the buffer to Pillow's encoders.

Functions:
    normalize_format: Map format names and aliases (JPG, jpeg) to Pillow names
    image_format_by_extension: Pick the output format for a file extension
    content_type: HTTP content type for an output format
    is_quantizable: Whether an image or format supports palette output
    get_save_kwargs: Pillow Image.save() kwargs for a format and quality
    encode_image: Encode an image to bytes
"""

import io
from typing import Any, Dict, Optional

from BI_Libs.constants import (
    CONTENT_TYPES,
    DEFAULT_OUTPUT_QUALITY,
    EXTENSION_FORMATS,
    FORMAT_JPEG,
    OUTPUT_QUALITY_MAX,
    OUTPUT_QUALITY_MIN,
    QUANTIZABLE_FORMATS,
)
from BI_Libs.errors import PreconditionError, check_range
from BI_Libs.ImagingLib.image_models import require_image


def normalize_format(image_format: str) -> str:
    """Return the Pillow name of a format ("jpg" -> "JPEG")."""
    if not image_format:
        raise PreconditionError("image_format")
    name = str(image_format).strip().lstrip(".").upper()
    if name == "JPG":
        name = FORMAT_JPEG
    return name


def image_format_by_extension(extension: str) -> str:
    """
    Pick the output format for a file extension.

    PNG and GIF keep their format, everything else is delivered as JPEG.
    """
    extension = str(extension or "").strip().lower()
    if extension and not extension.startswith("."):
        extension = f".{extension}"
    return EXTENSION_FORMATS.get(extension, FORMAT_JPEG)


def content_type(image_format: str) -> str:
    """HTTP content type for an output format; unknown formats are JPEG."""
    return CONTENT_TYPES.get(normalize_format(image_format), CONTENT_TYPES[FORMAT_JPEG])


def is_quantizable(image: Any = None, image_format: Optional[str] = None) -> bool:
    """
    Whether palette quantization applies to the image's source format.

    Args:
        image: A decoded PIL Image; its ``format`` attribute is used when
               ``image_format`` is not given
        image_format: Explicit source format name or extension

    Returns:
        True for GIF and PNG sources
    """
    if image_format is None:
        require_image(image)
        image_format = getattr(image, "format", None)
    if not image_format:
        return False
    return normalize_format(image_format) in QUANTIZABLE_FORMATS


def get_save_kwargs(image_format: str, quality: int = DEFAULT_OUTPUT_QUALITY) -> Dict[str, Any]:
    """
    Get PIL Image.save() kwargs for a format.

    The quality only applies to JPEG and is left to the encoder default when
    it equals the default quality of 75.

    Raises:
        RangeViolationError: If quality is outside 0-100
    """
    check_range("quality", quality, OUTPUT_QUALITY_MIN, OUTPUT_QUALITY_MAX)
    save_format = normalize_format(image_format)

    kwargs: Dict[str, Any] = {"format": save_format}
    if save_format == FORMAT_JPEG and quality != DEFAULT_OUTPUT_QUALITY:
        kwargs["quality"] = int(quality)

    return kwargs


def encode_image(image: Any, image_format: str, quality: int = DEFAULT_OUTPUT_QUALITY) -> bytes:
    """
    Encode an image with Pillow and return the encoded bytes.

    JPEG cannot store transparency or palettes, so such images are flattened
    to RGB before encoding.
    """
    require_image(image)
    kwargs = get_save_kwargs(image_format, quality)

    to_save = image
    if kwargs["format"] == FORMAT_JPEG and image.mode not in ("RGB", "L", "CMYK"):
        to_save = image.convert("RGB")

    buffer = io.BytesIO()
    try:
        to_save.save(buffer, **kwargs)
    finally:
        if to_save is not image:
            to_save.close()
    return buffer.getvalue()

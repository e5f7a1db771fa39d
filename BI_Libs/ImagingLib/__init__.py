"""
ImagingLib - Core imaging functionality

This module provides the image models, color matrix algebra, resize/clip
geometry, pixel operations and output format helpers for Better Image.
"""

from BI_Libs.ImagingLib.image_models import (
    GraphicsQuality,
    RgbaColor,
    SourceImage,
    get_palette_colors,
    has_indexed_pixel_format,
    require_image,
)
from BI_Libs.ImagingLib.color_matrix import (
    GRAYSCALE_MATRIX,
    SEPIA_MATRIX,
    ColorMatrix,
    compose,
    create_brightness_matrix,
    create_compression_matrix,
    create_contrast_matrix,
    create_negative_matrix,
    create_opacity_matrix,
    multiply,
)
from BI_Libs.ImagingLib.image_ops import (
    apply_color_matrix,
    composite_layer,
)
from BI_Libs.ImagingLib.geometry import (
    clip,
    clip_rectangle,
    clip_source_box,
    clipping_size,
    redraw,
    resize,
    thumbnail_size,
)
from BI_Libs.ImagingLib.format_utils import (
    content_type,
    encode_image,
    get_save_kwargs,
    image_format_by_extension,
    is_quantizable,
    normalize_format,
)

__all__ = [
    "GraphicsQuality",
    "RgbaColor",
    "SourceImage",
    "get_palette_colors",
    "has_indexed_pixel_format",
    "require_image",
    "GRAYSCALE_MATRIX",
    "SEPIA_MATRIX",
    "ColorMatrix",
    "compose",
    "create_brightness_matrix",
    "create_compression_matrix",
    "create_contrast_matrix",
    "create_negative_matrix",
    "create_opacity_matrix",
    "multiply",
    "apply_color_matrix",
    "composite_layer",
    "clip",
    "clip_rectangle",
    "clip_source_box",
    "clipping_size",
    "redraw",
    "resize",
    "thumbnail_size",
    "content_type",
    "encode_image",
    "get_save_kwargs",
    "image_format_by_extension",
    "is_quantizable",
    "normalize_format",
]

"""
TransformsLib - Transforms and the transform pipeline

This module provides the built-in color and overlay transforms, the
settings record driving the pipeline, the pipeline itself and the registry
for custom transforms.
"""

from BI_Libs.TransformsLib.transforms import (
    BrightnessTransform,
    ColorMatrixTransform,
    ContrastTransform,
    CopyrightTransform,
    GrayscaleTransform,
    ImageTransform,
    NegativeTransform,
    OpacityTransform,
    SepiaTransform,
    WatermarkTransform,
)
from BI_Libs.TransformsLib.settings import (
    TransformSettings,
    load_settings,
    parse_bool,
    save_settings,
)
from BI_Libs.TransformsLib.pipeline import (
    DirectPass,
    ImageTransformer,
    MatrixPass,
    RenderedImage,
    apply_transforms,
    build_transform_list,
    plan_draw_operations,
    sort_transforms,
)
from BI_Libs.TransformsLib.registry import (
    TransformRegistry,
    get_default_registry,
    register_default_transforms,
)

__all__ = [
    "BrightnessTransform",
    "ColorMatrixTransform",
    "ContrastTransform",
    "CopyrightTransform",
    "GrayscaleTransform",
    "ImageTransform",
    "NegativeTransform",
    "OpacityTransform",
    "SepiaTransform",
    "WatermarkTransform",
    "TransformSettings",
    "load_settings",
    "parse_bool",
    "save_settings",
    "DirectPass",
    "ImageTransformer",
    "MatrixPass",
    "RenderedImage",
    "apply_transforms",
    "build_transform_list",
    "plan_draw_operations",
    "sort_transforms",
    "TransformRegistry",
    "get_default_registry",
    "register_default_transforms",
]

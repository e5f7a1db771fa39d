"""
Compatibility wrapper to import Pillow (which provides the `PIL` namespace).

This module loads the Pillow-provided modules via importlib and re-exports the
symbols used by the library: `Image`, `ImageDraw` and `ImageFont`. Every other
module imports Pillow through here so there is a single place that reports a
missing installation.
"""
from importlib import import_module
from types import ModuleType
from typing import Optional


def _import(name: str) -> Optional[ModuleType]:
    try:
        return import_module(name)
    except ImportError:
        return None


_pil_image = _import("PIL.Image")
_pil_imagedraw = _import("PIL.ImageDraw")
_pil_imagefont = _import("PIL.ImageFont")

if _pil_image is None or _pil_imagedraw is None or _pil_imagefont is None:
    raise ImportError("pillow (PIL) is required: install with 'pip install Pillow'")

Image = _pil_image
ImageDraw = _pil_imagedraw
ImageFont = _pil_imagefont

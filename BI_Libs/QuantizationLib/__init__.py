"""
QuantizationLib - Palette quantization

Two-pass quantizers reducing truecolor images to indexed images for compact
GIF and PNG output.
"""

from BI_Libs.QuantizationLib.quantizer import (
    Quantizer,
    apply_palette,
    normalize_palette,
    pack_argb,
    unpack_argb,
)
from BI_Libs.QuantizationLib.palette_quantizer import PaletteQuantizer, palette_quantize
from BI_Libs.QuantizationLib.octree_quantizer import Octree, OctreeQuantizer, octree_quantize

__all__ = [
    "Quantizer",
    "apply_palette",
    "normalize_palette",
    "pack_argb",
    "unpack_argb",
    "PaletteQuantizer",
    "palette_quantize",
    "Octree",
    "OctreeQuantizer",
    "octree_quantize",
]

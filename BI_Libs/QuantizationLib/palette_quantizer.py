"""
Fixed palette quantization.

Maps every pixel of an image onto a palette supplied by the caller, for
example the original palette of a GIF that was resized in truecolor.
"""

from typing import Any, List, Sequence

from BI_Libs.ImagingLib.image_models import RgbaColor, require_image
from BI_Libs.QuantizationLib.quantizer import Quantizer, normalize_palette


class PaletteQuantizer(Quantizer):
    """Single pass quantizer using a fixed palette."""

    def __init__(self, palette: Sequence[Sequence[int]]) -> None:
        super().__init__(single_pass=True)
        self._colors: List[RgbaColor] = normalize_palette(palette)

    @property
    def colors(self) -> List[RgbaColor]:
        return list(self._colors)

    def build_palette(self) -> List[RgbaColor]:
        return list(self._colors)

    def map_color(self, pixel: RgbaColor) -> int:
        return self.nearest_color_index(pixel)


def palette_quantize(image: Any, palette: Sequence[Sequence[int]]) -> Any:
    """
    Quantize an image against a fixed palette.

    Args:
        image: Source PIL Image
        palette: RGB or RGBA palette entries (1-256)

    Returns:
        A new "P" mode image using exactly the given palette

    Raises:
        PreconditionError: If image is None or the palette is empty
    """
    require_image(image)
    return PaletteQuantizer(palette).quantize(image)

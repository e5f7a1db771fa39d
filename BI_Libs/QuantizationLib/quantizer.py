"""
Two-pass palette quantization for Better Image.

A quantizer reduces a truecolor image to an indexed ("P" mode) image with at
most 256 palette entries:

1. First pass: derive the palette. Strategies with a fixed palette skip it.
2. Second pass: map every pixel to a palette index.

Both passes work on the image's distinct colors instead of on every pixel.
Each distinct 32-bit ARGB value is resolved once and cached, so the cost of
the nearest-color searches is proportional to the number of colors rather
than the number of pixels.

Classes:
    Quantizer: Abstract base class implementing the two-pass protocol
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

from BI_Libs.constants import WORKING_MODE
from BI_Libs.errors import PreconditionError, RangeViolationError
from BI_Libs.ImagingLib.image_models import RgbaColor, require_image
from BI_Libs.pillow_compat import Image

logger = logging.getLogger(__name__)

MAX_PALETTE_ENTRIES = 256


def pack_argb(color: RgbaColor) -> int:
    r, g, b, a = color
    return (a << 24) | (r << 16) | (g << 8) | b


def unpack_argb(value: int) -> RgbaColor:
    value = int(value)
    return (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF, (value >> 24) & 0xFF


def normalize_palette(palette: Sequence[Sequence[int]]) -> List[RgbaColor]:
    """
    Validate a palette and return it as a list of RGBA tuples.

    RGB entries are treated as fully opaque.

    Raises:
        PreconditionError: If the palette is None or empty
        RangeViolationError: If the palette has more than 256 entries
    """
    if palette is None or len(palette) == 0:
        raise PreconditionError("palette")
    if len(palette) > MAX_PALETTE_ENTRIES:
        raise RangeViolationError("palette", len(palette), 1, MAX_PALETTE_ENTRIES)

    colors: List[RgbaColor] = []
    for entry in palette:
        values = [int(value) for value in entry]
        if len(values) == 3:
            values.append(255)
        if len(values) != 4:
            raise ValueError(f"Palette entries must be RGB or RGBA tuples, got {entry}")
        colors.append((values[0], values[1], values[2], values[3]))
    return colors


def apply_palette(image: Any, palette: Sequence[RgbaColor]) -> None:
    """
    Attach an RGBA palette to a "P" mode image.

    Pillow keeps the palette as RGB. A single fully transparent entry is
    stored as the transparency index (understood by GIF and PNG encoders);
    other partial transparency is stored as per-entry alpha bytes.
    """
    flat: List[int] = []
    for r, g, b, _ in palette:
        flat.extend((r, g, b))
    image.putpalette(flat)

    alphas = [color[3] for color in palette]
    non_opaque = [index for index, alpha in enumerate(alphas) if alpha < 255]
    if not non_opaque:
        image.info.pop("transparency", None)
    elif len(non_opaque) == 1 and alphas[non_opaque[0]] == 0:
        image.info["transparency"] = non_opaque[0]
    else:
        image.info["transparency"] = bytes(alphas)


class Quantizer(ABC):
    """
    Base class for two-pass quantizers.

    Subclasses implement ``build_palette`` and ``map_color``; multi-pass
    strategies additionally implement ``add_color`` to collect the color
    histogram during the first pass.

    Quantizer instances keep a per-color cache and are meant to be used for
    a single image by a single thread.
    """

    def __init__(self, single_pass: bool) -> None:
        self.single_pass = single_pass
        self.palette: List[RgbaColor] = []
        self._color_map: Dict[int, int] = {}

    def quantize(self, image: Any) -> Any:
        """
        Quantize an image.

        Args:
            image: Source PIL Image (never modified)

        Returns:
            A new "P" mode image carrying the finalized palette
        """
        require_image(image)
        source = image.convert(WORKING_MODE)
        try:
            colors, counts, inverse = self._histogram(source)

            if not self.single_pass:
                for value, count in zip(colors.tolist(), counts.tolist()):
                    self.add_color(unpack_argb(value), count)

            self.palette = self.build_palette()
            if not self.palette:
                raise PreconditionError("palette", "Quantizer produced an empty palette")

            lookup = np.fromiter(
                (self.quantize_pixel(unpack_argb(value)) for value in colors.tolist()),
                dtype=np.uint8,
                count=len(colors),
            )
            indices = lookup[inverse].reshape(source.height, source.width)

            result = Image.frombytes("P", source.size, indices.tobytes())
            apply_palette(result, self.palette)
        finally:
            source.close()

        logger.debug(
            f"{type(self).__name__} mapped {len(colors)} colors onto a palette of {len(self.palette)}"
        )
        return result

    def _histogram(self, source: Any) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        pixels = np.asarray(source, dtype=np.uint32).reshape(-1, 4)
        packed = (
            (pixels[:, 3] << 24) | (pixels[:, 0] << 16) | (pixels[:, 1] << 8) | pixels[:, 2]
        )
        colors, inverse, counts = np.unique(packed, return_inverse=True, return_counts=True)
        return colors, counts, inverse.reshape(-1)

    def quantize_pixel(self, pixel: RgbaColor) -> int:
        """Return the palette index for a pixel, resolving each ARGB value once."""
        key = pack_argb(pixel)
        index = self._color_map.get(key)
        if index is None:
            index = self.map_color(pixel)
            self._color_map[key] = index
        return index

    def add_color(self, pixel: RgbaColor, count: int) -> None:
        """Record ``count`` pixels of one color during the first pass."""

    @abstractmethod
    def build_palette(self) -> List[RgbaColor]:
        """Return the final palette (at most 256 entries)."""

    @abstractmethod
    def map_color(self, pixel: RgbaColor) -> int:
        """Find the palette index for a color that is not cached yet."""

    def nearest_color_index(self, pixel: RgbaColor) -> int:
        """
        Find the palette entry closest to a pixel.

        Fully transparent pixels map to the first palette entry that is also
        fully transparent. Other pixels use the squared euclidean distance in
        RGB space, stopping early on an exact match.
        """
        red, green, blue, alpha = pixel

        if alpha == 0:
            for index, color in enumerate(self.palette):
                if color[3] == 0:
                    return index
            return 0

        best_index = 0
        least_distance = None
        for index, (r, g, b, _) in enumerate(self.palette):
            distance = (r - red) ** 2 + (g - green) ** 2 + (b - blue) ** 2
            if least_distance is None or distance < least_distance:
                best_index = index
                least_distance = distance
                if distance == 0:
                    break
        return best_index

"""
Adaptive octree quantization.

The first pass inserts every distinct opaque color into an octree whose
depth is ``max_color_bits``; each level splits on one bit of red, green and
blue. Leaves accumulate the pixel count and color sums of the colors that
fall into them. While there are more leaves than palette slots the deepest
reducible node is folded into a single leaf. The palette is the average
color of every remaining leaf.

Fully transparent pixels are kept out of the tree. When the image contains
any, palette index 0 is reserved for a fully transparent entry.

Example:
    >>> quantized = octree_quantize(Image.open("photo.png"), max_colors=64)
    >>> len(quantized.getpalette()) // 3 <= 256
    True
"""

import logging
from typing import Any, List, Optional

from BI_Libs.constants import (
    DEFAULT_MAX_COLOR_BITS,
    DEFAULT_MAX_COLORS,
    MAX_COLOR_BITS,
    MAX_PALETTE_COLORS,
    MIN_COLOR_BITS,
)
from BI_Libs.errors import check_range
from BI_Libs.ImagingLib.image_models import RgbaColor, require_image
from BI_Libs.QuantizationLib.quantizer import Quantizer

logger = logging.getLogger(__name__)

TRANSPARENT_COLOR: RgbaColor = (0, 0, 0, 0)


def _child_index(pixel: RgbaColor, level: int) -> int:
    shift = 7 - level
    return (
        (((pixel[0] >> shift) & 1) << 2)
        | (((pixel[1] >> shift) & 1) << 1)
        | ((pixel[2] >> shift) & 1)
    )


class _OctreeNode:
    __slots__ = (
        "is_leaf",
        "pixel_count",
        "red",
        "green",
        "blue",
        "children",
        "next_reducible",
        "palette_index",
    )

    def __init__(self, level: int, color_bits: int, octree: "Octree") -> None:
        self.is_leaf = level == color_bits
        self.pixel_count = 0
        self.red = 0
        self.green = 0
        self.blue = 0
        self.children: List[Optional["_OctreeNode"]] = [None] * 8
        self.next_reducible: Optional["_OctreeNode"] = None
        self.palette_index = 0

        if self.is_leaf:
            octree.leaf_count += 1
        else:
            octree.track_reducible(level, self)

    def add_color(self, pixel: RgbaColor, count: int, color_bits: int, level: int, octree: "Octree") -> None:
        if self.is_leaf:
            self.pixel_count += count
            self.red += pixel[0] * count
            self.green += pixel[1] * count
            self.blue += pixel[2] * count
            return

        index = _child_index(pixel, level)
        child = self.children[index]
        if child is None:
            child = _OctreeNode(level + 1, color_bits, octree)
            self.children[index] = child
        child.add_color(pixel, count, color_bits, level + 1, octree)

    def reduce(self) -> int:
        """Fold all children into this node; return how many leaves were removed."""
        merged = 0
        for index, child in enumerate(self.children):
            if child is not None:
                self.red += child.red
                self.green += child.green
                self.blue += child.blue
                self.pixel_count += child.pixel_count
                merged += 1
                self.children[index] = None

        self.is_leaf = True
        return merged - 1

    def construct_palette(self, palette: List[RgbaColor]) -> None:
        if self.is_leaf:
            self.palette_index = len(palette)
            count = max(1, self.pixel_count)
            palette.append((self.red // count, self.green // count, self.blue // count, 255))
            return

        for child in self.children:
            if child is not None:
                child.construct_palette(palette)


class Octree:
    """Color octree with reducible node lists per level."""

    def __init__(self, max_color_bits: int) -> None:
        self.max_color_bits = max_color_bits
        self.leaf_count = 0
        self._reducible: List[Optional[_OctreeNode]] = [None] * (MAX_COLOR_BITS + 1)
        self.root = _OctreeNode(0, max_color_bits, self)

    def track_reducible(self, level: int, node: _OctreeNode) -> None:
        node.next_reducible = self._reducible[level]
        self._reducible[level] = node

    def add_color(self, pixel: RgbaColor, count: int = 1) -> None:
        self.root.add_color(pixel, count, self.max_color_bits, 0, self)

    def reduce(self) -> bool:
        """Fold the deepest reducible node into a leaf; False when none is left."""
        index = self.max_color_bits - 1
        while index > 0 and self._reducible[index] is None:
            index -= 1

        node = self._reducible[index]
        if node is None:
            return False
        self._reducible[index] = node.next_reducible
        self.leaf_count -= node.reduce()
        return True

    def palletize(self, color_count: int) -> List[RgbaColor]:
        """Reduce the tree to at most ``color_count`` leaves and return their colors."""
        while self.leaf_count > max(1, color_count):
            if not self.reduce():
                break

        palette: List[RgbaColor] = []
        self.root.construct_palette(palette)
        return palette

    def find_leaf(self, pixel: RgbaColor) -> Optional[_OctreeNode]:
        node = self.root
        level = 0
        while not node.is_leaf:
            node = node.children[_child_index(pixel, level)]
            if node is None:
                return None
            level += 1
        return node


class OctreeQuantizer(Quantizer):
    """
    Two pass quantizer deriving its palette from the image's own colors.

    Args:
        max_colors: Maximum palette size including the transparent entry (1-255)
        max_color_bits: Octree depth, i.e. significant bits per channel (1-8)

    Raises:
        RangeViolationError: If either bound is out of range
    """

    def __init__(self, max_colors: int = DEFAULT_MAX_COLORS, max_color_bits: int = DEFAULT_MAX_COLOR_BITS) -> None:
        check_range("max_colors", max_colors, 1, MAX_PALETTE_COLORS)
        check_range("max_color_bits", max_color_bits, MIN_COLOR_BITS, MAX_COLOR_BITS)
        super().__init__(single_pass=False)

        self.max_colors = max_colors
        self.max_color_bits = max_color_bits
        self._octree = Octree(max_color_bits)
        self._has_transparency = False
        self._transparent_index: Optional[int] = None
        self._palette_offset = 0

    def add_color(self, pixel: RgbaColor, count: int) -> None:
        if pixel[3] == 0:
            self._has_transparency = True
            return
        self._octree.add_color(pixel, count)

    def build_palette(self) -> List[RgbaColor]:
        reserve_transparent = self._has_transparency and self.max_colors > 1
        color_slots = self.max_colors - 1 if reserve_transparent else self.max_colors

        palette: List[RgbaColor] = []
        if reserve_transparent:
            self._transparent_index = 0
            palette.append(TRANSPARENT_COLOR)

        offset = len(palette)
        if self._octree.leaf_count > 0:
            leaves = self._octree.palletize(color_slots)
            palette.extend(leaves)
        elif not palette:
            palette.append(TRANSPARENT_COLOR)

        self._palette_offset = offset
        logger.debug(
            f"Octree palette: {len(palette)} colors (max {self.max_colors}, transparent={reserve_transparent})"
        )
        return palette

    def map_color(self, pixel: RgbaColor) -> int:
        if pixel[3] == 0 and self._transparent_index is not None:
            return self._transparent_index

        leaf = self._octree.find_leaf(pixel)
        if leaf is None:
            return self.nearest_color_index(pixel)
        return leaf.palette_index + self._palette_offset


def octree_quantize(
    image: Any,
    max_colors: int = DEFAULT_MAX_COLORS,
    max_color_bits: int = DEFAULT_MAX_COLOR_BITS,
) -> Any:
    """
    Quantize an image with a palette derived from its own colors.

    Args:
        image: Source PIL Image
        max_colors: Maximum number of palette entries (at most 255)
        max_color_bits: Significant bits per color channel (1-8)

    Returns:
        A new "P" mode image

    Raises:
        PreconditionError: If image is None
        RangeViolationError: If max_colors or max_color_bits is out of range
    """
    require_image(image)
    return OctreeQuantizer(max_colors, max_color_bits).quantize(image)

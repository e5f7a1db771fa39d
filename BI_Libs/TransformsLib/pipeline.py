"""
Image transform pipeline for Better Image.

The pipeline turns a source image and a TransformSettings record into a new
image:

1. Resize or clip the source (the caller's image is never modified).
2. Build the enabled transforms and sort them by priority. The sort is
   stable, so custom transforms sharing a priority keep the caller's order.
3. Plan the draw operations: consecutive color matrix transforms are merged
   into one matrix and drawn in a single pass; every other transform is
   drawn on its own. Indexed images skip this step entirely.
4. Quantize GIF and PNG sources to a 255 color palette if requested.

Planning needs no image buffer:

    >>> plan_draw_operations([CopyrightTransform("(c)"), GrayscaleTransform(), OpacityTransform(0.5)])
    [DirectPass(transform=CopyrightTransform(priority=100)), MatrixPass(...)]
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

from BI_Libs.constants import DEFAULT_MAX_COLOR_BITS, DEFAULT_MAX_COLORS, WORKING_MODE
from BI_Libs.errors import PreconditionError
from BI_Libs.ImagingLib.color_matrix import ColorMatrix, compose
from BI_Libs.ImagingLib.format_utils import (
    content_type,
    encode_image,
    image_format_by_extension,
    is_quantizable,
)
from BI_Libs.ImagingLib.geometry import clip, resize
from BI_Libs.ImagingLib.image_models import SourceImage, has_indexed_pixel_format, require_image
from BI_Libs.ImagingLib.image_ops import apply_color_matrix, ensure_drawable
from BI_Libs.QuantizationLib.octree_quantizer import octree_quantize
from BI_Libs.TransformsLib.settings import TransformSettings
from BI_Libs.TransformsLib.transforms import (
    BrightnessTransform,
    ContrastTransform,
    CopyrightTransform,
    GrayscaleTransform,
    ImageTransform,
    NegativeTransform,
    OpacityTransform,
    SepiaTransform,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatrixPass:
    """One drawing pass applying the merged matrix of consecutive matrix transforms."""
    matrix: ColorMatrix
    transforms: Tuple[ImageTransform, ...]
    clear_surface: bool = False


@dataclass(frozen=True)
class DirectPass:
    """One transform drawing directly on the surface."""
    transform: ImageTransform


DrawOperation = Union[MatrixPass, DirectPass]


@dataclass
class RenderedImage:
    """An encoded pipeline result, ready to be sent to a client.

    Attributes:
        data: Encoded image bytes
        content_type: HTTP content type of data
        image_format: Pillow format name the image was encoded with
        last_modified: Modification time of the source image, if known
    """
    data: bytes
    content_type: str
    image_format: str
    last_modified: Optional[datetime] = None


def sort_transforms(transforms: Iterable[ImageTransform]) -> List[ImageTransform]:
    """Sort transforms by priority, keeping insertion order for equal priorities."""
    return sorted(transforms, key=lambda transform: transform.priority)


def build_transform_list(settings: TransformSettings) -> List[ImageTransform]:
    """
    Create the transforms enabled by a settings record, sorted by priority.

    Brightness, contrast and opacity at their neutral values are left out.
    """
    transforms: List[ImageTransform] = []

    if settings.copyright:
        transforms.append(CopyrightTransform(settings.copyright, settings.copyright_size))
    if settings.grayscale:
        transforms.append(GrayscaleTransform())
    if settings.negative:
        transforms.append(NegativeTransform())
    if settings.sepia:
        transforms.append(SepiaTransform())

    for transform in (
        BrightnessTransform(settings.brightness),
        ContrastTransform(settings.contrast),
        OpacityTransform(settings.opacity),
    ):
        if not transform.is_noop():
            transforms.append(transform)

    transforms.extend(settings.custom_transforms)
    return sort_transforms(transforms)


def _flush(pending: List[ImageTransform], operations: List[DrawOperation]) -> None:
    if not pending:
        return
    matrix = compose(transform.color_matrix() for transform in pending)
    clear_surface = any(transform.requires_clear_surface for transform in pending)
    operations.append(MatrixPass(matrix, tuple(pending), clear_surface))
    pending.clear()


def plan_draw_operations(transforms: Sequence[ImageTransform]) -> List[DrawOperation]:
    """
    Merge an ordered transform sequence into draw operations.

    Consecutive color matrix transforms are combined into one MatrixPass.
    A transform that draws directly first flushes the pending matrix and
    then becomes a DirectPass of its own. Matrix transforms that are no-ops
    are skipped.

    Args:
        transforms: Transforms in the order they are applied

    Returns:
        The draw operations, in order
    """
    operations: List[DrawOperation] = []
    pending: List[ImageTransform] = []

    for transform in transforms:
        if transform.is_color_matrix:
            if not transform.is_noop():
                pending.append(transform)
            continue
        _flush(pending, operations)
        operations.append(DirectPass(transform))

    _flush(pending, operations)
    return operations


def apply_transforms(image: Any, transforms: Iterable[ImageTransform]) -> Any:
    """
    Apply transforms to an image in place, in priority order.

    Returns:
        The same image object

    Raises:
        PreconditionError: If image is None
        UnsupportedPixelFormatError: If image has an indexed pixel format
    """
    require_image(image)
    operations = plan_draw_operations(sort_transforms(transforms))
    if not operations:
        return image

    ensure_drawable(image, "apply transforms")
    for operation in operations:
        if isinstance(operation, MatrixPass):
            logger.debug(
                f"Drawing merged matrix of {len(operation.transforms)} transforms "
                f"(clear_surface={operation.clear_surface})"
            )
            apply_color_matrix(image, operation.matrix, operation.clear_surface)
        else:
            logger.debug(f"Drawing {operation.transform!r}")
            operation.transform.transform(image)

    return image


class ImageTransformer:
    """
    Runs the pipeline for one settings record.

    A transformer holds no per-image state besides its settings; create one
    per request.

    Example:
        >>> settings = TransformSettings(max_width=100, grayscale=True)
        >>> result = ImageTransformer(settings).transform(Image.open("photo.jpg"))
    """

    def __init__(self, settings: Optional[TransformSettings] = None):
        self.settings = settings if settings is not None else TransformSettings()

    def _scale(self, image: Any) -> Any:
        settings = self.settings
        if settings.clip:
            return clip(
                image,
                settings.max_width,
                settings.max_height,
                settings.graphics_quality,
                settings.maintain_palette,
            )
        return resize(
            image,
            settings.max_width,
            settings.max_height,
            settings.graphics_quality,
            settings.maintain_palette,
        )

    def transform(self, image: Any, image_format: Optional[str] = None) -> Any:
        """
        Run the pipeline on an image.

        Args:
            image: Source PIL Image (never modified)
            image_format: Source format used to decide on quantization;
                          defaults to the format the image was decoded from

        Returns:
            A new PIL Image

        Raises:
            PreconditionError: If image is None
        """
        require_image(image)
        if image_format is None:
            image_format = getattr(image, "format", None)

        working = self._scale(image)
        if working is image:
            working = image.copy()

        try:
            if has_indexed_pixel_format(working):
                logger.debug(f"Skipping transforms for indexed image (mode {working.mode})")
            else:
                transforms = build_transform_list(self.settings)
                if transforms:
                    if working.mode != WORKING_MODE:
                        converted = working.convert(WORKING_MODE)
                        working.close()
                        working = converted
                    apply_transforms(working, transforms)

            if self.settings.quantize and is_quantizable(image_format=image_format):
                quantized = octree_quantize(working, DEFAULT_MAX_COLORS, DEFAULT_MAX_COLOR_BITS)
                working.close()
                working = quantized
        except Exception:
            working.close()
            raise

        return working

    def render(self, source: SourceImage) -> RenderedImage:
        """
        Transform a source image and encode it for delivery.

        PNG and GIF sources keep their format; everything else is encoded as
        JPEG with the configured output quality.
        """
        if source is None:
            raise PreconditionError("source")

        output_format = image_format_by_extension(source.extension)
        result = self.transform(source.image, image_format=output_format)
        try:
            data = encode_image(result, output_format, self.settings.output_quality)
        finally:
            result.close()

        logger.info(f"Rendered {source.name} as {output_format} ({len(data)} bytes)")
        return RenderedImage(
            data=data,
            content_type=content_type(output_format),
            image_format=output_format,
            last_modified=source.last_modified,
        )

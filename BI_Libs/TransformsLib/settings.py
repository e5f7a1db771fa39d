"""
Transform settings for Better Image.

TransformSettings is the flat record the pipeline is driven by: geometry,
effect toggles and parameters, quantization flags and an optional list of
custom transforms. Settings are usually decoded from the short request
parameter keys (``w``, ``h``, ``g``, ...) on top of configured defaults,
which can be kept in a JSON file.

Example:
    >>> defaults = load_settings("better_image.json")
    >>> settings = TransformSettings.from_query({"w": "120", "g": "true"}, defaults)
    >>> settings.max_width, settings.grayscale
    (120, True)
"""

import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from BI_Libs.constants import (
    BRIGHTNESS_MAX,
    BRIGHTNESS_MIN,
    CONTRAST_MAX,
    CONTRAST_MIN,
    DEFAULT_BRIGHTNESS,
    DEFAULT_CONTRAST,
    DEFAULT_OPACITY,
    DEFAULT_OUTPUT_QUALITY,
    FALSE_STRINGS,
    OPACITY_MAX,
    OPACITY_MIN,
    OUTPUT_QUALITY_MAX,
    OUTPUT_QUALITY_MIN,
    PARAM_BRIGHTNESS,
    PARAM_CLIP,
    PARAM_CONTRAST,
    PARAM_COPYRIGHT,
    PARAM_COPYRIGHT_SIZE,
    PARAM_CUSTOM_DATA,
    PARAM_CUSTOM_TRANSFORM,
    PARAM_GRAPHICS_QUALITY,
    PARAM_GRAYSCALE,
    PARAM_MAINTAIN_PALETTE,
    PARAM_MAX_HEIGHT,
    PARAM_MAX_WIDTH,
    PARAM_NEGATIVE,
    PARAM_OPACITY,
    PARAM_OUTPUT_QUALITY,
    PARAM_QUANTIZE,
    PARAM_SEPIA,
    TRUE_STRINGS,
)
from BI_Libs.errors import check_range
from BI_Libs.ImagingLib.image_models import GraphicsQuality
from BI_Libs.TransformsLib.transforms import ImageTransform

logger = logging.getLogger(__name__)


def parse_bool(value: Any) -> bool:
    """Parse a boolean request parameter (true/false, 1/0, yes/no, on/off)."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def _validate_int_range(minimum=None, maximum=None):
    def validate(name: str, value: Any) -> int:
        value = int(value)
        check_range(name, value, minimum, maximum)
        return value
    return validate


def _validate_float_range(minimum, maximum):
    def validate(name: str, value: Any) -> float:
        value = float(value)
        check_range(name, value, minimum, maximum)
        return value
    return validate


def _validate_bool(name: str, value: Any) -> bool:
    return parse_bool(value)


def _validate_quality(name: str, value: Any) -> GraphicsQuality:
    return GraphicsQuality.parse(value)


def _validate_copyright(name: str, value: Any) -> Optional[str]:
    return str(value) if value else None


_VALIDATORS = {
    "max_width": _validate_int_range(),
    "max_height": _validate_int_range(),
    "graphics_quality": _validate_quality,
    "output_quality": _validate_int_range(OUTPUT_QUALITY_MIN, OUTPUT_QUALITY_MAX),
    "grayscale": _validate_bool,
    "negative": _validate_bool,
    "sepia": _validate_bool,
    "clip": _validate_bool,
    "quantize": _validate_bool,
    "maintain_palette": _validate_bool,
    "brightness": _validate_float_range(BRIGHTNESS_MIN, BRIGHTNESS_MAX),
    "contrast": _validate_float_range(CONTRAST_MIN, CONTRAST_MAX),
    "opacity": _validate_float_range(OPACITY_MIN, OPACITY_MAX),
    "copyright": _validate_copyright,
    "copyright_size": _validate_int_range(minimum=0),
}


@dataclass
class TransformSettings:
    """Settings for one pipeline run.

    Attributes:
        max_width: Maximum output width, 0 for no maximum
        max_height: Maximum output height, 0 for no maximum
        graphics_quality: Resampling quality for resize and clip
        output_quality: JPEG quality 0-100 (default: 75)
        grayscale: Convert to grayscale
        negative: Invert colors
        sepia: Apply a sepia tone
        clip: Center-crop to exactly max_width x max_height instead of resizing
        quantize: Reduce GIF and PNG output to a 255 color palette
        maintain_palette: Keep the palette of indexed sources when resizing
        brightness: Brightness adjustment (-1 to 1, 0 is unchanged)
        contrast: Contrast factor (0 to 3, 1 is unchanged)
        opacity: Transparency (0 to 1, 0 is opaque)
        copyright: Copyright text to draw, None for no text
        copyright_size: Copyright font size, 0 to fit the image width
        custom_transforms: Additional transforms merged into the pipeline
    """
    max_width: int = 0
    max_height: int = 0
    graphics_quality: GraphicsQuality = GraphicsQuality.MEDIUM
    output_quality: int = DEFAULT_OUTPUT_QUALITY
    grayscale: bool = False
    negative: bool = False
    sepia: bool = False
    clip: bool = False
    quantize: bool = False
    maintain_palette: bool = False
    brightness: float = DEFAULT_BRIGHTNESS
    contrast: float = DEFAULT_CONTRAST
    opacity: float = DEFAULT_OPACITY
    copyright: Optional[str] = None
    copyright_size: int = 0
    custom_transforms: List[ImageTransform] = field(default_factory=list)

    def __setattr__(self, name: str, value: Any) -> None:
        validator = _VALIDATORS.get(name)
        if validator is not None:
            value = validator(name, value)
        super().__setattr__(name, value)

    def __post_init__(self):
        for transform in self.custom_transforms:
            if not isinstance(transform, ImageTransform):
                raise TypeError(f"Custom transforms must be ImageTransform instances, got {type(transform)}")
        self.custom_transforms = list(self.custom_transforms)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON compatible dictionary (custom transforms are not included)."""
        data = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "custom_transforms"
        }
        data["graphics_quality"] = self.graphics_quality.name.lower()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransformSettings":
        """Create from dictionary."""
        filtered = {k: v for k, v in data.items()
                    if k in cls.__dataclass_fields__ and k != "custom_transforms"}
        return cls(**filtered)

    def copy(self) -> "TransformSettings":
        settings = TransformSettings.from_dict(self.to_dict())
        settings.custom_transforms = list(self.custom_transforms)
        return settings

    @classmethod
    def from_query(
        cls,
        params: Mapping[str, Any],
        defaults: Optional["TransformSettings"] = None,
        registry: Any = None,
    ) -> "TransformSettings":
        """
        Decode settings from request parameters.

        Missing parameters keep the value of ``defaults`` (or the built-in
        defaults). Custom transforms named in ``t`` (comma separated) are
        created through ``registry``, defaulting to the global registry, and
        receive the ``cd`` parameter as custom data.

        Args:
            params: Request parameters keyed by their short names
            defaults: Configured default settings
            registry: TransformRegistry resolving custom transform names

        Returns:
            New TransformSettings

        Raises:
            ValueError: If a parameter cannot be parsed
            RangeViolationError: If a parameter is out of range
            KeyError: If a custom transform name is not registered
        """
        settings = defaults.copy() if defaults is not None else cls()

        for key, name in _QUERY_KEYS.items():
            value = params.get(key)
            if value is None:
                continue
            if isinstance(value, str) and not value.strip() and name not in _BOOL_FIELDS:
                continue
            setattr(settings, name, value)

        names = params.get(PARAM_CUSTOM_TRANSFORM)
        if names:
            if registry is None:
                from BI_Libs.TransformsLib.registry import get_default_registry
                registry = get_default_registry()

            custom_data = params.get(PARAM_CUSTOM_DATA)
            created = registry.create_many(str(names).split(","), custom_data)
            settings.custom_transforms.extend(created)
            logger.debug(f"Resolved custom transforms: {created}")

        return settings


_QUERY_KEYS = {
    PARAM_MAX_WIDTH: "max_width",
    PARAM_MAX_HEIGHT: "max_height",
    PARAM_GRAPHICS_QUALITY: "graphics_quality",
    PARAM_OUTPUT_QUALITY: "output_quality",
    PARAM_GRAYSCALE: "grayscale",
    PARAM_NEGATIVE: "negative",
    PARAM_SEPIA: "sepia",
    PARAM_CLIP: "clip",
    PARAM_BRIGHTNESS: "brightness",
    PARAM_CONTRAST: "contrast",
    PARAM_OPACITY: "opacity",
    PARAM_QUANTIZE: "quantize",
    PARAM_MAINTAIN_PALETTE: "maintain_palette",
    PARAM_COPYRIGHT: "copyright",
    PARAM_COPYRIGHT_SIZE: "copyright_size",
}

_BOOL_FIELDS = {"grayscale", "negative", "sepia", "clip", "quantize", "maintain_palette"}


def load_settings(path: Path) -> TransformSettings:
    """
    Load default settings from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file does not contain a JSON object
    """
    path = Path(path)
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Settings file {path} must contain a JSON object")

    settings = TransformSettings.from_dict(payload)
    logger.info(f"Loaded transform settings from {path}")
    return settings


def save_settings(settings: TransformSettings, path: Path) -> Path:
    """Write settings to a JSON file and return the path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(settings.to_dict(), indent=2), encoding="utf-8")
    return path

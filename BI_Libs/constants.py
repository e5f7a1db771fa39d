"""
Constants and configuration values for Better Image.

This module centralizes all constant values, magic numbers, and
configuration defaults used throughout the library.
"""

# Transform pipeline priorities (lower runs first)
PRIORITY_COPYRIGHT = 100
PRIORITY_GRAYSCALE = 200
PRIORITY_NEGATIVE = 300
PRIORITY_SEPIA = 400
PRIORITY_BRIGHTNESS = 500
PRIORITY_CONTRAST = 600
PRIORITY_OPACITY = 700
PRIORITY_DEFAULT = 1000

# Parameter ranges and neutral values
BRIGHTNESS_MIN = -1.0
BRIGHTNESS_MAX = 1.0
DEFAULT_BRIGHTNESS = 0.0
CONTRAST_MIN = 0.0
CONTRAST_MAX = 3.0
DEFAULT_CONTRAST = 1.0
OPACITY_MIN = 0.0
OPACITY_MAX = 1.0
DEFAULT_OPACITY = 0.0
OUTPUT_QUALITY_MIN = 0
OUTPUT_QUALITY_MAX = 100
DEFAULT_OUTPUT_QUALITY = 75

# Color matrix constants
MATRIX_SIZE = 5
GRAYSCALE_RED_WEIGHT = 0.3086
GRAYSCALE_GREEN_WEIGHT = 0.6094
GRAYSCALE_BLUE_WEIGHT = 0.0820
COMPRESSION_SCALE = 0.992
COMPRESSION_BIAS = 0.004

# Copyright overlay
COPYRIGHT_FONT_SIZES = (16, 14, 12, 10, 8, 6, 4)
COPYRIGHT_TEXT_ALPHA = 153
COPYRIGHT_BOTTOM_MARGIN = 0.05
COPYRIGHT_FONT_NAMES = ("arialbd.ttf", "Arial Bold.ttf", "DejaVuSans-Bold.ttf", "arial.ttf")
COPYRIGHT_SHADOW_OFFSET = 1

# Quantization
MAX_PALETTE_COLORS = 255
DEFAULT_MAX_COLORS = 255
MIN_COLOR_BITS = 1
MAX_COLOR_BITS = 8
DEFAULT_MAX_COLOR_BITS = 8

# Pixel modes
WORKING_MODE = "RGBA"
INDEXED_MODES = {"P", "PA", "1"}
BILEVEL_PALETTE = ((0, 0, 0, 255), (255, 255, 255, 255))

# Output formats
FORMAT_JPEG = "JPEG"
FORMAT_PNG = "PNG"
FORMAT_GIF = "GIF"
QUANTIZABLE_FORMATS = {FORMAT_PNG, FORMAT_GIF}
CONTENT_TYPES = {
    FORMAT_PNG: "image/png",
    FORMAT_GIF: "image/gif",
    FORMAT_JPEG: "image/jpeg",
}
EXTENSION_FORMATS = {
    ".png": FORMAT_PNG,
    ".gif": FORMAT_GIF,
}

# Request parameter keys
PARAM_MAX_WIDTH = "w"
PARAM_MAX_HEIGHT = "h"
PARAM_GRAPHICS_QUALITY = "gq"
PARAM_OUTPUT_QUALITY = "oq"
PARAM_GRAYSCALE = "g"
PARAM_NEGATIVE = "n"
PARAM_SEPIA = "s"
PARAM_CLIP = "cl"
PARAM_BRIGHTNESS = "b"
PARAM_CONTRAST = "c"
PARAM_OPACITY = "o"
PARAM_QUANTIZE = "q"
PARAM_MAINTAIN_PALETTE = "mp"
PARAM_COPYRIGHT = "ct"
PARAM_COPYRIGHT_SIZE = "cts"
PARAM_CUSTOM_TRANSFORM = "t"
PARAM_CUSTOM_DATA = "cd"

TRUE_STRINGS = {"true", "1", "yes", "on"}
FALSE_STRINGS = {"false", "0", "no", "off", ""}

# Registry names of the built-in parameterless transforms
TRANSFORM_NAME_GRAYSCALE = "grayscale"
TRANSFORM_NAME_NEGATIVE = "negative"
TRANSFORM_NAME_SEPIA = "sepia"

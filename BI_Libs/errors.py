"""
Error types for Better Image.

Every failure in the transform and quantization core is local and
synchronous. Three kinds are distinguished:

- PreconditionError: an argument is absent or invalid (no image, no matrix,
  empty palette, missing copyright text)
- RangeViolationError: a parameter lies outside its documented domain
- UnsupportedPixelFormatError: a drawing operation was requested on an
  indexed (palette) surface

All of them derive from ValueError so callers validating input can catch
them the same way they catch the standard library's argument errors.
"""

from typing import Optional


class ImagingError(Exception):
    """Base class for all Better Image errors."""


class PreconditionError(ImagingError, ValueError):
    def __init__(self, argument: str, message: Optional[str] = None) -> None:
        self.argument = argument
        super().__init__(message or f"{argument} must not be None or empty")


class RangeViolationError(ImagingError, ValueError):
    """
    Raised when a parameter is outside its valid range.

    Attributes:
        field: Name of the offending parameter
        value: The rejected value
        minimum: Lowest accepted value (None when unbounded)
        maximum: Highest accepted value (None when unbounded)
    """

    def __init__(
        self,
        field: str,
        value: object,
        minimum: Optional[float] = None,
        maximum: Optional[float] = None,
    ) -> None:
        self.field = field
        self.value = value
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(f"{field} must be {self.describe_bounds()}, got {value}")

    def describe_bounds(self) -> str:
        if self.minimum is not None and self.maximum is not None:
            return f"between {self.minimum} and {self.maximum}"
        if self.minimum is not None:
            return f"at least {self.minimum}"
        if self.maximum is not None:
            return f"at most {self.maximum}"
        return "valid"


class UnsupportedPixelFormatError(ImagingError, ValueError):
    def __init__(self, mode: str, operation: str) -> None:
        self.mode = mode
        self.operation = operation
        super().__init__(
            f"Cannot {operation} on an image with indexed pixel format '{mode}'"
        )


def check_range(
    field: str,
    value: float,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
) -> None:
    """Raise RangeViolationError if value lies outside [minimum, maximum]."""
    if minimum is not None and value < minimum:
        raise RangeViolationError(field, value, minimum, maximum)
    if maximum is not None and value > maximum:
        raise RangeViolationError(field, value, minimum, maximum)

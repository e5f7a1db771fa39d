"""
Custom Transform Registry.

This module provides a registry mapping symbolic names to transform
factories, so transforms can be requested by name (for example from a
request parameter) and merged into the pipeline.

Lookups vastly outnumber registrations. Writers take a lock, copy the
current mapping, modify the copy and publish it; readers only ever see a
complete, immutable snapshot and never lock.

Classes:
    TransformRegistry: Registry for transform factories

Functions:
    get_default_registry: Get the global default registry (singleton)
    register_default_transforms: Register the built-in parameterless transforms
"""

import logging
import threading
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from BI_Libs.constants import (
    TRANSFORM_NAME_GRAYSCALE,
    TRANSFORM_NAME_NEGATIVE,
    TRANSFORM_NAME_SEPIA,
)
from BI_Libs.TransformsLib.transforms import ImageTransform

logger = logging.getLogger(__name__)

# Type alias for transform factories
TransformFactory = Callable[[], ImageTransform]


class _Registration:
    __slots__ = ("factory", "description")

    def __init__(self, factory: TransformFactory, description: str) -> None:
        self.factory = factory
        self.description = description


class TransformRegistry:
    """
    Registry for transform factories.

    Example:
        >>> registry = TransformRegistry()
        >>> registry.register("watermark", lambda: WatermarkTransform(logo))
        >>> transform = registry.create("watermark", custom_data="0.3")
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._write_lock = threading.Lock()
        self._snapshot: Mapping[str, _Registration] = MappingProxyType({})

    @staticmethod
    def _normalize(name: str) -> str:
        return str(name).strip().lower()

    def _publish(self, entries: Dict[str, _Registration]) -> None:
        self._snapshot = MappingProxyType(entries)

    def register(self, name: str, factory: TransformFactory, description: str = "") -> None:
        """
        Register a transform factory.

        Args:
            name: Unique, case-insensitive name of the transform
            factory: Callable taking no arguments and returning an ImageTransform
            description: Human-readable description

        Raises:
            ValueError: If name is empty or factory is not callable
            RuntimeError: If name is already registered
        """
        key = self._normalize(name)

        if not key:
            raise ValueError("name cannot be empty")

        if not callable(factory):
            raise ValueError(f"factory must be callable, got {type(factory)}")

        with self._write_lock:
            if key in self._snapshot:
                raise RuntimeError(
                    f"Transform '{key}' is already registered. "
                    f"Use unregister() first to replace it."
                )
            entries = dict(self._snapshot)
            entries[key] = _Registration(factory, str(description))
            self._publish(entries)

        logger.debug(f"Registered transform factory: {key}")

    def unregister(self, name: str) -> bool:
        """
        Unregister a transform factory.

        Returns:
            True if unregistered, False if name was not registered
        """
        key = self._normalize(name)

        with self._write_lock:
            if key not in self._snapshot:
                return False
            entries = dict(self._snapshot)
            del entries[key]
            self._publish(entries)

        logger.debug(f"Unregistered transform factory: {key}")
        return True

    def has_transform(self, name: str) -> bool:
        return self._normalize(name) in self._snapshot

    def list_transforms(self) -> List[str]:
        """
        Get list of all registered transform names.

        Returns:
            Sorted list of names
        """
        return sorted(self._snapshot.keys())

    def get_description(self, name: str) -> str:
        key = self._normalize(name)
        snapshot = self._snapshot
        if key not in snapshot:
            raise KeyError(f"No transform registered under '{key}'")
        return snapshot[key].description

    def create(self, name: str, custom_data: Optional[str] = None) -> ImageTransform:
        """
        Create a new transform instance by name.

        Args:
            name: Registered transform name
            custom_data: Optional free-form data handed to the transform

        Returns:
            A fresh ImageTransform

        Raises:
            KeyError: If name is not registered
            TypeError: If the factory does not return an ImageTransform
        """
        key = self._normalize(name)
        snapshot = self._snapshot

        if key not in snapshot:
            available = ", ".join(sorted(snapshot.keys()))
            raise KeyError(
                f"No transform registered under '{key}'. "
                f"Available transforms: {available}"
            )

        transform = snapshot[key].factory()
        if not isinstance(transform, ImageTransform):
            raise TypeError(
                f"Factory for '{key}' returned {type(transform)}, expected an ImageTransform"
            )

        if custom_data:
            transform.set_custom_data(custom_data)

        return transform

    def create_many(self, names: Iterable[str], custom_data: Optional[str] = None) -> List[ImageTransform]:
        """Create one transform per non-empty name, in the given order."""
        return [
            self.create(name, custom_data)
            for name in names
            if str(name).strip()
        ]

    def clear(self) -> None:
        """Remove all registrations. Use with caution."""
        with self._write_lock:
            self._publish({})
        logger.warning("Transform registry cleared")


# Global singleton registry
_default_registry: Optional[TransformRegistry] = None
_default_registry_lock = threading.Lock()


def get_default_registry() -> TransformRegistry:
    """
    Get the global default registry (singleton).

    Creates the registry on first call and registers the built-in transforms.

    Returns:
        The global TransformRegistry instance
    """
    global _default_registry

    if _default_registry is None:
        with _default_registry_lock:
            if _default_registry is None:
                registry = TransformRegistry()
                register_default_transforms(registry)
                _default_registry = registry

    return _default_registry


def register_default_transforms(registry: TransformRegistry) -> None:
    """
    Register the built-in transforms that need no parameters.

    This function registers:
    - grayscale
    - negative
    - sepia

    Args:
        registry: The registry to register factories with
    """
    from BI_Libs.TransformsLib.transforms import (
        GrayscaleTransform,
        NegativeTransform,
        SepiaTransform,
    )

    registry.register(
        TRANSFORM_NAME_GRAYSCALE,
        GrayscaleTransform,
        description="Convert the image to grayscale",
    )

    registry.register(
        TRANSFORM_NAME_NEGATIVE,
        NegativeTransform,
        description="Invert the colors of the image",
    )

    registry.register(
        TRANSFORM_NAME_SEPIA,
        SepiaTransform,
        description="Apply a sepia tone",
    )

    logger.info("Registered default transforms")

"""
Tests for the custom transform registry.

Tests cover:
- Registration and lookup
- Creating transforms with custom data
- Error handling
- Concurrent registration
- Singleton default registry
"""

import threading
import unittest

from PIL import Image

from BI_Libs.TransformsLib.registry import (
    TransformRegistry,
    get_default_registry,
    register_default_transforms,
)
from BI_Libs.TransformsLib.transforms import (
    GrayscaleTransform,
    NegativeTransform,
    SepiaTransform,
    WatermarkTransform,
)


class TestTransformRegistry(unittest.TestCase):
    """Test TransformRegistry basic functionality."""

    def setUp(self):
        """Create a fresh registry for each test."""
        self.registry = TransformRegistry()

    def test_registry_creation(self):
        self.assertEqual(self.registry.list_transforms(), [])

    def test_register_and_create(self):
        self.registry.register("gray", GrayscaleTransform, description="Grayscale")

        self.assertTrue(self.registry.has_transform("gray"))
        self.assertIsInstance(self.registry.create("gray"), GrayscaleTransform)
        self.assertEqual(self.registry.get_description("gray"), "Grayscale")

    def test_names_are_case_insensitive(self):
        self.registry.register("Sepia", SepiaTransform)

        self.assertTrue(self.registry.has_transform("SEPIA"))
        self.assertEqual(self.registry.list_transforms(), ["sepia"])

    def test_each_create_returns_new_instance(self):
        self.registry.register("gray", GrayscaleTransform)

        self.assertIsNot(self.registry.create("gray"), self.registry.create("gray"))

    def test_custom_data_is_forwarded(self):
        logo = Image.new("RGBA", (4, 4), (255, 255, 255, 255))
        self.registry.register("watermark", lambda: WatermarkTransform(logo))

        transform = self.registry.create("watermark", custom_data="0.25")

        self.assertAlmostEqual(transform.opacity, 0.25)

    def test_duplicate_registration(self):
        self.registry.register("gray", GrayscaleTransform)

        with self.assertRaises(RuntimeError):
            self.registry.register("gray", SepiaTransform)

    def test_invalid_registration(self):
        with self.assertRaises(ValueError):
            self.registry.register("", GrayscaleTransform)
        with self.assertRaises(ValueError):
            self.registry.register("gray", "not callable")

    def test_unknown_name(self):
        with self.assertRaises(KeyError):
            self.registry.create("missing")
        with self.assertRaises(KeyError):
            self.registry.get_description("missing")

    def test_factory_must_return_transform(self):
        self.registry.register("broken", lambda: "not a transform")

        with self.assertRaises(TypeError):
            self.registry.create("broken")

    def test_unregister(self):
        self.registry.register("gray", GrayscaleTransform)

        self.assertTrue(self.registry.unregister("gray"))
        self.assertFalse(self.registry.unregister("gray"))
        self.assertFalse(self.registry.has_transform("gray"))

    def test_create_many_keeps_order_and_skips_blanks(self):
        self.registry.register("gray", GrayscaleTransform)
        self.registry.register("sepia", SepiaTransform)

        transforms = self.registry.create_many(["sepia", " ", "gray"])

        self.assertEqual([type(t) for t in transforms], [SepiaTransform, GrayscaleTransform])

    def test_clear(self):
        self.registry.register("gray", GrayscaleTransform)

        with self.assertLogs("BI_Libs.TransformsLib.registry", level="WARNING"):
            self.registry.clear()

        self.assertEqual(self.registry.list_transforms(), [])

    def test_concurrent_registration(self):
        """No registration is lost when many threads register at once."""
        names = [f"transform_{index}" for index in range(50)]
        threads = [
            threading.Thread(target=self.registry.register, args=(name, GrayscaleTransform))
            for name in names
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(self.registry.list_transforms(), sorted(names))


class TestDefaultRegistry(unittest.TestCase):
    """Test the global default registry."""

    def test_singleton(self):
        self.assertIs(get_default_registry(), get_default_registry())

    def test_builtin_transforms(self):
        registry = get_default_registry()

        self.assertIsInstance(registry.create("grayscale"), GrayscaleTransform)
        self.assertIsInstance(registry.create("negative"), NegativeTransform)
        self.assertIsInstance(registry.create("sepia"), SepiaTransform)

    def test_register_default_transforms(self):
        registry = TransformRegistry()

        register_default_transforms(registry)

        self.assertEqual(registry.list_transforms(), ["grayscale", "negative", "sepia"])

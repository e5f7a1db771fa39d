"""
Tests for the transform pipeline.

Tests cover:
- Building and sorting the transform list from settings
- Merging consecutive matrix transforms into draw operations
- Applying transforms in priority order
- The caller's image is never modified
- Indexed images skip transforms
- Quantization of GIF and PNG sources
- Rendering to encoded bytes
"""

import io
import unittest
from datetime import datetime

import pytest
from PIL import Image

from BI_Libs.errors import PreconditionError, UnsupportedPixelFormatError
from BI_Libs.ImagingLib.color_matrix import GRAYSCALE_MATRIX, create_opacity_matrix, multiply
from BI_Libs.ImagingLib.image_models import SourceImage
from BI_Libs.TransformsLib.pipeline import (
    DirectPass,
    ImageTransformer,
    MatrixPass,
    apply_transforms,
    build_transform_list,
    plan_draw_operations,
    sort_transforms,
)
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


class RecordingTransform(ImageTransform):
    """Direct transform recording the order it was applied in."""

    def __init__(self, name, log, priority=1000):
        self.name = name
        self.log = log
        self.priority = priority

    def transform_core(self, image):
        self.log.append(self.name)


class FailingTransform(ImageTransform):
    """Direct transform that raises after wrapping close() of the image it was given."""

    def __init__(self):
        self.seen = None
        self.closed = False

    def transform_core(self, image):
        self.seen = image
        close = image.close

        def recording_close():
            self.closed = True
            close()

        image.close = recording_close
        raise RuntimeError("transform failed")


class TestSortTransforms:
    """Tests for sort_transforms."""

    def test_sorted_by_priority(self):
        transforms = [OpacityTransform(0.5), CopyrightTransform("(c)"), GrayscaleTransform()]

        ordered = sort_transforms(transforms)

        assert [t.priority for t in ordered] == [100, 200, 700]

    def test_stable_for_equal_priorities(self):
        log = []
        first = RecordingTransform("first", log)
        second = RecordingTransform("second", log)
        third = RecordingTransform("third", log, priority=150)

        assert sort_transforms([first, second, third]) == [third, first, second]


class TestBuildTransformList(unittest.TestCase):
    """Test build_transform_list."""

    def test_defaults_build_nothing(self):
        self.assertEqual(build_transform_list(TransformSettings()), [])

    def test_all_effects(self):
        settings = TransformSettings(
            copyright="(c)",
            grayscale=True,
            negative=True,
            sepia=True,
            brightness=0.2,
            contrast=1.5,
            opacity=0.3,
        )

        kinds = [type(t) for t in build_transform_list(settings)]

        self.assertEqual(kinds, [
            CopyrightTransform,
            GrayscaleTransform,
            NegativeTransform,
            SepiaTransform,
            BrightnessTransform,
            ContrastTransform,
            OpacityTransform,
        ])

    def test_neutral_values_are_left_out(self):
        settings = TransformSettings(brightness=0.0, contrast=1.0, opacity=0.0, sepia=True)

        transforms = build_transform_list(settings)

        self.assertEqual([type(t) for t in transforms], [SepiaTransform])

    def test_custom_transforms_are_merged_by_priority(self):
        log = []
        early = RecordingTransform("early", log, priority=150)
        late = RecordingTransform("late", log)
        settings = TransformSettings(grayscale=True, custom_transforms=[late, early])

        transforms = build_transform_list(settings)

        self.assertIs(transforms[0], early)
        self.assertIsInstance(transforms[1], GrayscaleTransform)
        self.assertIs(transforms[2], late)


class TestPlanDrawOperations:
    """Tests for merging transforms into draw operations."""

    def test_copyright_grayscale_opacity(self):
        """The overlay is drawn alone, the two matrices are merged into one pass."""
        copyright = CopyrightTransform("(c)")
        grayscale = GrayscaleTransform()
        opacity = OpacityTransform(0.5)

        operations = plan_draw_operations(sort_transforms([opacity, grayscale, copyright]))

        assert len(operations) == 2
        assert operations[0] == DirectPass(copyright)
        merged = operations[1]
        assert isinstance(merged, MatrixPass)
        assert merged.transforms == (grayscale, opacity)
        assert merged.clear_surface
        assert merged.matrix.is_close(multiply(create_opacity_matrix(0.5), GRAYSCALE_MATRIX))

    def test_direct_transform_flushes_pending_matrix(self):
        log = []
        direct = RecordingTransform("direct", log, priority=250)
        transforms = sort_transforms([GrayscaleTransform(), direct, SepiaTransform()])

        operations = plan_draw_operations(transforms)

        assert [type(op) for op in operations] == [MatrixPass, DirectPass, MatrixPass]
        assert not operations[0].clear_surface

    def test_noop_matrices_are_skipped(self):
        operations = plan_draw_operations([BrightnessTransform(0.0), ContrastTransform(1.0)])

        assert operations == []

    def test_empty(self):
        assert plan_draw_operations([]) == []


class TestApplyTransforms(unittest.TestCase):
    """Test apply_transforms."""

    def test_applies_in_priority_order(self):
        log = []
        transforms = [
            RecordingTransform("c", log, priority=900),
            RecordingTransform("a", log, priority=10),
            RecordingTransform("b", log, priority=500),
        ]

        apply_transforms(Image.new("RGBA", (2, 2)), transforms)

        self.assertEqual(log, ["a", "b", "c"])

    def test_merged_matrix_matches_sequential_application(self):
        merged = Image.new("RGBA", (4, 4), (120, 60, 30, 255))
        sequential = merged.copy()

        apply_transforms(merged, [ContrastTransform(1.5), GrayscaleTransform()])
        GrayscaleTransform().transform(sequential)
        ContrastTransform(1.5).transform(sequential)

        for a, b in zip(merged.getpixel((0, 0)), sequential.getpixel((0, 0))):
            self.assertLessEqual(abs(a - b), 1)

    def test_indexed_image_rejected(self):
        with self.assertRaises(UnsupportedPixelFormatError):
            apply_transforms(Image.new("P", (4, 4)), [GrayscaleTransform()])

    def test_nothing_to_do_on_indexed_image(self):
        image = Image.new("P", (4, 4))

        self.assertIs(apply_transforms(image, []), image)


class TestImageTransformer:
    """Tests for ImageTransformer."""

    def test_source_is_never_modified(self):
        image = Image.new("RGBA", (10, 10), (200, 100, 50, 255))
        before = image.tobytes()

        result = ImageTransformer(TransformSettings(grayscale=True)).transform(image)

        assert result is not image
        assert image.tobytes() == before
        r, g, b, _ = result.getpixel((0, 0))
        assert r == g == b

    def test_no_settings_returns_copy(self):
        image = Image.new("RGBA", (10, 10), (1, 2, 3, 255))

        result = ImageTransformer().transform(image)

        assert result is not image
        assert result.tobytes() == image.tobytes()

    def test_resize_then_transform(self):
        image = Image.new("RGB", (200, 400), (255, 255, 255))
        settings = TransformSettings(max_width=100, max_height=100, negative=True, graphics_quality="low")

        result = ImageTransformer(settings).transform(image)

        assert result.size == (50, 100)
        assert result.mode == "RGBA"
        assert result.getpixel((25, 50))[:3] == (1, 1, 1)

    def test_clip(self):
        image = Image.new("RGBA", (400, 400))
        settings = TransformSettings(max_width=100, max_height=50, clip=True)

        assert ImageTransformer(settings).transform(image).size == (100, 50)

    def test_opacity(self):
        image = Image.new("RGBA", (4, 4), (10, 20, 30, 255))

        result = ImageTransformer(TransformSettings(opacity=0.5)).transform(image)

        assert result.getpixel((0, 0)) == (10, 20, 30, 128)

    def test_indexed_image_skips_transforms(self, palette_image):
        settings = TransformSettings(grayscale=True, maintain_palette=True)

        result = ImageTransformer(settings).transform(palette_image)

        assert result.mode == "P"
        assert result.convert("RGB").getpixel((0, 0)) == (255, 0, 0)

    def test_quantizes_png_sources(self, red_blue_image):
        settings = TransformSettings(quantize=True)

        result = ImageTransformer(settings).transform(red_blue_image, image_format="PNG")

        assert result.mode == "P"
        assert result.convert("RGBA").getpixel((0, 0)) == (255, 0, 0, 255)

    def test_does_not_quantize_jpeg_sources(self, red_blue_image):
        settings = TransformSettings(quantize=True)

        result = ImageTransformer(settings).transform(red_blue_image, image_format="JPEG")

        assert result.mode == "RGBA"

    def test_uses_decoded_format(self, red_blue_image):
        buffer = io.BytesIO()
        red_blue_image.save(buffer, format="GIF")
        buffer.seek(0)
        decoded = Image.open(buffer)

        result = ImageTransformer(TransformSettings(quantize=True)).transform(decoded)

        assert result.mode == "P"

    def test_clip_bilevel_image_keeping_palette(self):
        image = Image.new("1", (40, 40), 1)
        settings = TransformSettings(max_width=10, max_height=10, clip=True, maintain_palette=True)

        result = ImageTransformer(settings).transform(image)

        assert result.mode == "P"
        assert result.size == (10, 10)
        assert result.convert("RGB").getpixel((5, 5)) == (255, 255, 255)

    def test_working_buffer_closed_when_transform_fails(self):
        failing = FailingTransform()
        image = Image.new("RGBA", (4, 4), (10, 20, 30, 255))

        with pytest.raises(RuntimeError):
            ImageTransformer(TransformSettings(custom_transforms=[failing])).transform(image)

        assert failing.seen is not image
        assert failing.closed

    def test_missing_image(self):
        with pytest.raises(PreconditionError):
            ImageTransformer().transform(None)


class TestRender(unittest.TestCase):
    """Test ImageTransformer.render."""

    def test_png_source_renders_png(self):
        source = SourceImage("logo.PNG", Image.new("RGBA", (8, 8), (0, 0, 255, 255)))

        rendered = ImageTransformer(TransformSettings(quantize=True)).render(source)

        self.assertEqual(rendered.image_format, "PNG")
        self.assertEqual(rendered.content_type, "image/png")
        self.assertEqual(Image.open(io.BytesIO(rendered.data)).format, "PNG")

    def test_other_sources_render_jpeg(self):
        modified = datetime(2024, 5, 1, 12, 0, 0)
        source = SourceImage("photo.bmp", Image.new("RGB", (8, 8), (0, 255, 0)), modified)

        rendered = ImageTransformer(TransformSettings(output_quality=90)).render(source)

        self.assertEqual(rendered.image_format, "JPEG")
        self.assertEqual(rendered.content_type, "image/jpeg")
        self.assertEqual(rendered.last_modified, modified)
        self.assertTrue(rendered.data.startswith(b"\xff\xd8"))

    def test_missing_source(self):
        with self.assertRaises(PreconditionError):
            ImageTransformer().render(None)

"""
Watermark Transform Demonstration

Registers a watermark as a custom transform, decodes a set of request
parameters that use it, and renders the result the way an image handler
would deliver it.
"""

import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from PIL import Image, ImageDraw

from BI_Libs.ImagingLib.image_models import SourceImage
from BI_Libs.TransformsLib.pipeline import ImageTransformer, build_transform_list, plan_draw_operations
from BI_Libs.TransformsLib.registry import get_default_registry
from BI_Libs.TransformsLib.settings import TransformSettings
from BI_Libs.TransformsLib.transforms import WatermarkTransform


def make_sample_photo(size=(640, 480)):
    """Draw a colorful test picture."""
    image = Image.new("RGB", size, (40, 90, 160))
    draw = ImageDraw.Draw(image)
    draw.ellipse((120, 80, 520, 400), fill=(240, 180, 40))
    draw.rectangle((0, 380, size[0], size[1]), fill=(30, 120, 50))
    return image


def make_logo():
    logo = Image.new("RGBA", (64, 64), (0, 0, 0, 0))
    draw = ImageDraw.Draw(logo)
    draw.rectangle((8, 8, 56, 56), outline=(255, 255, 255, 255), width=6)
    return logo


def example_request(output_dir: Path):
    """Example: decode request parameters and render a PNG."""
    print("=" * 60)
    print("Watermarked, clipped and quantized PNG")
    print("=" * 60)

    registry = get_default_registry()
    if not registry.has_transform("watermark"):
        logo = make_logo()
        registry.register(
            "watermark",
            lambda: WatermarkTransform(logo),
            description="Stretch the site logo over the image",
        )

    params = {"w": "200", "h": "120", "cl": "true", "s": "1", "ct": "(c) Better Image",
              "t": "watermark", "cd": "0.7", "q": "true"}
    settings = TransformSettings.from_query(params)

    for operation in plan_draw_operations(build_transform_list(settings)):
        print(f"  {operation}")

    source = SourceImage("sample.png", make_sample_photo())
    rendered = ImageTransformer(settings).render(source)

    output_path = output_dir / "watermarked.png"
    output_path.write_bytes(rendered.data)
    print(f"\n✓ Wrote {len(rendered.data)} bytes ({rendered.content_type}) to {output_path}")
    print()


def main():
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    output_dir = Path(__file__).parent / "output"
    output_dir.mkdir(exist_ok=True)
    example_request(output_dir)


if __name__ == "__main__":
    main()

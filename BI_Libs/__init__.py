"""
BI_Libs - Better Image Library Modules

This package contains the image transform and quantization core of the
Better Image project, organized into specialized sub-packages:

- ImagingLib: Image models, color matrix algebra, resize/clip geometry,
  pixel operations and output format helpers
- TransformsLib: Image transforms, settings, the transform pipeline and
  the custom transform registry
- QuantizationLib: Two-pass palette quantizers (fixed palette and octree)
"""

__version__ = "0.1.0"

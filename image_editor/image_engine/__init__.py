"""Image Engine - raster processing layer.

This package provides the pure raster functionality the editor is built on:
- Raster type (raster)
- Transform compositing (compositor)
- Cover-fit resampling (resampler)
- Encoding / decoding (encoder, decoder, data_url)

Usage:
    from image_editor.image_engine import TransformState, bake

    baked = bake(raster, TransformState(rotation_deg=90), apply_filters=True)

Keep this module lightweight: pyvips is imported lazily on first use.
"""

from .compositor import TransformState, bake, baked_size, normalize_rotation
from .raster import Raster

__all__ = ["Raster", "TransformState", "bake", "baked_size", "normalize_rotation"]

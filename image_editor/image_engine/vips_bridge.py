"""Lazy pyvips access and Raster <-> pyvips.Image conversion."""

from __future__ import annotations

import contextlib
from typing import Any

import numpy as np

from image_editor.logger import get_logger

from .raster import RGBA_CHANNELS, Raster

_logger = get_logger("vips")

_pyvips: Any | None = None


def get_pyvips_module() -> Any:
    """Import pyvips on first use; raises ImportError when libvips is unavailable."""
    global _pyvips
    if _pyvips is None:
        import pyvips  # type: ignore

        # Keep pyvips caches from growing across many small operations.
        pyvips.cache_set_max(0)
        pyvips.cache_set_max_mem(0)
        pyvips.cache_set_max_files(0)
        _pyvips = pyvips
    return _pyvips


def raster_to_vips(raster: Raster) -> Any:
    pyvips = get_pyvips_module()
    buf = raster.pixels.tobytes()
    img = pyvips.Image.new_from_memory(buf, raster.width, raster.height, RGBA_CHANNELS, "uchar")
    return img.copy(interpretation="srgb")


def vips_to_raster(image: Any) -> Raster:
    """Normalize any pyvips image to sRGB RGBA uchar and wrap it."""
    pyvips = get_pyvips_module()
    if image.interpretation not in ("srgb", "b-w"):
        # multiband/fourier images have no colourspace; keep their bands as-is
        with contextlib.suppress(pyvips.Error):
            image = image.colourspace("srgb")
    if image.format != "uchar":
        image = image.cast("uchar")

    has_alpha = image.hasalpha()
    if image.bands in (1, 2):
        # gray (+ alpha)
        gray = image.extract_band(0)
        color = gray.bandjoin([gray, gray])
        image = color.bandjoin(image.extract_band(1)) if has_alpha else color
    elif image.bands > RGBA_CHANNELS:
        image = image.extract_band(0, n=RGBA_CHANNELS)

    if image.bands == RGBA_CHANNELS - 1:
        image = image.bandjoin(255)

    mem = image.write_to_memory()
    array = np.frombuffer(mem, dtype=np.uint8).reshape(image.height, image.width, image.bands)
    if array.shape[2] != RGBA_CHANNELS:
        raise RuntimeError(f"Unsupported band count after conversion: {array.shape[2]}")
    return Raster(array)

"""Cover-fit resampling for exports at an explicit target size."""

from __future__ import annotations

from dataclasses import dataclass

from image_editor.geometry import round_half_up
from image_editor.logger import get_logger

from .raster import Raster
from .vips_bridge import raster_to_vips, vips_to_raster

_logger = get_logger("resampler")


@dataclass(frozen=True, slots=True)
class CoverFit:
    """Placement of a scaled source over a target canvas.

    Offsets are negative on the axis whose overflow gets cropped.
    """

    scale: float
    draw_w: float
    draw_h: float
    dx: float
    dy: float


def cover_fit(src_w: int, src_h: int, target_w: int, target_h: int) -> CoverFit:
    if src_w <= 0 or src_h <= 0:
        raise ValueError(f"source size must be positive, got {src_w}x{src_h}")
    if target_w <= 0 or target_h <= 0:
        raise ValueError(f"target size must be positive, got {target_w}x{target_h}")
    scale = max(target_w / src_w, target_h / src_h)
    draw_w = src_w * scale
    draw_h = src_h * scale
    return CoverFit(scale, draw_w, draw_h, (target_w - draw_w) / 2, (target_h - draw_h) / 2)


def resample(source: Raster, target_w: int, target_h: int) -> Raster:
    """Scale ``source`` to cover ``target_w`` x ``target_h``, cropping overflow symmetrically."""
    target_w = int(target_w)
    target_h = int(target_h)
    fit = cover_fit(source.width, source.height, target_w, target_h)
    if source.size == (target_w, target_h):
        return source

    # Whole-pixel draw size never smaller than the target on either axis.
    draw_w = max(target_w, round_half_up(fit.draw_w))
    draw_h = max(target_h, round_half_up(fit.draw_h))
    img = raster_to_vips(source)
    # lanczos3 is libvips' high-quality kernel; alpha is premultiplied so edges do not bleed.
    img = img.premultiply()
    scaled = img.resize(draw_w / source.width, vscale=draw_h / source.height, kernel="lanczos3")
    scaled = scaled.unpremultiply().cast("uchar")

    left = min(max(0, round_half_up(-fit.dx)), max(0, scaled.width - target_w))
    top = min(max(0, round_half_up(-fit.dy)), max(0, scaled.height - target_h))
    w = min(target_w, scaled.width - left)
    h = min(target_h, scaled.height - top)
    out = scaled.crop(left, top, w, h)
    if (w, h) != (target_w, target_h):
        # libvips rounding came up a pixel short; pad by edge replication.
        out = out.embed(0, 0, target_w, target_h, extend="copy")
    _logger.debug(
        "resample: %s -> %dx%d scale=%.4f offset=(%.1f, %.1f)", source, target_w, target_h, fit.scale, fit.dx, fit.dy
    )
    return vips_to_raster(out)

"""Map a display-space crop rect onto baked raster pixels.

Pure functions, no Qt dependencies.
"""

from __future__ import annotations

from image_editor.geometry import Rect, intersect, round_half_up
from image_editor.image_engine.raster import Raster
from image_editor.logger import get_logger

from .session import MIN_COMMIT_SIZE

_logger = get_logger("crop_resolver")


class DegenerateCropError(ValueError):
    """The crop rect overlaps the displayed image by too little to commit."""


def source_rect(rect: Rect, image_bounds: Rect, raster_w: int, raster_h: int) -> tuple[int, int, int, int]:
    """Translate ``rect`` (display space) into a pixel rect of a raster_w x raster_h raster.

    Raises:
        DegenerateCropError: if the overlap with ``image_bounds`` is 2px or less on either axis.
    """
    inter = intersect(rect, image_bounds)
    if inter.width <= MIN_COMMIT_SIZE or inter.height <= MIN_COMMIT_SIZE:
        raise DegenerateCropError(f"crop {rect.as_tuple()} does not overlap image {image_bounds.as_tuple()}")

    ratio_x = raster_w / image_bounds.width
    ratio_y = raster_h / image_bounds.height
    src_x = min(raster_w - 1, max(0, round_half_up((inter.x - image_bounds.x) * ratio_x)))
    src_y = min(raster_h - 1, max(0, round_half_up((inter.y - image_bounds.y) * ratio_y)))
    src_w = max(1, min(raster_w - src_x, round_half_up(inter.width * ratio_x)))
    src_h = max(1, min(raster_h - src_y, round_half_up(inter.height * ratio_y)))
    return src_x, src_y, src_w, src_h


def resolve(rect: Rect, image_bounds: Rect, baked: Raster) -> Raster:
    """Copy the pixels under ``rect`` out of ``baked`` at 1:1 scale.

    ``baked`` must be the oriented, unfiltered raster currently shown in
    ``image_bounds``; filters stay non-destructive across a crop.
    """
    if image_bounds.is_empty:
        raise DegenerateCropError("image is not displayed")
    crop = source_rect(rect, image_bounds, baked.width, baked.height)
    left, top, width, height = crop
    _logger.debug("resolve: display %s -> source %s of %s", rect.as_tuple(), crop, baked)
    return Raster(baked.pixels[top : top + height, left : left + width])

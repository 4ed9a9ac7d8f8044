"""Transform compositor: filters + rotation + flip baked into one raster.

The geometric composition matches a 2D canvas drawn with
``translate(center) -> rotate(angle) -> scale(flipX, flipY) -> drawImage``:
each source point is mirrored in its own frame first and then rotated
clockwise about the canvas center.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

import numpy as np

from image_editor.logger import get_logger

from .raster import Raster
from .vips_bridge import get_pyvips_module, raster_to_vips, vips_to_raster

_logger = get_logger("compositor")

FILTER_MIN = 0
FILTER_MAX = 200
FILTER_IDENTITY = 100
QUARTER_TURNS = (0, 90, 180, 270)

# Luminance weights from the CSS filter-effects saturate() matrix.
_LUMA = np.array([0.213, 0.715, 0.072], dtype=np.float64)
_CONTRAST_PIVOT = 127.5


def normalize_rotation(deg: int) -> int:
    return ((int(deg) % 360) + 360) % 360


def _clamp_pct(value: int) -> int:
    return int(max(FILTER_MIN, min(FILTER_MAX, int(value))))


@dataclass(frozen=True, slots=True)
class TransformState:
    """Non-destructive edit state; percentages use 100 as identity."""

    brightness_pct: int = FILTER_IDENTITY
    contrast_pct: int = FILTER_IDENTITY
    saturation_pct: int = FILTER_IDENTITY
    rotation_deg: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "brightness_pct", _clamp_pct(self.brightness_pct))
        object.__setattr__(self, "contrast_pct", _clamp_pct(self.contrast_pct))
        object.__setattr__(self, "saturation_pct", _clamp_pct(self.saturation_pct))

    @property
    def normalized_rotation(self) -> int:
        return normalize_rotation(self.rotation_deg)

    @property
    def is_quarter_turn(self) -> bool:
        return self.normalized_rotation in (90, 270)

    @property
    def has_filters(self) -> bool:
        return (self.brightness_pct, self.contrast_pct, self.saturation_pct) != (
            FILTER_IDENTITY,
            FILTER_IDENTITY,
            FILTER_IDENTITY,
        )

    @property
    def has_geometry(self) -> bool:
        return self.normalized_rotation != 0 or self.flip_horizontal or self.flip_vertical

    def with_geometry_reset(self) -> TransformState:
        return replace(self, rotation_deg=0, flip_horizontal=False, flip_vertical=False)


def baked_size(width: int, height: int, state: TransformState) -> tuple[int, int]:
    """Output dimensions of bake() without touching pixels."""
    return (height, width) if state.is_quarter_turn else (width, height)


def filter_matrix(brightness_pct: int, contrast_pct: int, saturation_pct: int) -> tuple[np.ndarray, float]:
    """Combined brightness/contrast/saturate filter as (3x3 matrix, gray offset).

    Saturation rows sum to one, so the contrast offset stays gray and the
    saturation step commutes with the other two.
    """
    b = brightness_pct / 100.0
    c = contrast_pct / 100.0
    s = saturation_pct / 100.0
    sat = np.outer(np.ones(3), _LUMA) * (1.0 - s) + np.eye(3) * s
    return sat * (b * c), _CONTRAST_PIVOT * (1.0 - c)


def filter_raster(raster: Raster, state: TransformState) -> Raster:
    if not state.has_filters:
        return raster
    matrix, offset = filter_matrix(state.brightness_pct, state.contrast_pct, state.saturation_pct)
    px = raster.pixels
    rgb = px[:, :, :3].astype(np.float64)
    out = rgb @ matrix.T + offset
    result = np.empty_like(px)
    result[:, :, :3] = np.clip(np.rint(out), 0, 255).astype(np.uint8)
    result[:, :, 3] = px[:, :, 3]
    return Raster(result)


def _mirror(px: np.ndarray, state: TransformState) -> np.ndarray:
    if state.flip_horizontal:
        px = px[:, ::-1]
    if state.flip_vertical:
        px = px[::-1, :]
    return px


def _rotate_free(raster: Raster, angle: int) -> Raster:
    """Rotate by a non-quarter angle into a canvas the size of the source."""
    pyvips = get_pyvips_module()
    img = raster_to_vips(raster)
    rotated = img.rotate(
        float(angle),
        interpolate=pyvips.Interpolate.new("bilinear"),
        background=[0, 0, 0, 0],
    )
    left = max(0, (rotated.width - raster.width) // 2)
    top = max(0, (rotated.height - raster.height) // 2)
    w = min(raster.width, rotated.width - left)
    h = min(raster.height, rotated.height - top)
    cropped = rotated.crop(left, top, w, h)
    if (w, h) != raster.size:
        cropped = cropped.embed(
            (raster.width - w) // 2, (raster.height - h) // 2, raster.width, raster.height, background=[0, 0, 0, 0]
        )
    return vips_to_raster(cropped)


def bake(source: Raster, state: TransformState, apply_filters: bool = True) -> Raster:
    """Produce the oriented (and optionally filtered) raster for ``state``.

    Never mutates ``source``; identical inputs give identical output.
    """
    filtered = filter_raster(source, state) if apply_filters else source
    if not state.has_geometry:
        return filtered

    angle = state.normalized_rotation
    px = _mirror(filtered.pixels, state)
    if angle in QUARTER_TURNS:
        # np.rot90 turns counter-clockwise for positive k.
        px = np.rot90(px, k=-(angle // 90))
        return Raster(px)

    _logger.debug("bake: free rotation %d deg on %s", angle, source)
    return _rotate_free(Raster(px), angle)

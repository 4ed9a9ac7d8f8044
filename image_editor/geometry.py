"""Pure coordinate math shared by the crop engine and the export fields.

Keep this module free of Qt and pyvips dependencies.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

CropAspect = Literal["free", "1:1", "3:4", "4:3", "16:9", "9:16"]
Handle = Literal["n", "s", "e", "w", "ne", "nw", "se", "sw"]

# width:height; None means free-form.
ASPECT_RATIOS: dict[str, float | None] = {
    "free": None,
    "1:1": 1.0,
    "3:4": 3 / 4,
    "4:3": 4 / 3,
    "16:9": 16 / 9,
    "9:16": 9 / 16,
}

HANDLES: tuple[str, ...] = ("nw", "ne", "sw", "se", "n", "s", "w", "e")


@dataclass(frozen=True, slots=True)
class Rect:
    """Axis-aligned rect in (x, y, width, height) form."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def contains(self, px: float, py: float) -> bool:
        """Edge-inclusive point test."""
        return self.x <= px <= self.right and self.y <= py <= self.bottom

    def as_tuple(self) -> tuple[float, float, float, float]:
        return self.x, self.y, self.width, self.height


@dataclass(frozen=True, slots=True)
class ViewportFrame:
    """Per-tick snapshot of where the image is displayed.

    ``image_bounds`` is the displayed bounding rect of the image element in
    overlay-local pixels; ``scale`` is the current zoom factor.
    """

    image_bounds: Rect
    scale: float = 1.0


def aspect_ratio(tag: str) -> float | None:
    """Map a crop aspect tag to its width/height ratio (None for free-form)."""
    try:
        return ASPECT_RATIOS[tag]
    except KeyError:
        raise ValueError(f"unknown crop aspect: {tag!r}") from None


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; pixel math expects .5 to round up.
    return math.floor(value + 0.5)


def intersect(a: Rect, b: Rect) -> Rect:
    """Intersection of two rects. Non-overlapping inputs yield a zero-area rect."""
    left = max(a.x, b.x)
    top = max(a.y, b.y)
    right = min(a.right, b.right)
    bottom = min(a.bottom, b.bottom)
    return Rect(left, top, max(0.0, right - left), max(0.0, bottom - top))


def parse_dimension(raw: str | int | None) -> int | None:
    """Parse a typed dimension, keeping only decimal digits (any script).

    Returns None while the field is empty.
    """
    if raw is None:
        return None
    if isinstance(raw, int):
        return raw
    digits = "".join(ch for ch in str(raw) if ch.isdecimal())
    if not digits:
        return None
    return int(digits)


def constrain_width(
    width: int, *, max_w: int, max_h: int, base_aspect: float, locked: bool
) -> tuple[int, int | None]:
    """Apply the export-field rules to a typed width.

    Returns (width, derived_height); derived_height is None when the lock is off.
    """
    w = width
    if max_w > 0:
        w = min(w, max_w)
    if locked and base_aspect > 0 and max_h > 0:
        w = min(w, round_half_up(max_h * base_aspect))
    if locked and base_aspect > 0:
        return w, max(1, round_half_up(w / base_aspect))
    return w, None


def constrain_height(
    height: int, *, max_w: int, max_h: int, base_aspect: float, locked: bool
) -> tuple[int, int | None]:
    """Mirror of constrain_width. Returns (height, derived_width)."""
    h = height
    if max_h > 0:
        h = min(h, max_h)
    if locked and base_aspect > 0 and max_w > 0:
        h = min(h, round_half_up(max_w / base_aspect))
    if locked and base_aspect > 0:
        return h, max(1, round_half_up(h * base_aspect))
    return h, None

"""Interactive crop session as a pure state machine.

``transition(session, event)`` never mutates; every pointer event yields a
new CropSession. Coordinates are overlay-local pixels and the displayed
image bounds (from the ViewportFrame carried by each event) are the only
clamp target: a rect never leaves the image, whatever the viewport does.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

from image_editor.geometry import (
    ASPECT_RATIOS,
    HANDLES,
    Rect,
    ViewportFrame,
    aspect_ratio,
    clamp,
    round_half_up,
)
from image_editor.logger import get_logger

_logger = get_logger("crop_session")

Mode = Literal["idle", "drawing", "moving", "resizing"]
EventKind = Literal["down", "move", "up"]

HANDLE_SIZE = 10
SEED_FRACTION = 0.8
MIN_COMMIT_SIZE = 2
_MIN_RESIZE = 1


@dataclass(frozen=True, slots=True)
class PointerEvent:
    """Pointer input plus the viewport snapshot it was taken against.

    ``handle`` carries a handle already resolved by the UI; when None the
    session hit-tests the current rect itself.
    """

    kind: EventKind
    x: float
    y: float
    frame: ViewportFrame
    handle: str | None = None


@dataclass(frozen=True, slots=True)
class CropSession:
    active: bool = False
    rect: Rect | None = None
    aspect: str = "free"
    mode: Mode = "idle"
    handle: str | None = None
    # gesture bookkeeping: draw anchor / pointer offset from rect top-left
    anchor: tuple[float, float] | None = None
    offset: tuple[float, float] | None = None

    @property
    def ratio(self) -> float | None:
        return aspect_ratio(self.aspect)

    @property
    def can_resize(self) -> bool:
        return self.ratio is None


def _handle_points(rect: Rect) -> dict[str, tuple[float, float]]:
    cx = rect.x + rect.width / 2
    cy = rect.y + rect.height / 2
    return {
        "nw": (rect.x, rect.y),
        "ne": (rect.right, rect.y),
        "sw": (rect.x, rect.bottom),
        "se": (rect.right, rect.bottom),
        "n": (cx, rect.y),
        "s": (cx, rect.bottom),
        "w": (rect.x, cy),
        "e": (rect.right, cy),
    }


def hit_test_handle(rect: Rect | None, x: float, y: float, size: float = HANDLE_SIZE) -> str | None:
    """Return the handle whose hit box is under (x, y); corners win over edges."""
    if rect is None:
        return None
    half = size / 2
    points = _handle_points(rect)
    for name in HANDLES:
        hx, hy = points[name]
        if abs(x - hx) <= half and abs(y - hy) <= half:
            return name
    return None


def is_committable(rect: Rect | None) -> bool:
    return rect is not None and rect.width > MIN_COMMIT_SIZE and rect.height > MIN_COMMIT_SIZE


def seed_rect(aspect: str, bounds: Rect) -> Rect | None:
    """Centered rect covering 80% of the image on its limiting axis; None for free aspect."""
    ratio = aspect_ratio(aspect)
    if ratio is None or bounds.is_empty:
        return None
    target_w = bounds.width * SEED_FRACTION
    target_h = target_w / ratio
    if target_h > bounds.height * SEED_FRACTION:
        target_h = bounds.height * SEED_FRACTION
        target_w = target_h * ratio
    x = round_half_up(bounds.x + (bounds.width - target_w) / 2)
    y = round_half_up(bounds.y + (bounds.height - target_h) / 2)
    return Rect(x, y, round_half_up(target_w), round_half_up(target_h))


def start_session(aspect: str, frame: ViewportFrame) -> CropSession:
    if aspect not in ASPECT_RATIOS:
        raise ValueError(f"unknown crop aspect: {aspect!r}")
    return CropSession(active=True, rect=seed_rect(aspect, frame.image_bounds), aspect=aspect)


def cancel_session(session: CropSession) -> CropSession:
    """Discard the rect and any in-flight gesture; the chosen aspect survives."""
    return CropSession(aspect=session.aspect)


def set_aspect(session: CropSession, aspect: str, frame: ViewportFrame) -> CropSession:
    if aspect not in ASPECT_RATIOS:
        raise ValueError(f"unknown crop aspect: {aspect!r}")
    updated = replace(session, aspect=aspect, mode="idle", handle=None, anchor=None, offset=None)
    if session.active and ASPECT_RATIOS[aspect] is not None:
        # A user rect of another ratio has no anchor to adjust from; re-seed.
        updated = replace(updated, rect=seed_rect(aspect, frame.image_bounds))
    return updated


def _idle(session: CropSession) -> CropSession:
    return replace(session, mode="idle", handle=None, anchor=None, offset=None)


def _on_down(session: CropSession, ev: PointerEvent) -> CropSession:
    rect = session.rect
    bounds = ev.frame.image_bounds

    if rect is not None and session.can_resize:
        handle = ev.handle if ev.handle in HANDLES else hit_test_handle(rect, ev.x, ev.y)
        if handle is not None:
            return replace(_idle(session), mode="resizing", handle=handle)

    if not bounds.contains(ev.x, ev.y):
        return session

    if rect is not None and rect.contains(ev.x, ev.y):
        return replace(_idle(session), mode="moving", offset=(ev.x - rect.x, ev.y - rect.y))

    return replace(_idle(session), mode="drawing", anchor=(ev.x, ev.y), rect=Rect(ev.x, ev.y, 0, 0))


def _fit_ratio(
    w: float, h: float, ratio: float, avail_w: float, avail_h: float
) -> tuple[float, float]:
    # Width follows height first; fall back to the horizontal room, then
    # correct any vertical overflow.
    w = round_half_up(h * ratio)
    if w > avail_w:
        h = round_half_up(avail_w / ratio)
        w = round_half_up(h * ratio)
    if h > avail_h:
        h = avail_h
        w = round_half_up(h * ratio)
    # Whole-pixel rounding may overshoot fractional bounds by under a pixel.
    return max(0.0, min(w, avail_w)), max(0.0, min(h, avail_h))


def _on_draw(session: CropSession, ev: PointerEvent) -> CropSession:
    if session.anchor is None:
        return session
    ax, ay = session.anchor
    b = ev.frame.image_bounds
    end_x = clamp(ev.x, b.x, b.right)
    end_y = clamp(ev.y, b.y, b.bottom)
    grow_right = end_x >= ax
    grow_down = end_y >= ay
    w = abs(end_x - ax)
    h = abs(end_y - ay)

    ratio = session.ratio
    if ratio and w > 0 and h > 0:
        avail_w = (b.right - ax) if grow_right else (ax - b.x)
        avail_h = (b.bottom - ay) if grow_down else (ay - b.y)
        w, h = _fit_ratio(w, h, ratio, avail_w, avail_h)

    x = ax if grow_right else ax - w
    y = ay if grow_down else ay - h
    return replace(session, rect=Rect(x, y, w, h))


def _on_move(session: CropSession, ev: PointerEvent) -> CropSession:
    rect = session.rect
    if rect is None or session.offset is None:
        return session
    dx, dy = session.offset
    b = ev.frame.image_bounds
    nx = clamp(ev.x - dx, b.x, b.right - rect.width)
    ny = clamp(ev.y - dy, b.y, b.bottom - rect.height)
    return replace(session, rect=Rect(nx, ny, rect.width, rect.height))


def _on_resize(session: CropSession, ev: PointerEvent) -> CropSession:
    rect = session.rect
    handle = session.handle
    if rect is None or handle is None or not session.can_resize:
        return session
    b = ev.frame.image_bounds
    cx = clamp(ev.x, b.x, b.right)
    cy = clamp(ev.y, b.y, b.bottom)
    right = rect.right
    bottom = rect.bottom
    nx, ny, nw, nh = rect.as_tuple()

    if "e" in handle:
        nw = max(_MIN_RESIZE, cx - rect.x)
    if "s" in handle:
        nh = max(_MIN_RESIZE, cy - rect.y)
    if "w" in handle:
        nx = min(cx, right - _MIN_RESIZE)
        nw = max(_MIN_RESIZE, right - nx)
    if "n" in handle:
        ny = min(cy, bottom - _MIN_RESIZE)
        nh = max(_MIN_RESIZE, bottom - ny)

    # Shrink, never shift, to stay inside the image.
    if nx < b.x:
        nw -= b.x - nx
        nx = b.x
    if ny < b.y:
        nh -= b.y - ny
        ny = b.y
    if nx + nw > b.right:
        nw = b.right - nx
    if ny + nh > b.bottom:
        nh = b.bottom - ny
    return replace(session, rect=Rect(nx, ny, max(0.0, nw), max(0.0, nh)))


def transition(session: CropSession, event: PointerEvent) -> CropSession:
    """Advance the crop session by one pointer event."""
    if not session.active:
        return session

    if event.kind == "down":
        nxt = _on_down(session, event)
        if nxt.mode != session.mode:
            _logger.debug("crop %s -> %s (handle=%s)", session.mode, nxt.mode, nxt.handle)
        return nxt

    if event.kind == "move":
        if session.mode == "drawing":
            return _on_draw(session, event)
        if session.mode == "moving":
            return _on_move(session, event)
        if session.mode == "resizing":
            return _on_resize(session, event)
        return session

    if event.kind == "up":
        return _idle(session)

    raise ValueError(f"unknown pointer event kind: {event.kind!r}")

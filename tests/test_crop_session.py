from __future__ import annotations

import random

import pytest

from image_editor.crop.session import (
    CropSession,
    PointerEvent,
    cancel_session,
    hit_test_handle,
    is_committable,
    seed_rect,
    set_aspect,
    start_session,
    transition,
)
from image_editor.geometry import Rect, ViewportFrame, aspect_ratio

BOUNDS = Rect(100, 50, 400, 300)
FRAME = ViewportFrame(BOUNDS, 1.0)
EPS = 1e-9


def _ev(kind: str, x: float, y: float, frame: ViewportFrame = FRAME) -> PointerEvent:
    return PointerEvent(kind, x, y, frame)  # type: ignore[arg-type]


def _drag(session: CropSession, start: tuple[float, float], end: tuple[float, float]) -> CropSession:
    s = transition(session, _ev("down", *start))
    s = transition(s, _ev("move", *end))
    return transition(s, _ev("up", *end))


def _assert_inside(rect: Rect | None, bounds: Rect = BOUNDS) -> None:
    assert rect is not None
    assert rect.x >= bounds.x - EPS
    assert rect.y >= bounds.y - EPS
    assert rect.right <= bounds.right + EPS
    assert rect.bottom <= bounds.bottom + EPS


def test_start_free_session_has_no_rect() -> None:
    s = start_session("free", FRAME)
    assert s.active
    assert s.rect is None
    assert s.mode == "idle"


def test_seed_rect_for_fixed_aspect_is_centered() -> None:
    rect = seed_rect("1:1", BOUNDS)
    # 80% of width would be too tall, so height is the limiting axis.
    assert rect == Rect(180, 80, 240, 240)
    _assert_inside(rect)
    assert seed_rect("free", BOUNDS) is None


def test_draw_free_rect() -> None:
    s = transition(start_session("free", FRAME), _ev("down", 150, 100))
    assert s.mode == "drawing"
    assert s.rect == Rect(150, 100, 0, 0)
    s = transition(s, _ev("move", 300, 220))
    assert s.rect == Rect(150, 100, 150, 120)


def test_draw_stays_inside_image_bounds() -> None:
    s = transition(start_session("free", FRAME), _ev("down", 150, 100))
    s = transition(s, _ev("move", 1000, 1000))
    assert s.rect == Rect(150, 100, 350, 250)
    _assert_inside(s.rect)


def test_draw_toward_top_left() -> None:
    s = _drag(start_session("free", FRAME), (300, 200), (0, 0))
    assert s.rect == Rect(100, 50, 200, 150)


def test_draw_with_square_aspect() -> None:
    s = _drag(start_session("1:1", FRAME), (110, 60), (400, 200))
    assert s.rect is not None
    assert s.rect.x == 110
    assert s.rect.y == 60
    assert abs(s.rect.width - s.rect.height) <= 1


@pytest.mark.parametrize("aspect", ["16:9", "9:16", "4:3", "3:4"])
def test_draw_with_fixed_aspect_keeps_ratio(aspect: str) -> None:
    ratio = aspect_ratio(aspect)
    assert ratio is not None
    s = _drag(start_session(aspect, FRAME), (110, 60), (400, 200))
    rect = s.rect
    assert rect is not None
    assert abs(rect.width - rect.height * ratio) <= 1
    _assert_inside(rect)


def test_aspect_draw_shrinks_to_fit_near_the_edge() -> None:
    s = _drag(start_session("1:1", FRAME), (450, 60), (460, 340))
    assert s.rect == Rect(450, 60, 50, 50)
    _assert_inside(s.rect)


def test_move_clamps_to_bounds_and_is_idempotent() -> None:
    s = _drag(start_session("free", FRAME), (150, 100), (250, 200))
    s = transition(s, _ev("down", 200, 150))
    assert s.mode == "moving"
    assert s.offset == (50, 50)

    s = transition(s, _ev("move", 1000, 1000))
    assert s.rect == Rect(400, 250, 100, 100)
    again = transition(s, _ev("move", 1000, 1000))
    assert again.rect == s.rect


def test_move_keeps_size() -> None:
    s = _drag(start_session("free", FRAME), (150, 100), (250, 200))
    s = transition(s, _ev("down", 200, 150))
    s = transition(s, _ev("move", 230, 170))
    assert s.rect == Rect(180, 120, 100, 100)


def test_resize_from_corner_clamps_to_bounds() -> None:
    s = _drag(start_session("free", FRAME), (150, 100), (250, 200))
    s = transition(s, _ev("down", 250, 200))
    assert s.mode == "resizing"
    assert s.handle == "se"
    s = transition(s, _ev("move", 600, 600))
    assert s.rect == Rect(150, 100, 350, 250)


def test_resize_west_edge_keeps_right_edge_fixed() -> None:
    s = _drag(start_session("free", FRAME), (150, 100), (250, 200))
    s = transition(s, _ev("down", 150, 150))
    assert s.handle == "w"

    grown = transition(s, _ev("move", 0, 150))
    assert grown.rect == Rect(100, 100, 150, 100)

    collapsed = transition(s, _ev("move", 400, 150))
    assert collapsed.rect == Rect(249, 100, 1, 100)


def test_explicit_handle_from_ui_wins() -> None:
    s = _drag(start_session("free", FRAME), (150, 100), (250, 200))
    s = transition(s, PointerEvent("down", 200, 150, FRAME, handle="n"))
    assert s.mode == "resizing"
    assert s.handle == "n"


def test_handles_ignored_with_fixed_aspect() -> None:
    s = start_session("1:1", FRAME)
    assert s.rect == Rect(180, 80, 240, 240)
    s = transition(s, _ev("down", 180, 80))
    assert s.mode == "moving"
    assert s.handle is None


def test_pointer_up_keeps_rect_and_clears_gesture() -> None:
    s = transition(start_session("free", FRAME), _ev("down", 150, 100))
    s = transition(s, _ev("move", 300, 220))
    up = transition(s, _ev("up", 300, 220))
    assert up.mode == "idle"
    assert up.rect == s.rect
    assert up.anchor is None
    assert up.offset is None
    assert up.handle is None


def test_pointer_down_outside_image_is_ignored() -> None:
    s = start_session("free", FRAME)
    assert transition(s, _ev("down", 10, 10)) == s


def test_inactive_session_ignores_events() -> None:
    s = CropSession()
    assert transition(s, _ev("down", 150, 100)) is s


def test_move_without_gesture_is_noop() -> None:
    s = start_session("free", FRAME)
    assert transition(s, _ev("move", 200, 200)) == s


def test_unknown_event_kind_raises() -> None:
    with pytest.raises(ValueError, match="unknown pointer event kind"):
        transition(start_session("free", FRAME), _ev("wheel", 0, 0))


def test_cancel_discards_rect_but_keeps_aspect() -> None:
    s = start_session("16:9", FRAME)
    cancelled = cancel_session(s)
    assert not cancelled.active
    assert cancelled.rect is None
    assert cancelled.mode == "idle"
    assert cancelled.aspect == "16:9"


def test_set_aspect_reseeds_active_session() -> None:
    s = _drag(start_session("free", FRAME), (150, 100), (250, 200))
    s = set_aspect(s, "1:1", FRAME)
    assert s.rect == Rect(180, 80, 240, 240)

    free = set_aspect(s, "free", FRAME)
    assert free.rect == s.rect
    with pytest.raises(ValueError):
        set_aspect(s, "5:4", FRAME)


def test_hit_test_prefers_corners() -> None:
    rect = Rect(0, 0, 4, 4)
    assert hit_test_handle(rect, 0, 0) == "nw"
    assert hit_test_handle(Rect(0, 0, 100, 100), 103, 98) == "se"
    assert hit_test_handle(Rect(0, 0, 100, 100), 50, 0) == "n"
    assert hit_test_handle(Rect(0, 0, 100, 100), 50, 50) is None
    assert hit_test_handle(None, 0, 0) is None


def test_is_committable() -> None:
    assert not is_committable(None)
    assert not is_committable(Rect(0, 0, 2, 100))
    assert not is_committable(Rect(0, 0, 100, 2))
    assert is_committable(Rect(0, 0, 3, 3))


FRACTIONAL_BOUNDS = Rect(100.3, 50.7, 400.4, 300.2)


@pytest.mark.parametrize("aspect", ["free", "1:1", "3:4", "4:3", "16:9", "9:16"])
def test_random_pointer_sequences_stay_inside(aspect: str) -> None:
    rng = random.Random(1234)
    frame = ViewportFrame(FRACTIONAL_BOUNDS, 1.0)
    b = FRACTIONAL_BOUNDS
    ratio = aspect_ratio(aspect)
    s = start_session(aspect, frame)
    for _ in range(3000):
        kind = rng.choice(["down", "move", "move", "move", "up"])
        x = rng.uniform(b.x - 200, b.right + 200)
        y = rng.uniform(b.y - 200, b.bottom + 200)
        s = transition(s, _ev(kind, x, y, frame))
        if s.rect is not None:
            _assert_inside(s.rect, b)
            if ratio is not None and s.rect.width > 0 and s.rect.height > 0:
                assert abs(s.rect.width - s.rect.height * ratio) <= 1.0
            assert s.rect.width >= 0
            assert s.rect.height >= 0

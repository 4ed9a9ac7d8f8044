from __future__ import annotations

import numpy as np
import pytest
from conftest import gradient_raster

from image_editor.app.editor import EditorSession
from image_editor.geometry import Rect
from image_editor.image_engine.compositor import TransformState
from image_editor.image_engine.raster import Raster


def _session(raster: Raster | None = None) -> EditorSession:
    s = EditorSession(stage_size=(1000, 800))
    s.load_image(raster if raster is not None else gradient_raster(200, 100))
    return s


def _drag(s: EditorSession, start: tuple[float, float], end: tuple[float, float]) -> None:
    s.pointer_down(*start)
    s.pointer_move(*end)
    s.pointer_up(*end)


def test_load_fits_viewport_and_sizes_export_fields() -> None:
    s = _session()
    assert s.has_image
    assert s.viewport.image_bounds == Rect(50, 175, 900, 450)
    assert s.export_size.target() == (200, 100)


def test_load_resets_every_transform() -> None:
    s = _session()
    s.set_brightness(150)
    s.rotate_cw()
    s.flip_vertical()
    s.load_image(gradient_raster(10, 10))
    assert s.state == TransformState()


def test_rotate_cw_and_ccw() -> None:
    s = _session()
    s.rotate_ccw()
    assert s.state.rotation_deg == 270
    s.rotate_cw()
    assert s.state.rotation_deg == 0
    for _ in range(4):
        s.rotate_cw()
    assert s.state.rotation_deg == 0


def test_four_clockwise_turns_restore_pixels() -> None:
    s = _session()
    original = s.raster
    for _ in range(4):
        s.rotate_cw()
    assert s.baked() == original


def test_rotation_swaps_baked_dimensions() -> None:
    s = _session()
    s.rotate_cw()
    assert s.baked_dimensions() == (100, 200)
    assert s.export_size.target() == (100, 200)
    assert s.viewport.content_w == 100


def test_reset_adjustments() -> None:
    s = _session()
    s.set_contrast(20)
    s.set_saturation(0)
    s.flip_horizontal()
    s.reset_adjustments()
    assert s.state == TransformState()


def test_baked_is_none_without_image() -> None:
    s = EditorSession()
    assert s.baked() is None
    assert s.export() is None
    assert not s.toggle_crop()


def test_toggle_crop_locks_pan() -> None:
    s = _session()
    assert s.toggle_crop()
    assert not s.viewport.pan_by(5, 5)
    assert not s.toggle_crop()
    assert s.viewport.pan_by(5, 5)


def test_degenerate_commit_leaves_image_untouched() -> None:
    s = _session()
    before = s.raster
    s.toggle_crop()
    _drag(s, (100, 200), (101, 201))
    assert s.crop.rect is not None

    assert s.commit_crop() is False
    assert s.raster is before
    assert not s.is_cropping
    assert s.crop.rect is None


def test_commit_without_rect_turns_cropping_off() -> None:
    s = _session()
    s.toggle_crop()
    assert s.commit_crop() is False
    assert not s.is_cropping


def test_commit_crops_source_pixels() -> None:
    s = _session()
    source = s.raster
    assert source is not None
    s.toggle_crop()
    # Top-left quarter of the displayed image (bounds 50,175 900x450).
    _drag(s, (50, 175), (500, 400))

    assert s.commit_crop() is True
    assert s.raster is not None
    assert s.raster.size == (100, 50)
    assert np.array_equal(s.raster.pixels, source.pixels[:50, :100])
    assert not s.is_cropping
    assert s.export_size.target() == (100, 50)


def test_commit_bakes_orientation_and_keeps_filters() -> None:
    s = _session()
    source = s.raster
    assert source is not None
    s.set_brightness(150)
    s.rotate_cw()
    s.toggle_crop()
    b = s.viewport.image_bounds
    _drag(s, (b.x + 1, b.y + 1), (b.right, b.bottom))

    assert s.commit_crop() is True
    assert s.state.rotation_deg == 0
    assert not s.state.flip_horizontal
    assert s.state.brightness_pct == 150
    # The committed pixels are the unfiltered, rotated source.
    assert s.raster is not None
    assert np.array_equal(s.raster.pixels, np.rot90(source.pixels, k=-1))


def test_crop_to_uses_baked_pixel_coordinates() -> None:
    s = _session()
    source = s.raster
    assert source is not None
    assert s.crop_to(Rect(10, 20, 30, 40))
    assert s.raster is not None
    assert np.array_equal(s.raster.pixels, source.pixels[20:60, 10:40])
    assert not s.crop_to(Rect(0, 0, 1, 1))


def test_remove_image_resets_everything() -> None:
    s = _session()
    s.set_crop_aspect("16:9")
    s.toggle_crop()
    s.set_brightness(10)
    s.remove_image()
    assert not s.has_image
    assert s.state == TransformState()
    assert not s.is_cropping
    assert s.crop.aspect == "free"
    assert s.export_size.target() is None


def test_aspect_survives_toggle() -> None:
    s = _session()
    s.set_crop_aspect("4:3")
    s.toggle_crop()
    assert s.crop.rect is not None
    s.toggle_crop()
    assert s.crop.aspect == "4:3"
    assert s.crop.rect is None


def test_export_filename() -> None:
    assert EditorSession.export_filename("png") == "edited-image.png"
    assert EditorSession.export_filename("jpg") == "edited-image.jpeg"


def test_export_png_and_quick_download() -> None:
    pytest.importorskip("pyvips")
    s = _session()
    data = s.quick_download()
    assert data is not None
    assert data.startswith(b"\x89PNG\r\n\x1a\n")
    assert s.export(s.export_options("png")) == data


def test_export_uses_size_fields() -> None:
    pytest.importorskip("pyvips")
    pil = pytest.importorskip("PIL.Image")
    import io

    s = _session()
    s.export_size.set_width("50")
    data = s.export(s.export_options("webp", 0.8))
    assert data is not None
    with pil.open(io.BytesIO(data)) as im:
        assert im.size == (50, 25)


def test_load_grayscale_file(tmp_path) -> None:
    pytest.importorskip("pyvips")
    pil = pytest.importorskip("PIL.Image")
    path = tmp_path / "gray.png"
    pil.new("L", (8, 6), 140).save(path, format="PNG")

    s = EditorSession(stage_size=(800, 600))
    assert s.load_file(str(path)) is True
    assert s.raster is not None
    assert s.raster.size == (8, 6)
    assert np.array_equal(s.raster.pixels[5, 7], [140, 140, 140, 255])

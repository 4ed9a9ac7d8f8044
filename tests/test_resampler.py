from __future__ import annotations

import pytest
from conftest import gradient_raster

from image_editor.image_engine.raster import Raster
from image_editor.image_engine.resampler import cover_fit, resample


def test_cover_fit_crops_the_overflowing_axis() -> None:
    fit = cover_fit(100, 200, 50, 50)
    assert fit.scale == pytest.approx(0.5)
    assert (fit.draw_w, fit.draw_h) == pytest.approx((50, 100))
    assert fit.dx == pytest.approx(0)
    assert fit.dy == pytest.approx(-25)


def test_cover_fit_upscales() -> None:
    fit = cover_fit(10, 10, 40, 20)
    assert fit.scale == pytest.approx(4)
    assert fit.dy == pytest.approx(-10)


@pytest.mark.parametrize("size", [(0, 10, 5, 5), (10, 10, 0, 5), (10, -1, 5, 5)])
def test_cover_fit_rejects_non_positive_sizes(size: tuple[int, int, int, int]) -> None:
    with pytest.raises(ValueError):
        cover_fit(*size)


def test_resample_same_size_is_passthrough() -> None:
    r = gradient_raster(20, 10)
    assert resample(r, 20, 10) is r


def test_resample_hits_exact_target() -> None:
    pytest.importorskip("pyvips")
    out = resample(gradient_raster(100, 200), 50, 50)
    assert out.size == (50, 50)


def test_resample_odd_targets() -> None:
    pytest.importorskip("pyvips")
    out = resample(gradient_raster(97, 61), 33, 71)
    assert out.size == (33, 71)


def test_resample_solid_color_stays_solid() -> None:
    pytest.importorskip("pyvips")
    out = resample(Raster.solid(64, 32, (12, 200, 90, 255)), 16, 16)
    px = out.pixels.astype(int)
    assert abs(px[:, :, 0] - 12).max() <= 1
    assert abs(px[:, :, 1] - 200).max() <= 1
    assert (px[:, :, 3] == 255).all()

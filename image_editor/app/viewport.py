"""Viewport controller: scale and pan of the displayed image inside the stage.

Pure Python (no Qt) so the crop engine and tests can consume snapshots
without a running application.
"""

from __future__ import annotations

from image_editor.geometry import Rect, ViewportFrame, clamp, round_half_up
from image_editor.logger import get_logger
from image_editor.settings_manager import SettingsManager

_logger = get_logger("viewport")


class ViewportController:
    """Tracks stage size, content size, zoom scale and pan offset.

    ``pan_x``/``pan_y`` are the top-left of the displayed image in
    stage-local pixels; that is also the overlay coordinate space the crop
    session works in.
    """

    def __init__(
        self,
        stage_w: float = 0.0,
        stage_h: float = 0.0,
        settings: SettingsManager | None = None,
    ) -> None:
        self._settings = settings
        self.zoom_step = self._tunable("zoom_step", 0.1)
        self.min_scale = self._tunable("min_scale", 0.05)
        self.max_scale = self._tunable("max_scale", 8.0)
        self.fit_margin = self._tunable("fit_margin", 0.9)

        self.stage_w = float(stage_w)
        self.stage_h = float(stage_h)
        self.content_w = 0
        self.content_h = 0
        self.scale = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0
        # Set while a crop session is active.
        self.pan_locked = False

    def _tunable(self, key: str, fallback: float) -> float:
        if self._settings is None:
            return fallback
        return self._settings.get_float(key)

    # ---- geometry ----
    @property
    def has_content(self) -> bool:
        return self.content_w > 0 and self.content_h > 0

    @property
    def scale_pct(self) -> int:
        return round_half_up(self.scale * 100)

    @property
    def image_bounds(self) -> Rect:
        return Rect(self.pan_x, self.pan_y, self.content_w * self.scale, self.content_h * self.scale)

    def frame(self) -> ViewportFrame:
        return ViewportFrame(self.image_bounds, self.scale)

    # ---- mutation ----
    def set_stage_size(self, width: float, height: float) -> None:
        self.stage_w = max(0.0, float(width))
        self.stage_h = max(0.0, float(height))

    def set_content_size(self, width: int, height: int, *, refit: bool = False) -> None:
        """Swap the displayed content, keeping its center where it was unless ``refit``."""
        cx = self.pan_x + self.content_w * self.scale / 2
        cy = self.pan_y + self.content_h * self.scale / 2
        had_content = self.has_content
        self.content_w = max(0, int(width))
        self.content_h = max(0, int(height))
        if refit or not had_content:
            self.fit_to_screen()
            return
        self.pan_x = cx - self.content_w * self.scale / 2
        self.pan_y = cy - self.content_h * self.scale / 2

    def clear(self) -> None:
        self.content_w = 0
        self.content_h = 0
        self.scale = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0

    def fit_to_screen(self) -> None:
        if not self.has_content or self.stage_w <= 0 or self.stage_h <= 0:
            return
        fit = min(
            self.fit_margin * self.stage_w / self.content_w,
            self.fit_margin * self.stage_h / self.content_h,
        )
        self.scale = max(self.min_scale, fit)
        self.pan_x = (self.stage_w - self.content_w * self.scale) / 2
        self.pan_y = (self.stage_h - self.content_h * self.scale) / 2
        _logger.debug(
            "fit_to_screen: %dx%d in %.0fx%.0f -> scale=%.4f",
            self.content_w,
            self.content_h,
            self.stage_w,
            self.stage_h,
            self.scale,
        )

    def zoom_at(self, factor: float, x: float, y: float) -> None:
        """Scale by ``factor`` keeping stage point (x, y) fixed."""
        if factor <= 0:
            raise ValueError(f"zoom factor must be positive: {factor}")
        old = self.scale
        new = clamp(old * factor, self.min_scale, self.max_scale)
        if new == old:
            return
        self.pan_x = x - (x - self.pan_x) * new / old
        self.pan_y = y - (y - self.pan_y) * new / old
        self.scale = new

    def zoom_in(self) -> None:
        self.zoom_at(1 + self.zoom_step, self.stage_w / 2, self.stage_h / 2)

    def zoom_out(self) -> None:
        self.zoom_at(1 / (1 + self.zoom_step), self.stage_w / 2, self.stage_h / 2)

    def pan_by(self, dx: float, dy: float) -> bool:
        if self.pan_locked:
            return False
        self.pan_x += dx
        self.pan_y += dy
        return True

"""Editing surface: one explicit context object for a single open image.

EditorSession owns the source Raster, the TransformState, the CropSession,
the ViewportController and the export size fields. UI layers (the Qt
backend, the CLI) call into it and read its state back; it never talks to
Qt itself.
"""

from __future__ import annotations

from dataclasses import replace

from image_editor.crop.resolver import DegenerateCropError, resolve
from image_editor.crop.session import (
    CropSession,
    EventKind,
    PointerEvent,
    cancel_session,
    set_aspect,
    start_session,
    transition,
)
from image_editor.geometry import Rect
from image_editor.image_engine.compositor import TransformState, bake, baked_size
from image_editor.image_engine.data_url import parse_data_url, to_data_url
from image_editor.image_engine.decoder import decode_bytes, decode_image
from image_editor.image_engine.encoder import ExportOptions, encode_raster, export_raster
from image_editor.image_engine.encoder import export_filename as _export_filename
from image_editor.image_engine.raster import Raster
from image_editor.logger import get_logger
from image_editor.ops.remote import (
    AiEditRequest,
    AiEditService,
    RemoteServiceError,
    ResizeResponse,
    ResizeService,
)
from image_editor.settings_manager import SettingsManager

from .export_size import ExportSizeFields
from .viewport import ViewportController

_logger = get_logger("editor")


class EditorSession:
    def __init__(
        self,
        settings: SettingsManager | None = None,
        stage_size: tuple[float, float] = (0.0, 0.0),
    ) -> None:
        self._settings = settings
        self.viewport = ViewportController(stage_size[0], stage_size[1], settings=settings)
        self.raster: Raster | None = None
        self.state = TransformState()
        self.crop = CropSession(aspect=self._default_aspect())
        lock = settings.export_lock_aspect if settings is not None else True
        self.export_size = ExportSizeFields(locked=lock)
        # (original bytes, resized bytes) from the last size reduction
        self.size_comparison: tuple[int, int] | None = None
        self._baked: dict[bool, tuple[TransformState, Raster]] = {}

    def _default_aspect(self) -> str:
        return self._settings.default_crop_aspect if self._settings is not None else "free"

    # ---- read-only views ----
    @property
    def has_image(self) -> bool:
        return self.raster is not None

    @property
    def is_cropping(self) -> bool:
        return self.crop.active

    def baked(self, apply_filters: bool = True) -> Raster | None:
        """Oriented (and optionally filtered) raster for the current state; None without an image."""
        if self.raster is None:
            return None
        cached = self._baked.get(apply_filters)
        if cached is not None and cached[0] == self.state:
            return cached[1]
        out = bake(self.raster, self.state, apply_filters=apply_filters)
        self._baked[apply_filters] = (self.state, out)
        return out

    def baked_dimensions(self) -> tuple[int, int]:
        if self.raster is None:
            return 0, 0
        return baked_size(self.raster.width, self.raster.height, self.state)

    # ---- internal sync ----
    def _set_state(self, state: TransformState) -> None:
        geometry_changed = (
            state.normalized_rotation != self.state.normalized_rotation
            or state.flip_horizontal != self.state.flip_horizontal
            or state.flip_vertical != self.state.flip_vertical
        )
        self.state = state
        if geometry_changed:
            self._sync_dimensions(refit=False)

    def _sync_dimensions(self, *, refit: bool) -> None:
        w, h = self.baked_dimensions()
        if w and h:
            self.viewport.set_content_size(w, h, refit=refit)
        else:
            self.viewport.clear()
        self.export_size.set_native(w, h)

    def _replace_raster(self, raster: Raster, state: TransformState) -> None:
        self.raster = raster
        self.state = state
        self._baked.clear()
        self._end_crop()
        self._sync_dimensions(refit=True)

    def _end_crop(self) -> None:
        self.crop = cancel_session(self.crop)
        self.viewport.pan_locked = False

    # ---- ingestion ----
    def load_image(self, raster: Raster) -> None:
        """Replace the image; every transform (filters included) resets."""
        self.size_comparison = None
        self._replace_raster(raster, TransformState())
        _logger.info("image loaded: %s", raster)

    def load_bytes(self, data: bytes, mime: str | None = None) -> None:
        self.load_image(decode_bytes(data, mime))

    def load_data_url(self, url: str) -> None:
        mime, data = parse_data_url(url)
        self.load_bytes(data, mime)

    def load_file(self, path: str) -> bool:
        _, raster, error = decode_image(path)
        if raster is None:
            _logger.warning("load failed: %s: %s", path, error)
            return False
        self.load_image(raster)
        return True

    def remove_image(self) -> None:
        self.raster = None
        self.state = TransformState()
        self._baked.clear()
        self.crop = CropSession(aspect="free")
        self.viewport.pan_locked = False
        self.size_comparison = None
        self._sync_dimensions(refit=False)
        _logger.info("image removed")

    # ---- adjustments ----
    def set_brightness(self, pct: int) -> None:
        self._set_state(replace(self.state, brightness_pct=int(pct)))

    def set_contrast(self, pct: int) -> None:
        self._set_state(replace(self.state, contrast_pct=int(pct)))

    def set_saturation(self, pct: int) -> None:
        self._set_state(replace(self.state, saturation_pct=int(pct)))

    def rotate_cw(self) -> None:
        self._set_state(replace(self.state, rotation_deg=(self.state.normalized_rotation + 90) % 360))

    def rotate_ccw(self) -> None:
        self._set_state(replace(self.state, rotation_deg=(self.state.normalized_rotation + 270) % 360))

    def set_rotation(self, deg: int) -> None:
        self._set_state(replace(self.state, rotation_deg=int(deg)))

    def flip_horizontal(self) -> None:
        self._set_state(replace(self.state, flip_horizontal=not self.state.flip_horizontal))

    def flip_vertical(self) -> None:
        self._set_state(replace(self.state, flip_vertical=not self.state.flip_vertical))

    def reset_adjustments(self) -> None:
        self._set_state(TransformState())

    # ---- crop ----
    def toggle_crop(self) -> bool:
        """Turn crop mode on or off; returns whether it is now active."""
        if self.crop.active:
            self._end_crop()
        elif self.raster is not None:
            self.crop = start_session(self.crop.aspect, self.viewport.frame())
            self.viewport.pan_locked = True
        return self.crop.active

    def set_crop_aspect(self, aspect: str) -> None:
        self.crop = set_aspect(self.crop, aspect, self.viewport.frame())

    def _pointer(self, kind: EventKind, x: float, y: float, handle: str | None) -> CropSession:
        event = PointerEvent(kind, float(x), float(y), self.viewport.frame(), handle)
        self.crop = transition(self.crop, event)
        return self.crop

    def pointer_down(self, x: float, y: float, handle: str | None = None) -> CropSession:
        return self._pointer("down", x, y, handle)

    def pointer_move(self, x: float, y: float) -> CropSession:
        return self._pointer("move", x, y, None)

    def pointer_up(self, x: float, y: float) -> CropSession:
        return self._pointer("up", x, y, None)

    def cancel_crop(self) -> None:
        self._end_crop()

    def commit_crop(self) -> bool:
        """Apply the crop rect to the image.

        Returns False (with cropping turned off and the image untouched) when
        there is nothing to commit or the rect is degenerate.
        """
        if not self.crop.active or self.raster is None:
            return False
        rect = self.crop.rect
        if rect is None:
            _logger.info("crop commit skipped: no selection")
            self._end_crop()
            return False
        return self._apply_crop(rect, self.viewport.image_bounds)

    def crop_to(self, rect: Rect) -> bool:
        """Crop by a rect given in baked-raster pixels, outside any interactive session."""
        w, h = self.baked_dimensions()
        if self.raster is None:
            return False
        return self._apply_crop(rect, Rect(0, 0, w, h))

    def _apply_crop(self, rect: Rect, image_bounds: Rect) -> bool:
        baked = self.baked(apply_filters=False)
        if baked is None:
            return False
        try:
            cropped = resolve(rect, image_bounds, baked)
        except DegenerateCropError as e:
            _logger.info("crop commit skipped: %s", e)
            self._end_crop()
            return False

        # Orientation is now baked into the pixels; filters stay live.
        self._replace_raster(cropped, self.state.with_geometry_reset())
        _logger.info("crop committed: %s -> %s", baked, cropped)
        return True

    # ---- export ----
    def export_options(self, fmt: str | None = None, quality: float | None = None) -> ExportOptions:
        """Options built from the size fields and the saved export defaults."""
        if fmt is None:
            fmt = self._settings.export_format if self._settings is not None else "png"
        if quality is None:
            quality = self._settings.export_quality if self._settings is not None else 0.9
        target = self.export_size.target()
        width, height = target if target else (None, None)
        return ExportOptions(format=fmt, quality=quality, width=width, height=height)

    def export(self, options: ExportOptions | None = None) -> bytes | None:
        baked = self.baked()
        if baked is None:
            return None
        return export_raster(baked, options or self.export_options())

    def quick_download(self) -> bytes | None:
        return self.export(ExportOptions(format="png"))

    @staticmethod
    def export_filename(fmt: str = "png") -> str:
        return _export_filename(fmt)

    # ---- remote ----
    def apply_ai_edit(self, service: AiEditService, prompt: str) -> bool:
        """Send the current edit to the AI service and load its answer as the new image.

        Raises:
            RemoteServiceError: if the service answers unsuccessfully; local state is unchanged.
        """
        baked = self.baked()
        if baked is None:
            return False
        resp = service.handle(AiEditRequest(to_data_url(encode_raster(baked, "png")), prompt))
        if not resp.success or not resp.edited_image:
            _logger.warning("AI edit failed: %s %s", resp.status, resp.error)
            raise RemoteServiceError(resp.status, resp.error or "no image returned")
        self.load_data_url(resp.edited_image)
        return True

    def reduce_size(self, service: ResizeService) -> ResizeResponse | None:
        """Swap the source for its JPEG re-encode; adjustments are kept.

        Raises:
            RemoteServiceError: if the service answers unsuccessfully; local state is unchanged.
        """
        if self.raster is None:
            return None
        resp = service.handle({"image": to_data_url(encode_raster(self.raster, "png"))})
        if not resp.success or not resp.image:
            _logger.warning("size reduction failed: %s %s", resp.status, resp.error)
            raise RemoteServiceError(resp.status, resp.error or "no image returned")
        mime, data = parse_data_url(resp.image)
        raster = decode_bytes(data, mime)
        self._replace_raster(raster, self.state)
        self.size_comparison = (resp.original_size, resp.resized_size)
        _logger.info("size reduced: %d -> %d bytes", resp.original_size, resp.resized_size)
        return resp

from __future__ import annotations

import contextlib
import math
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from PySide6.QtCore import Property, QObject, QUrl, Signal, Slot

from image_editor.app.editor import EditorSession
from image_editor.app.state.crop_state import CropState
from image_editor.app.state.editor_state import EditorState
from image_editor.geometry import aspect_ratio
from image_editor.image_engine.encoder import ExportOptions
from image_editor.logger import get_logger
from image_editor.ops.remote import AiEditService, RemoteServiceError, ResizeService
from image_editor.settings_manager import SettingsManager

_logger = get_logger("backend")
_BASE_DIR = Path(getattr(sys, "_MEIPASS", Path(__file__).resolve().parents[1]))
_QUALITY_MIN_PCT = 10
_QUALITY_MAX_PCT = 100


class EditorBackend(QObject):
    """Single QML-facing facade for the editor.

    QML → Python: backend.dispatch(cmd, payload)
    Python → QML: backend.event(dict), backend.taskEvent(dict)
    QML bindings: backend.editor / backend.crop
    """

    # QObject already has an .event() handler method, so we must not shadow it.
    # Expose the QML signal name as "event" while keeping a safe Python attribute.
    event_ = Signal(object, name="event")
    taskEvent = Signal(object, name="taskEvent")

    def __init__(
        self,
        session: EditorSession | None = None,
        settings: SettingsManager | None = None,
        ai_service: AiEditService | None = None,
        resize_service: ResizeService | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)

        self._settings_mgr = settings or SettingsManager(str(_BASE_DIR / "settings.json"))
        self._session = session or EditorSession(settings=self._settings_mgr)
        self._ai_service = ai_service
        self._resize_service = resize_service or ResizeService(
            int(self._settings_mgr.get_float("resize_jpeg_quality"))
        )

        self._editor = EditorState(self)
        self._crop = CropState(self)
        self._sync_all()

    # ---- expose state objects to QML ----
    def _get_editor(self) -> QObject:
        return self._editor

    editorState = Property(QObject, _get_editor, constant=True)  # type: ignore[arg-type]

    def _get_crop(self) -> QObject:
        return self._crop

    cropState = Property(QObject, _get_crop, constant=True)  # type: ignore[arg-type]

    # Short aliases for QML ergonomics
    editor = Property(QObject, _get_editor, constant=True)  # type: ignore[arg-type]
    crop = Property(QObject, _get_crop, constant=True)  # type: ignore[arg-type]

    @property
    def session(self) -> EditorSession:
        return self._session

    @Slot(str, "QVariant")  # type: ignore[call-overload]
    def dispatch(self, cmd: str, payload: object | None = None) -> None:  # noqa: PLR0912, PLR0915
        command = str(cmd or "").strip()
        if not command:
            self.event_.emit({"type": "event", "name": "error", "level": "error", "message": "Empty cmd"})
            return

        s = self._session

        if command == "log":
            self._handle_log_cmd(payload)
            return

        # ---- ingestion ----
        if command == "loadFile":
            self._cmd_load_file(payload)
        elif command == "loadDataUrl":
            self._cmd_load_data_url(payload)
        elif command == "removeImage":
            s.remove_image()

        # ---- adjustments ----
        elif command == "setBrightness":
            s.set_brightness(int(_get_payload_value(payload, "value", default=100)))
        elif command == "setContrast":
            s.set_contrast(int(_get_payload_value(payload, "value", default=100)))
        elif command == "setSaturation":
            s.set_saturation(int(_get_payload_value(payload, "value", default=100)))
        elif command == "rotateCw":
            s.rotate_cw()
        elif command == "rotateCcw":
            s.rotate_ccw()
        elif command == "flipHorizontal":
            s.flip_horizontal()
        elif command == "flipVertical":
            s.flip_vertical()
        elif command == "resetAdjustments":
            s.reset_adjustments()

        # ---- viewport ----
        elif command == "setStageSize":
            s.viewport.set_stage_size(
                float(_get_payload_value(payload, "width", default=0.0)),
                float(_get_payload_value(payload, "height", default=0.0)),
            )
            if bool(_get_payload_value(payload, "fit", default=False)):
                s.viewport.fit_to_screen()
        elif command == "fitToScreen":
            s.viewport.fit_to_screen()
        elif command == "zoomIn":
            s.viewport.zoom_in()
        elif command == "zoomOut":
            s.viewport.zoom_out()
        elif command == "zoomAt":
            factor = float(_get_payload_value(payload, "factor", default=1.0))
            if factor <= 0:
                self._emit_error(f"Invalid zoom factor: {factor}")
                return
            s.viewport.zoom_at(
                factor,
                float(_get_payload_value(payload, "x", default=0.0)),
                float(_get_payload_value(payload, "y", default=0.0)),
            )
        elif command == "panBy":
            s.viewport.pan_by(
                float(_get_payload_value(payload, "dx", default=0.0)),
                float(_get_payload_value(payload, "dy", default=0.0)),
            )

        # ---- crop ----
        elif command == "toggleCrop":
            s.toggle_crop()
        elif command == "cropSetAspect":
            self._cmd_crop_set_aspect(payload)
        elif command in {"cropPointerDown", "cropPointerMove", "cropPointerUp"}:
            self._cmd_crop_pointer(command, payload)
        elif command == "cropCancel":
            s.cancel_crop()
        elif command == "cropCommit":
            self._cmd_crop_commit()

        # ---- export ----
        elif command == "exportSetWidth":
            s.export_size.set_width(_get_payload_value(payload, "value", default=None))
        elif command == "exportSetHeight":
            s.export_size.set_height(_get_payload_value(payload, "value", default=None))
        elif command == "exportSetLock":
            s.export_size.set_locked(bool(_get_payload_value(payload, "value", default=True)))
        elif command == "exportResetSize":
            s.export_size.reset()
        elif command == "export":
            self._cmd_export(payload)
        elif command == "quickDownload":
            self._cmd_quick_download(payload)

        # ---- remote ----
        elif command == "aiEdit":
            self._cmd_ai_edit(payload)
        elif command == "reduceSize":
            self._cmd_reduce_size()

        else:
            self.event_.emit(
                {
                    "type": "event",
                    "name": "error",
                    "level": "warning",
                    "message": f"Unknown cmd: {command}",
                }
            )
            return

        self._sync_all()

    # ---- state sync ----
    def _sync_all(self) -> None:
        s = self._session
        st = s.state
        w, h = s.baked_dimensions()
        self._editor._set_has_image(s.has_image)
        self._editor._set_image_size(w, h)
        self._editor._set_filters(st.brightness_pct, st.contrast_pct, st.saturation_pct)
        self._editor._set_geometry(st.normalized_rotation, st.flip_horizontal, st.flip_vertical)
        self._editor._set_view(s.viewport.scale_pct, s.viewport.pan_x, s.viewport.pan_y)
        self._editor._set_export_size(s.export_size.width, s.export_size.height)
        self._editor._set_export_lock_aspect(s.export_size.locked)

        crop = s.crop
        self._crop._set_active(crop.active)
        self._crop._set_mode(crop.mode)
        self._crop._set_aspect(crop.aspect)
        self._crop._set_resizable(crop.can_resize)
        self._crop._set_rect(crop.rect.as_tuple() if crop.rect is not None else None)

    # ---- ingestion helpers ----
    def _cmd_load_file(self, payload: object | None) -> None:
        path = _local_path(str(_get_payload_value(payload, "path", default="") or ""))
        if not path:
            return
        if not self._session.load_file(path):
            self._emit_error(f"Could not open image: {path}")

    def _cmd_load_data_url(self, payload: object | None) -> None:
        url = str(_get_payload_value(payload, "url", default="") or "")
        try:
            self._session.load_data_url(url)
        except ValueError as e:
            _logger.warning("data URL rejected: %s", e)
            self._emit_error(str(e))

    # ---- crop helpers ----
    def _cmd_crop_set_aspect(self, payload: object | None) -> None:
        tag = str(_get_payload_value(payload, "aspect", default="free"))
        try:
            aspect_ratio(tag)
        except ValueError as e:
            self._emit_error(str(e))
            return
        self._session.set_crop_aspect(tag)

    def _cmd_crop_pointer(self, command: str, payload: object | None) -> None:
        x = float(_get_payload_value(payload, "x", default=0.0))
        y = float(_get_payload_value(payload, "y", default=0.0))
        if command == "cropPointerDown":
            handle = _get_payload_value(payload, "handle", default=None)
            self._session.pointer_down(x, y, str(handle) if handle else None)
        elif command == "cropPointerMove":
            self._session.pointer_move(x, y)
        else:
            self._session.pointer_up(x, y)

    def _cmd_crop_commit(self) -> None:
        committed = self._session.commit_crop()
        w, h = self._session.baked_dimensions()
        self.taskEvent.emit(
            {
                "type": "task",
                "name": "cropCommit",
                "state": "finished" if committed else "skipped",
                "width": w,
                "height": h,
            }
        )

    # ---- export helpers ----
    def _cmd_export(self, payload: object | None) -> None:
        fmt = str(_get_payload_value(payload, "format", default=self._settings_mgr.export_format))
        raw_q = _get_payload_value(payload, "quality", default=None)
        quality = None
        if raw_q is not None:
            try:
                quality = _quality_fraction(raw_q)
            except (TypeError, ValueError):
                self._emit_error(f"Invalid export quality: {raw_q!r}")
                return
        try:
            options = self._session.export_options(fmt, quality)
        except ValueError as e:
            self._emit_error(str(e))
            return
        self._write_export(payload, options)

    def _cmd_quick_download(self, payload: object | None) -> None:
        self._write_export(payload, ExportOptions(format="png"))

    def _write_export(self, payload: object | None, options: ExportOptions) -> None:
        out_dir = _local_path(str(_get_payload_value(payload, "outputDir", default="") or ""))
        out = _local_path(str(_get_payload_value(payload, "outputPath", default="") or ""))
        if not out:
            out = str(Path(out_dir or ".") / self._session.export_filename(options.format))

        try:
            data = self._session.export(options)
            if data is None:
                return
            Path(out).write_bytes(data)
        except (OSError, ValueError) as e:
            _logger.error("export failed: %s", e, exc_info=True)
            self.taskEvent.emit({"type": "task", "name": "export", "state": "error", "message": str(e)})
            return

        self.taskEvent.emit(
            {
                "type": "task",
                "name": "export",
                "state": "finished",
                "outputPath": out,
                "format": options.format,
                "bytes": len(data),
            }
        )

    # ---- remote helpers ----
    def _cmd_ai_edit(self, payload: object | None) -> None:
        prompt = str(_get_payload_value(payload, "prompt", default="") or "")
        service = self._ai_service
        if service is None:
            self._emit_error("AI editing is not configured")
            return
        self._run_remote("aiEdit", lambda: self._session.apply_ai_edit(service, prompt))

    def _cmd_reduce_size(self) -> None:
        def _run() -> object:
            resp = self._session.reduce_size(self._resize_service)
            if resp is not None:
                return {"original": resp.original_size, "resized": resp.resized_size}
            return None

        self._run_remote("reduceSize", _run)

    def _run_remote(self, name: str, fn: Callable[[], object]) -> None:
        self._editor._set_processing(True)
        try:
            result = fn()
        except (RemoteServiceError, ValueError) as e:
            self.taskEvent.emit({"type": "task", "name": name, "state": "error", "message": str(e)})
            return
        finally:
            self._editor._set_processing(False)
        self.taskEvent.emit({"type": "task", "name": name, "state": "finished", "result": result})

    # ---- cmd handlers ----
    def _handle_log_cmd(self, payload: object | None) -> None:
        level = str(_get_payload_value(payload, "level", default="debug")).lower()
        msg = str(_get_payload_value(payload, "message", default=""))
        if not msg:
            return

        # integrate into Python logging pipeline
        if level == "info":
            _logger.info("[QML] %s", msg)
        elif level in {"warn", "warning"}:
            _logger.warning("[QML] %s", msg)
        elif level == "error":
            _logger.error("[QML] %s", msg)
        else:
            _logger.debug("[QML] %s", msg)

    def _emit_error(self, message: str) -> None:
        self.event_.emit({"type": "event", "name": "error", "level": "error", "message": message})


def _quality_fraction(raw: object) -> float:
    """Accept a 0..1 fraction or a 10..100 slider percentage; returns 0.1..1."""
    value = float(raw)  # type: ignore[arg-type]
    if not math.isfinite(value):
        raise ValueError(f"quality is not finite: {raw!r}")
    pct = value * 100 if value <= 1 else value
    return max(_QUALITY_MIN_PCT, min(_QUALITY_MAX_PCT, pct)) / 100


def _local_path(value: str) -> str:
    if value.startswith("file:"):
        url = QUrl(value)
        if url.isLocalFile():
            return url.toLocalFile()
    return value


def _get_payload_value(payload: object | None, key: str, *, default: Any) -> Any:
    """Extract a value from a QML payload.

    Supports:
    - dict-like payloads (Python dict)
    - None
    - otherwise returns default

    We intentionally keep schema small and explicit.
    """

    if payload is None:
        return default

    # QML often passes a JS object which arrives as QJSValue/QVariant.
    # Convert to a Python mapping when possible.
    if payload.__class__.__name__ == "QJSValue" and hasattr(payload, "toVariant"):
        with contextlib.suppress(Exception):
            payload = payload.toVariant()  # type: ignore[assignment, attr-defined]

    if isinstance(payload, dict):
        return payload.get(key, default)

    return default

from __future__ import annotations

from PySide6.QtCore import Property, QObject, Signal


class EditorState(QObject):
    """State bound by the editor UI (stage, sidebar sliders, export panel)."""

    hasImageChanged = Signal(bool)
    imageWidthChanged = Signal(int)
    imageHeightChanged = Signal(int)

    brightnessChanged = Signal(int)
    contrastChanged = Signal(int)
    saturationChanged = Signal(int)
    rotationChanged = Signal(int)
    flipHorizontalChanged = Signal(bool)
    flipVerticalChanged = Signal(bool)

    zoomPercentChanged = Signal(int)
    panXChanged = Signal(float)
    panYChanged = Signal(float)

    exportWidthChanged = Signal(int)
    exportHeightChanged = Signal(int)
    exportLockAspectChanged = Signal(bool)

    processingChanged = Signal(bool)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._has_image = False
        self._image_w = 0
        self._image_h = 0

        self._brightness = 100
        self._contrast = 100
        self._saturation = 100
        self._rotation = 0
        self._flip_h = False
        self._flip_v = False

        self._zoom_pct = 100
        self._pan_x = 0.0
        self._pan_y = 0.0

        # 0 means the field is empty.
        self._export_w = 0
        self._export_h = 0
        self._export_lock_aspect = True

        self._processing = False

    # ---- read-only properties (mutate via backend) ----
    def _get_has_image(self) -> bool:
        return bool(self._has_image)

    hasImage = Property(bool, _get_has_image, notify=hasImageChanged)  # type: ignore[arg-type]

    def _get_image_width(self) -> int:
        return int(self._image_w)

    imageWidth = Property(int, _get_image_width, notify=imageWidthChanged)  # type: ignore[arg-type]

    def _get_image_height(self) -> int:
        return int(self._image_h)

    imageHeight = Property(int, _get_image_height, notify=imageHeightChanged)  # type: ignore[arg-type]

    def _get_brightness(self) -> int:
        return int(self._brightness)

    brightness = Property(int, _get_brightness, notify=brightnessChanged)  # type: ignore[arg-type]

    def _get_contrast(self) -> int:
        return int(self._contrast)

    contrast = Property(int, _get_contrast, notify=contrastChanged)  # type: ignore[arg-type]

    def _get_saturation(self) -> int:
        return int(self._saturation)

    saturation = Property(int, _get_saturation, notify=saturationChanged)  # type: ignore[arg-type]

    def _get_rotation(self) -> int:
        return int(self._rotation)

    rotation = Property(int, _get_rotation, notify=rotationChanged)  # type: ignore[arg-type]

    def _get_flip_horizontal(self) -> bool:
        return bool(self._flip_h)

    flipHorizontal = Property(bool, _get_flip_horizontal, notify=flipHorizontalChanged)  # type: ignore[arg-type]

    def _get_flip_vertical(self) -> bool:
        return bool(self._flip_v)

    flipVertical = Property(bool, _get_flip_vertical, notify=flipVerticalChanged)  # type: ignore[arg-type]

    def _get_zoom_percent(self) -> int:
        return int(self._zoom_pct)

    zoomPercent = Property(int, _get_zoom_percent, notify=zoomPercentChanged)  # type: ignore[arg-type]

    def _get_pan_x(self) -> float:
        return float(self._pan_x)

    panX = Property(float, _get_pan_x, notify=panXChanged)  # type: ignore[arg-type]

    def _get_pan_y(self) -> float:
        return float(self._pan_y)

    panY = Property(float, _get_pan_y, notify=panYChanged)  # type: ignore[arg-type]

    def _get_export_width(self) -> int:
        return int(self._export_w)

    exportWidth = Property(int, _get_export_width, notify=exportWidthChanged)  # type: ignore[arg-type]

    def _get_export_height(self) -> int:
        return int(self._export_h)

    exportHeight = Property(int, _get_export_height, notify=exportHeightChanged)  # type: ignore[arg-type]

    def _get_export_lock_aspect(self) -> bool:
        return bool(self._export_lock_aspect)

    exportLockAspect = Property(bool, _get_export_lock_aspect, notify=exportLockAspectChanged)  # type: ignore[arg-type]

    def _get_processing(self) -> bool:
        return bool(self._processing)

    processing = Property(bool, _get_processing, notify=processingChanged)  # type: ignore[arg-type]

    # ---- internal mutation helpers (called by backend) ----
    def _set_has_image(self, value: bool) -> None:
        v = bool(value)
        if v == self._has_image:
            return
        self._has_image = v
        self.hasImageChanged.emit(v)

    def _set_image_size(self, w: int, h: int) -> None:
        iw = int(w)
        ih = int(h)
        if iw != self._image_w:
            self._image_w = iw
            self.imageWidthChanged.emit(iw)
        if ih != self._image_h:
            self._image_h = ih
            self.imageHeightChanged.emit(ih)

    def _set_filters(self, brightness: int, contrast: int, saturation: int) -> None:
        b, c, s = int(brightness), int(contrast), int(saturation)
        if b != self._brightness:
            self._brightness = b
            self.brightnessChanged.emit(b)
        if c != self._contrast:
            self._contrast = c
            self.contrastChanged.emit(c)
        if s != self._saturation:
            self._saturation = s
            self.saturationChanged.emit(s)

    def _set_geometry(self, rotation: int, flip_h: bool, flip_v: bool) -> None:
        r = int(rotation)
        if r != self._rotation:
            self._rotation = r
            self.rotationChanged.emit(r)
        if bool(flip_h) != self._flip_h:
            self._flip_h = bool(flip_h)
            self.flipHorizontalChanged.emit(self._flip_h)
        if bool(flip_v) != self._flip_v:
            self._flip_v = bool(flip_v)
            self.flipVerticalChanged.emit(self._flip_v)

    def _set_view(self, zoom_pct: int, pan_x: float, pan_y: float) -> None:
        z = int(zoom_pct)
        if z != self._zoom_pct:
            self._zoom_pct = z
            self.zoomPercentChanged.emit(z)
        px = float(pan_x)
        if px != self._pan_x:
            self._pan_x = px
            self.panXChanged.emit(px)
        py = float(pan_y)
        if py != self._pan_y:
            self._pan_y = py
            self.panYChanged.emit(py)

    def _set_export_size(self, w: int | None, h: int | None) -> None:
        ew = int(w or 0)
        eh = int(h or 0)
        if ew != self._export_w:
            self._export_w = ew
            self.exportWidthChanged.emit(ew)
        if eh != self._export_h:
            self._export_h = eh
            self.exportHeightChanged.emit(eh)

    def _set_export_lock_aspect(self, value: bool) -> None:
        v = bool(value)
        if v == self._export_lock_aspect:
            return
        self._export_lock_aspect = v
        self.exportLockAspectChanged.emit(v)

    def _set_processing(self, value: bool) -> None:
        v = bool(value)
        if v == self._processing:
            return
        self._processing = v
        self.processingChanged.emit(v)

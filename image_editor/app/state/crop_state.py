from __future__ import annotations

from PySide6.QtCore import Property, QObject, Signal


class CropState(QObject):
    """State bound by the crop overlay UI.

    Design:
    - The rect is stored in overlay-local pixels, the same space as the
      displayed image bounds.
    - The UI only forwards pointer events; Python is authoritative for
      clamping, aspect enforcement and handle resolution.
    """

    activeChanged = Signal(bool)
    modeChanged = Signal(str)
    aspectChanged = Signal(str)
    hasRectChanged = Signal(bool)

    rectXChanged = Signal(float)
    rectYChanged = Signal(float)
    rectWChanged = Signal(float)
    rectHChanged = Signal(float)

    resizableChanged = Signal(bool)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._active = False
        self._mode = "idle"
        self._aspect = "free"
        self._has_rect = False

        self._x = 0.0
        self._y = 0.0
        self._w = 0.0
        self._h = 0.0

        self._resizable = True

    # ---- read-only properties (mutate via backend) ----
    def _get_active(self) -> bool:
        return bool(self._active)

    active = Property(bool, _get_active, notify=activeChanged)  # type: ignore[arg-type]

    def _get_mode(self) -> str:
        return str(self._mode)

    mode = Property(str, _get_mode, notify=modeChanged)  # type: ignore[arg-type]

    def _get_aspect(self) -> str:
        return str(self._aspect)

    aspect = Property(str, _get_aspect, notify=aspectChanged)  # type: ignore[arg-type]

    def _get_has_rect(self) -> bool:
        return bool(self._has_rect)

    hasRect = Property(bool, _get_has_rect, notify=hasRectChanged)  # type: ignore[arg-type]

    def _get_x(self) -> float:
        return float(self._x)

    rectX = Property(float, _get_x, notify=rectXChanged)  # type: ignore[arg-type]

    def _get_y(self) -> float:
        return float(self._y)

    rectY = Property(float, _get_y, notify=rectYChanged)  # type: ignore[arg-type]

    def _get_w(self) -> float:
        return float(self._w)

    rectW = Property(float, _get_w, notify=rectWChanged)  # type: ignore[arg-type]

    def _get_h(self) -> float:
        return float(self._h)

    rectH = Property(float, _get_h, notify=rectHChanged)  # type: ignore[arg-type]

    def _get_resizable(self) -> bool:
        return bool(self._resizable)

    # Handles are only shown for free-form crops.
    resizable = Property(bool, _get_resizable, notify=resizableChanged)  # type: ignore[arg-type]

    # ---- internal mutation helpers (called by backend) ----
    def _set_active(self, value: bool) -> None:
        v = bool(value)
        if v == self._active:
            return
        self._active = v
        self.activeChanged.emit(v)

    def _set_mode(self, value: str) -> None:
        m = str(value)
        if m == self._mode:
            return
        self._mode = m
        self.modeChanged.emit(m)

    def _set_aspect(self, value: str) -> None:
        a = str(value)
        if a == self._aspect:
            return
        self._aspect = a
        self.aspectChanged.emit(a)

    def _set_resizable(self, value: bool) -> None:
        v = bool(value)
        if v == self._resizable:
            return
        self._resizable = v
        self.resizableChanged.emit(v)

    def _set_rect(self, rect: tuple[float, float, float, float] | None) -> None:
        has = rect is not None
        if has != self._has_rect:
            self._has_rect = has
            self.hasRectChanged.emit(has)
        if rect is None:
            return

        nx, ny, nw, nh = (float(v) for v in rect)
        if nx != self._x:
            self._x = nx
            self.rectXChanged.emit(nx)
        if ny != self._y:
            self._y = ny
            self.rectYChanged.emit(ny)
        if nw != self._w:
            self._w = nw
            self.rectWChanged.emit(nw)
        if nh != self._h:
            self._h = nh
            self.rectHChanged.emit(nh)

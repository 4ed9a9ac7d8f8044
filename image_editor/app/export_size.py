from __future__ import annotations

from image_editor.geometry import constrain_height, constrain_width, parse_dimension


class ExportSizeFields:
    """Width/height entry pair for export, with an optional aspect lock.

    ``max_w``/``max_h`` are the baked raster dimensions; the fields never
    exceed them and, when locked, keep the native aspect ratio.
    """

    def __init__(self, max_w: int = 0, max_h: int = 0, locked: bool = True) -> None:
        self.locked = bool(locked)
        self.max_w = 0
        self.max_h = 0
        self.width: int | None = None
        self.height: int | None = None
        self.set_native(max_w, max_h)

    @property
    def base_aspect(self) -> float:
        return self.max_w / self.max_h if self.max_h > 0 else 0.0

    def set_native(self, max_w: int, max_h: int) -> None:
        self.max_w = max(0, int(max_w))
        self.max_h = max(0, int(max_h))
        self.reset()

    def reset(self) -> None:
        if self.max_w > 0 and self.max_h > 0:
            self.width, self.height = self.max_w, self.max_h
        else:
            self.width = self.height = None

    def set_locked(self, locked: bool) -> None:
        self.locked = bool(locked)

    def set_width(self, raw: str | int | None) -> None:
        w = parse_dimension(raw)
        if w is None:
            self.width = None
            return
        w, h = constrain_width(w, max_w=self.max_w, max_h=self.max_h, base_aspect=self.base_aspect, locked=self.locked)
        self.width = w
        if h is not None:
            self.height = h

    def set_height(self, raw: str | int | None) -> None:
        h = parse_dimension(raw)
        if h is None:
            self.height = None
            return
        h, w = constrain_height(h, max_w=self.max_w, max_h=self.max_h, base_aspect=self.base_aspect, locked=self.locked)
        self.height = h
        if w is not None:
            self.width = w

    def target(self) -> tuple[int, int] | None:
        if not self.width or not self.height:
            return None
        return self.width, self.height

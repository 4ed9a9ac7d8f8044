from __future__ import annotations

import json
import os
from typing import Any

from .logger import get_logger

_logger = get_logger("settings")

EXPORT_FORMATS = ("png", "jpeg", "webp")


class SettingsManager:
    def __init__(self, settings_path: str):
        self.settings_path = settings_path
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "export_format": "png",
        "export_quality": 0.9,
        "export_lock_aspect": True,
        "default_crop_aspect": "free",
        "zoom_step": 0.1,
        "min_scale": 0.05,
        "max_scale": 8.0,
        "fit_margin": 0.9,
        "resize_jpeg_quality": 80,
    }

    def load(self) -> None:
        try:
            if os.path.exists(self.settings_path):
                with open(self.settings_path, encoding="utf-8") as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        self._settings = data
                        _logger.debug("settings loaded: %s", self.settings_path)
                        return
        except (OSError, ValueError) as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        try:
            parent = os.path.dirname(self.settings_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except OSError as e:
            _logger.error("settings save failed: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def has(self, key: str) -> bool:
        return key in self._settings

    def set(self, key: str, value: Any) -> None:
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    def get_float(self, key: str) -> float:
        """Return a numeric setting, falling back to the default when the stored value is unusable."""
        try:
            return float(self.get(key))
        except (TypeError, ValueError):
            _logger.warning("setting %s invalid: %r", key, self._settings.get(key))
            return float(self.DEFAULTS[key])

    @property
    def export_format(self) -> str:
        fmt = str(self.get("export_format") or "").lower()
        if fmt == "jpg":
            fmt = "jpeg"
        if fmt not in EXPORT_FORMATS:
            _logger.warning("saved export_format invalid: %s", fmt)
            return str(self.DEFAULTS["export_format"])
        return fmt

    @property
    def export_quality(self) -> float:
        return min(1.0, max(0.0, self.get_float("export_quality")))

    @property
    def export_lock_aspect(self) -> bool:
        return bool(self.get("export_lock_aspect"))

    @property
    def default_crop_aspect(self) -> str:
        return str(self.get("default_crop_aspect") or "free")

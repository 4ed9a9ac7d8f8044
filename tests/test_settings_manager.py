from __future__ import annotations

import json
from pathlib import Path

from image_editor.settings_manager import SettingsManager


def test_missing_file_uses_defaults(tmp_path: Path) -> None:
    sm = SettingsManager(str(tmp_path / "settings.json"))

    assert sm.export_format == "png"
    assert sm.export_quality == 0.9
    assert sm.export_lock_aspect is True
    assert sm.default_crop_aspect == "free"
    assert sm.get_float("max_scale") == 8.0
    assert not sm.has("export_format")


def test_set_persists_across_instances(tmp_path: Path) -> None:
    settings_path = tmp_path / "nested" / "settings.json"
    sm = SettingsManager(str(settings_path))
    sm.set("export_format", "webp")
    sm.set("default_crop_aspect", "16:9")

    reloaded = SettingsManager(str(settings_path))
    assert reloaded.export_format == "webp"
    assert reloaded.default_crop_aspect == "16:9"
    assert json.loads(settings_path.read_text(encoding="utf-8"))["export_format"] == "webp"


def test_corrupt_file_falls_back_to_defaults(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text("{not json", encoding="utf-8")

    sm = SettingsManager(str(settings_path))
    assert sm.data == {}
    assert sm.export_format == "png"


def test_export_format_is_normalized(tmp_path: Path) -> None:
    sm = SettingsManager(str(tmp_path / "settings.json"))
    sm.set("export_format", "JPG")
    assert sm.export_format == "jpeg"

    sm.set("export_format", "gif")
    assert sm.export_format == "png"


def test_numeric_settings_are_clamped_or_defaulted(tmp_path: Path) -> None:
    sm = SettingsManager(str(tmp_path / "settings.json"))
    sm.set("export_quality", 3)
    assert sm.export_quality == 1.0

    sm.set("export_quality", "loud")
    assert sm.export_quality == 0.9

    sm.set("zoom_step", "0.25")
    assert sm.get_float("zoom_step") == 0.25

import logging
import sys

import pytest

from image_editor import logger as ie_logger


def _stderr_handlers(base: logging.Logger) -> list[logging.Handler]:
    return [
        h
        for h in base.handlers
        if isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stderr
    ]


def _record(name: str) -> logging.LogRecord:
    return logging.LogRecord(name, logging.INFO, __file__, 1, "msg", None, None)


def test_setup_logger_idempotent_handlers(monkeypatch):
    """Calling setup_logger() repeatedly should leave exactly one stderr StreamHandler."""
    monkeypatch.delenv("IMAGE_EDITOR_LOG_CATS", raising=False)
    base = ie_logger.setup_logger(level=logging.DEBUG)
    _ = ie_logger.setup_logger(level=logging.DEBUG)

    assert len(_stderr_handlers(base)) == 1
    assert base.propagate is False


def test_env_level_overrides_argument(monkeypatch):
    monkeypatch.setenv("IMAGE_EDITOR_LOG_LEVEL", "debug")
    base = ie_logger.setup_logger(level=logging.WARNING)
    assert base.level == logging.DEBUG

    monkeypatch.setenv("IMAGE_EDITOR_LOG_LEVEL", "nonsense")
    base = ie_logger.setup_logger(level=logging.WARNING)
    assert base.level == logging.WARNING


def test_category_filter_matches_logger_suffix(monkeypatch):
    monkeypatch.delenv("IMAGE_EDITOR_LOG_LEVEL", raising=False)
    monkeypatch.setenv("IMAGE_EDITOR_LOG_CATS", "crop_session, encoder")
    base = ie_logger.setup_logger()
    (handler,) = _stderr_handlers(base)

    assert handler.filter(_record("image_editor.crop_session"))
    assert handler.filter(_record("image_editor.encoder"))
    assert not handler.filter(_record("image_editor.viewport"))

    monkeypatch.delenv("IMAGE_EDITOR_LOG_CATS")
    base = ie_logger.setup_logger()
    (handler,) = _stderr_handlers(base)
    assert handler.filter(_record("image_editor.viewport"))


@pytest.mark.parametrize("name", ["compositor", "crop_session"])
def test_get_logger_returns_child(name):
    child = ie_logger.get_logger(name)
    assert child.name == f"image_editor.{name}"
    assert ie_logger.get_logger() is logging.getLogger("image_editor")

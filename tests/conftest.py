"""Pytest configuration.

The backend tests build PySide6 QObjects (state objects with signals). Qt
wants a core application to exist before any QObject is created, so we
create a single `QCoreApplication` for the entire session as early as
possible and cleanly shut it down at the end.

The pure engine tests do not need Qt; when PySide6 is missing they still run.
"""

from __future__ import annotations

import os
from typing import Any

import numpy as np
import pytest

from image_editor.image_engine.raster import Raster

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QCoreApplication exists before collecting/running tests."""

    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

    # Import lazily so non-Qt environments can still import this conftest.
    try:
        from PySide6.QtCore import QCoreApplication
    except ImportError:
        return

    global _APP

    app = QCoreApplication.instance()
    if app is None:
        # Keep a strong ref so it isn't GC'd mid-session.
        _APP = QCoreApplication([])
    else:
        _APP = app


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    """Attempt a clean Qt shutdown to avoid lingering threads at interpreter exit."""

    try:
        from PySide6.QtCore import QCoreApplication
    except ImportError:
        return

    app = QCoreApplication.instance()
    if app is None:
        return

    app.quit()
    app.processEvents()


def gradient_raster(width: int, height: int) -> Raster:
    """Opaque raster where every pixel is distinct: R=x, G=y, B=(x+y)."""
    ys, xs = np.mgrid[0:height, 0:width]
    arr = np.empty((height, width, 4), dtype=np.uint8)
    arr[:, :, 0] = xs % 256
    arr[:, :, 1] = ys % 256
    arr[:, :, 2] = (xs + ys) % 256
    arr[:, :, 3] = 255
    return Raster(arr)


@pytest.fixture
def gradient() -> Raster:
    return gradient_raster(200, 100)

"""Crop package public API.

Pure crop engine: the interactive session state machine and the resolver
that maps a committed rect onto source pixels.

Important: keep this module lightweight.
Do NOT import Qt-bound state or backend modules here.
"""

from .resolver import DegenerateCropError, resolve, source_rect
from .session import (
    CropSession,
    PointerEvent,
    cancel_session,
    hit_test_handle,
    is_committable,
    seed_rect,
    set_aspect,
    start_session,
    transition,
)

__all__ = [
    "CropSession",
    "DegenerateCropError",
    "PointerEvent",
    "cancel_session",
    "hit_test_handle",
    "is_committable",
    "resolve",
    "seed_rect",
    "set_aspect",
    "source_rect",
    "start_session",
    "transition",
]

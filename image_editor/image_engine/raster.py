"""Immutable RGBA raster backed by a read-only numpy array."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

RGBA_CHANNELS = 4
_GRAY_DIMS = 2
_COLOR_DIMS = 3
_RGB_CHANNELS = 3


class Raster:
    """An owned (height, width, 4) uint8 RGBA grid.

    The backing array is never written after construction; every engine
    operation allocates a new Raster.
    """

    __slots__ = ("_pixels",)

    def __init__(self, pixels: np.ndarray) -> None:
        if pixels.ndim != _COLOR_DIMS or pixels.shape[2] != RGBA_CHANNELS:
            raise ValueError(f"expected (h, w, 4) RGBA array, got shape {pixels.shape}")
        if pixels.dtype != np.uint8:
            raise ValueError(f"expected uint8 samples, got {pixels.dtype}")
        if pixels.shape[0] < 1 or pixels.shape[1] < 1:
            raise ValueError(f"raster dimensions must be >= 1, got {pixels.shape[1]}x{pixels.shape[0]}")
        # Always own the samples so no outside reference can mutate them.
        arr = np.array(pixels, order="C", copy=True)
        arr.flags.writeable = False
        self._pixels = arr

    @classmethod
    def from_array(cls, arr: np.ndarray) -> Raster:
        """Build a raster from a gray, RGB or RGBA array (alpha defaults to opaque)."""
        a = np.asarray(arr)
        if a.dtype != np.uint8:
            a = np.clip(a, 0, 255).astype(np.uint8)
        if a.ndim == _GRAY_DIMS:
            a = np.repeat(a[:, :, None], _RGB_CHANNELS, axis=2)
        if a.ndim != _COLOR_DIMS:
            raise ValueError(f"unsupported array shape {a.shape}")
        if a.shape[2] == 1:
            a = np.repeat(a, _RGB_CHANNELS, axis=2)
        if a.shape[2] == _RGB_CHANNELS:
            alpha = np.full(a.shape[:2] + (1,), 255, dtype=np.uint8)
            a = np.concatenate([a, alpha], axis=2)
        return cls(a)

    @classmethod
    def solid(cls, width: int, height: int, rgba: Sequence[int] = (0, 0, 0, 255)) -> Raster:
        arr = np.empty((int(height), int(width), RGBA_CHANNELS), dtype=np.uint8)
        arr[...] = np.asarray(rgba, dtype=np.uint8)
        return cls(arr)

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def has_transparency(self) -> bool:
        return bool((self._pixels[:, :, 3] != 255).any())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Raster):
            return NotImplemented
        return self.size == other.size and np.array_equal(self._pixels, other._pixels)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Raster({self.width}x{self.height})"

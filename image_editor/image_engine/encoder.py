"""Export encoding of baked rasters (PNG / JPEG / WebP) via pyvips."""

from __future__ import annotations

from dataclasses import dataclass

from image_editor.logger import get_logger

from .raster import Raster
from .resampler import resample
from .vips_bridge import raster_to_vips

_logger = get_logger("encoder")

EXPORT_FORMATS = ("png", "jpeg", "webp")
MIME_TYPES = {"png": "image/png", "jpeg": "image/jpeg", "webp": "image/webp"}
_SUFFIXES = {"png": ".png", "jpeg": ".jpg", "webp": ".webp"}


@dataclass(frozen=True, slots=True)
class ExportOptions:
    format: str = "png"
    quality: float = 0.9
    width: int | None = None
    height: int | None = None

    def __post_init__(self) -> None:
        fmt = str(self.format).lower()
        if fmt == "jpg":
            fmt = "jpeg"
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"unsupported export format: {self.format!r}")
        object.__setattr__(self, "format", fmt)
        object.__setattr__(self, "quality", min(1.0, max(0.0, float(self.quality))))

    @property
    def target_size(self) -> tuple[int, int] | None:
        """Explicit output size, or None to export at native size."""
        if self.width and self.height and self.width > 0 and self.height > 0:
            return int(self.width), int(self.height)
        return None

    @property
    def mime_type(self) -> str:
        return MIME_TYPES[self.format]


def quality_to_q(quality: float) -> int:
    return max(1, min(100, round(float(quality) * 100)))


def export_filename(fmt: str, stem: str = "edited-image") -> str:
    return f"{stem}.{ExportOptions(format=fmt).format}"


def encode_raster(raster: Raster, fmt: str = "png", quality: float = 0.9) -> bytes:
    """Encode ``raster`` as-is. PNG ignores ``quality`` and is byte-stable for equal pixels."""
    opts = ExportOptions(format=fmt, quality=quality)
    img = raster_to_vips(raster)
    suffix = _SUFFIXES[opts.format]
    if opts.format == "png":
        out = img.write_to_buffer(suffix)
    elif opts.format == "jpeg":
        # JPEG has no alpha; transparent samples go to black like a browser canvas.
        if img.hasalpha():
            img = img.flatten(background=[0, 0, 0]).cast("uchar")
        out = img.write_to_buffer(suffix, Q=quality_to_q(opts.quality))
    else:
        out = img.write_to_buffer(suffix, Q=quality_to_q(opts.quality))
    # Normalize to bytes in case pyvips returns a memoryview-like object
    return out if isinstance(out, bytes) else bytes(out)


def export_raster(baked: Raster, options: ExportOptions) -> bytes:
    """Resample (cover-fit) when a target size is given, then encode."""
    target = options.target_size
    raster = resample(baked, *target) if target else baked
    data = encode_raster(raster, options.format, options.quality)
    _logger.info(
        "export: %s -> %s %dx%d (%d bytes)", baked, options.format, raster.width, raster.height, len(data)
    )
    return data

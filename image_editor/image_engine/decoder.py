"""Image decoding into Rasters using pyvips.

Format sniffing happens here, at the ingestion boundary; the rest of the
engine only ever sees decoded Rasters.
"""

from __future__ import annotations

from image_editor.logger import get_logger

from .data_url import parse_data_url
from .raster import Raster
from .vips_bridge import get_pyvips_module, vips_to_raster

_logger = get_logger("decoder")


class UnsupportedImageError(ValueError):
    pass


def is_image_mime(mime: str | None) -> bool:
    return bool(mime) and str(mime).lower().startswith("image/")


def decode_bytes(data: bytes, mime: str | None = None) -> Raster:
    """Decode encoded image bytes into an RGBA Raster.

    Raises UnsupportedImageError for non-image MIME types or undecodable data.
    """
    if mime is not None and not is_image_mime(mime):
        raise UnsupportedImageError(f"not an image type: {mime!r}")
    if not data:
        raise UnsupportedImageError("empty image data")
    pyvips = get_pyvips_module()
    try:
        image = pyvips.Image.new_from_buffer(data, "")
        # Orientation tags are applied up front so the raster is upright.
        image = image.autorot()
        raster = vips_to_raster(image)
    except pyvips.Error as e:
        _logger.debug("decode failed: %s", e)
        raise UnsupportedImageError(f"could not decode image: {e}") from e
    _logger.debug("decoded %s (%d bytes, mime=%s)", raster, len(data), mime)
    return raster


def decode_data_url(url: str) -> Raster:
    mime, data = parse_data_url(url)
    return decode_bytes(data, mime)


def decode_image(file_path: str) -> tuple[str, Raster | None, str | None]:
    """Decode an image file into a Raster.

    Returns (path, raster|None, error|None).
    """
    try:
        with open(file_path, "rb") as f:
            data = f.read()
        return file_path, decode_bytes(data), None
    except (OSError, UnsupportedImageError) as e:
        _logger.debug("decode failed: %s", e)
        return file_path, None, str(e)

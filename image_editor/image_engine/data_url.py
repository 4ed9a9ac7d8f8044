"""``data:image/...;base64,`` URL codec used at the ingestion and remote boundaries."""

from __future__ import annotations

import base64
import binascii
import re

_DATA_URL_RE = re.compile(r"^data:(image/[\w.+-]+);base64,(.*)$", re.DOTALL)


class InvalidDataUrlError(ValueError):
    pass


def parse_data_url(url: str) -> tuple[str, bytes]:
    """Split an image data URL into (mime, payload bytes)."""
    m = _DATA_URL_RE.match(url or "")
    if m is None:
        raise InvalidDataUrlError("expected a base64 image data URL")
    mime, payload = m.group(1), m.group(2).strip()
    if not payload:
        raise InvalidDataUrlError("data URL has no payload")
    try:
        return mime, base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidDataUrlError(f"invalid base64 payload: {e}") from e


def to_data_url(data: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"

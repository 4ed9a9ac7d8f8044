"""Server-side service boundaries: AI image edit and JPEG size reduction.

Both services take and return JSON-shaped payloads (camelCase keys, image
data URLs) so they can sit behind any HTTP framework. They catch failures
at this edge only and answer with a status-coded response.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from image_editor.image_engine.data_url import parse_data_url, to_data_url
from image_editor.image_engine.decoder import decode_bytes
from image_editor.image_engine.encoder import encode_raster
from image_editor.logger import get_logger

_logger = get_logger("remote")

AI_EDIT_MODEL = "google/nano-banana"
DEFAULT_RESIZE_QUALITY = 80


class RemoteServiceError(Exception):
    """A remote service answered with a non-success status."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"{status}: {message}")
        self.status = int(status)
        self.message = str(message)


class InferenceBackend(Protocol):
    """Runs an image-to-image model and returns the encoded output image."""

    def run(self, image_data_url: str, prompt: str) -> bytes: ...


@dataclass(frozen=True, slots=True)
class AiEditRequest:
    image_data_url: str
    prompt: str

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> AiEditRequest:
        data = payload or {}
        return cls(str(data.get("imageDataUrl") or ""), str(data.get("prompt") or ""))


@dataclass(frozen=True, slots=True)
class AiEditResponse:
    success: bool
    edited_image: str | None = None
    original_image: str | None = None
    error: str | None = None
    status: int = 200

    def to_json(self) -> dict[str, Any]:
        if not self.success:
            return {"error": self.error}
        return {"success": True, "editedImage": self.edited_image, "originalImage": self.original_image}


@dataclass(frozen=True, slots=True)
class ResizeResponse:
    image: str | None = None
    original_size: int = 0
    resized_size: int = 0
    error: str | None = None
    status: int = 200

    @property
    def success(self) -> bool:
        return self.status == 200

    def to_json(self) -> dict[str, Any]:
        if not self.success:
            return {"error": self.error}
        return {
            "image": self.image,
            "sizeComparison": {"original": self.original_size, "resized": self.resized_size},
        }


class AiEditService:
    """Prompt-driven image edit through an injected inference backend."""

    def __init__(self, backend: InferenceBackend, model: str = AI_EDIT_MODEL) -> None:
        self._backend = backend
        self.model = model

    def handle(self, payload: Mapping[str, Any] | AiEditRequest | None) -> AiEditResponse:
        req = payload if isinstance(payload, AiEditRequest) else AiEditRequest.from_payload(payload)
        if not req.image_data_url or not req.prompt:
            return AiEditResponse(False, error="image and prompt are required", status=400)

        _, sep, b64 = req.image_data_url.partition(",")
        if not sep or not b64:
            return AiEditResponse(False, error="invalid image format", status=400)

        try:
            output = self._backend.run(req.image_data_url, req.prompt)
        except Exception as e:
            _logger.error("AI editing error (%s): %s", self.model, e, exc_info=True)
            return AiEditResponse(False, error="image processing failed", status=500)

        # The model emits JPEG.
        edited = to_data_url(output, "image/jpeg")
        _logger.info("AI edit done (%s): %d bytes", self.model, len(output))
        return AiEditResponse(True, edited_image=edited, original_image=req.image_data_url)


class ResizeService:
    """Re-encode an image as JPEG to shrink its payload."""

    def __init__(self, quality: int = DEFAULT_RESIZE_QUALITY) -> None:
        self.quality = max(1, min(100, int(quality)))

    def handle(self, payload: Mapping[str, Any] | None) -> ResizeResponse:
        image = str((payload or {}).get("image") or "")
        if not image:
            return ResizeResponse(error="Image is required", status=400)

        try:
            mime, data = parse_data_url(image)
            raster = decode_bytes(data, mime)
            out = encode_raster(raster, "jpeg", self.quality / 100)
        except Exception as e:
            _logger.error("resize failed: %s", e, exc_info=True)
            return ResizeResponse(error="Internal Server Error", status=500)

        _logger.info("resize: %d -> %d bytes (q=%d)", len(data), len(out), self.quality)
        return ResizeResponse(
            image=to_data_url(out, "image/jpeg"),
            original_size=len(data),
            resized_size=len(out),
        )

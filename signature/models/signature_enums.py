# signature/models/signature_enums.py
from __future__ import annotations
from enum import Enum
from typing import Optional


class CapturePath(str, Enum):
    """How a signature value was acquired."""
    DRAW = "draw"
    UPLOAD = "upload"
    SAVED = "saved"


class CaptureState(str, Enum):
    OPEN = "open"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


class ImageFormat(str, Enum):
    """Raster formats accepted for uploaded signatures (Pillow format names)."""
    PNG = "PNG"
    JPEG = "JPEG"
    GIF = "GIF"
    WEBP = "WEBP"

    @property
    def mime_type(self) -> str:
        return f"image/{self.value.lower()}"

    @property
    def extension(self) -> str:
        return self.value.lower()

    @classmethod
    def from_mime_type(cls, mime_type: str) -> Optional["ImageFormat"]:
        for fmt in cls:
            if fmt.mime_type == (mime_type or "").strip().lower():
                return fmt
        return None

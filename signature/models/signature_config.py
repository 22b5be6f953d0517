# signature/models/signature_config.py
from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class SignatureConfig:
    """
    Capture parameters. Defaults mirror the [Signature] section of the
    shipped configuration; see ``from_settings``.
    """
    stroke_width: int = 3
    canvas_width: int = 800
    canvas_height: int = 220
    max_upload_bytes: int = 5 * 1024 * 1024

    @classmethod
    def from_settings(cls, settings) -> "SignatureConfig":
        return cls(
            stroke_width=int(settings.stroke_width),
            canvas_width=int(settings.canvas_width),
            canvas_height=int(settings.canvas_height),
            max_upload_bytes=int(settings.max_upload_bytes),
        )

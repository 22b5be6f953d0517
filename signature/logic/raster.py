# signature/logic/raster.py
"""
Raster helpers shared by capture, library and PDF export.

Signature values travel as data URLs (``data:image/png;base64,...``) so a
field value is a plain string that can be stored in a JSON column and
compared byte for byte.
"""
from __future__ import annotations

import base64
import binascii
import io
from typing import Optional, Sequence, Tuple

from PIL import Image, ImageDraw, UnidentifiedImageError

from ..models.signature_enums import ImageFormat

Stroke = Sequence[Tuple[int, int]]

_DATA_URL_PREFIX = "data:"


# -------- Canvas strokes -> PNG ---------------------------------------------
def render_png_from_strokes(strokes: Sequence[Stroke], size: Tuple[int, int], stroke_width: int) -> bytes:
    """
    Convert freehand strokes (canvas coordinates) into a transparent PNG.
    Single-point strokes are drawn as dots so a tap stays visible.
    """
    w, h = size
    img = Image.new("RGBA", (w, h), (0, 0, 0, 0))
    drw = ImageDraw.Draw(img)
    width = max(1, int(stroke_width))
    for poly in strokes:
        pts = [(int(x), int(y)) for x, y in poly]
        if len(pts) >= 2:
            drw.line(pts, fill=(0, 0, 0, 255), width=width, joint="curve")
        elif len(pts) == 1:
            x, y = pts[0]
            r = width / 2
            drw.ellipse((x - r, y - r, x + r, y + r), fill=(0, 0, 0, 255))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def is_blank_png(png_bytes: bytes) -> bool:
    """True if the image has no visible (non-transparent) pixel."""
    with Image.open(io.BytesIO(png_bytes)) as img:
        alpha = img.convert("RGBA").getchannel("A")
        return alpha.getbbox() is None


# -------- Format sniffing ---------------------------------------------------
def sniff_image_format(data: bytes) -> Optional[ImageFormat]:
    """Return the raster format of *data*, or None if it is not an accepted image."""
    if not data:
        return None
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        return None
    try:
        return ImageFormat(fmt)
    except ValueError:
        return None


# -------- Data URLs ---------------------------------------------------------
def to_data_url(data: bytes, fmt: ImageFormat = ImageFormat.PNG) -> str:
    return f"{_DATA_URL_PREFIX}{fmt.mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def is_image_data_url(value: Optional[str]) -> bool:
    return bool(value) and value.startswith(f"{_DATA_URL_PREFIX}image/")


def decode_data_url(value: str) -> Tuple[str, bytes]:
    """
    Split a base64 data URL into (mime_type, payload bytes).

    Raises ValueError for anything that is not a base64 data URL.
    """
    if not value or not value.startswith(_DATA_URL_PREFIX) or "," not in value:
        raise ValueError("Not a data URL.")
    header, payload = value[len(_DATA_URL_PREFIX):].split(",", 1)
    parts = header.split(";")
    if "base64" not in parts[1:]:
        raise ValueError("Only base64 data URLs are supported.")
    try:
        return parts[0], base64.b64decode(payload, validate=True)
    except binascii.Error as ex:
        raise ValueError(f"Invalid base64 payload: {ex}") from ex

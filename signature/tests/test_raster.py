"""Raster helpers: stroke rendering, sniffing and data URLs."""
from __future__ import annotations

import io

import pytest
from PIL import Image

from signature.logic.raster import (
    decode_data_url,
    is_blank_png,
    is_image_data_url,
    render_png_from_strokes,
    sniff_image_format,
    to_data_url,
)
from signature.models.signature_enums import ImageFormat
from signature.tests.conftest import image_bytes


def test_render_strokes_is_transparent_png_of_canvas_size():
    png = render_png_from_strokes([[(10, 10), (90, 40)]], size=(100, 50), stroke_width=3)
    with Image.open(io.BytesIO(png)) as img:
        assert img.format == "PNG"
        assert img.size == (100, 50)
        assert img.mode == "RGBA"
        assert img.getpixel((0, 49))[3] == 0
    assert not is_blank_png(png)


def test_no_strokes_renders_blank():
    assert is_blank_png(render_png_from_strokes([], size=(40, 20), stroke_width=3))


@pytest.mark.parametrize("fmt", ["PNG", "JPEG", "GIF", "WEBP"])
def test_sniff_accepts_raster_formats(fmt):
    assert sniff_image_format(image_bytes(fmt)) == ImageFormat(fmt)


@pytest.mark.parametrize("data", [b"", b"%PDF-1.7 ...", b"<svg xmlns='http://www.w3.org/2000/svg'/>"])
def test_sniff_rejects_non_raster(data):
    assert sniff_image_format(data) is None


def test_data_url_round_trip_is_byte_identical():
    raw = image_bytes("JPEG")
    url = to_data_url(raw, ImageFormat.JPEG)
    assert url.startswith("data:image/jpeg;base64,")
    assert is_image_data_url(url)
    assert decode_data_url(url) == ("image/jpeg", raw)


@pytest.mark.parametrize("value", ["", "hello", "data:image/png,plain", "data:image/png;base64,@@@"])
def test_decode_rejects_malformed_data_urls(value):
    with pytest.raises(ValueError):
        decode_data_url(value)

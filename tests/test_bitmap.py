import io

import pytest
from PIL import Image

from pixelpop.bitmap import (
    Bitmap,
    PixelSample,
    decode,
    decode_resized,
    image_dimensions,
    is_animated,
    is_png,
    to_png,
)
from pixelpop.errors import DecodeFailure

from helpers import gif_bytes, png_bytes


def test_decode_reads_rgba():
    bitmap = decode(png_bytes((3, 2), (10, 20, 30, 40)))
    assert (bitmap.width, bitmap.height) == (3, 2)
    assert bitmap.pixel(2, 1) == PixelSample(10, 20, 30, 40)


def test_decode_converts_rgb_to_opaque_rgba():
    buf = io.BytesIO()
    Image.new("RGB", (2, 2), (5, 6, 7)).save(buf, format="PNG")
    assert decode(buf.getvalue()).pixel(0, 0) == PixelSample(5, 6, 7, 255)


def test_decode_resized_has_exact_size():
    bitmap = decode_resized(png_bytes((100, 50)), 80, 40)
    assert (bitmap.width, bitmap.height) == (80, 40)
    assert len(bitmap.data) == 80 * 40 * 4


def test_decode_rejects_garbage():
    with pytest.raises(DecodeFailure):
        decode(b"\x00\x01\x02")


def test_bitmap_checks_buffer_size():
    with pytest.raises(ValueError):
        Bitmap(2, 2, b"\x00" * 15)


def test_image_dimensions():
    assert image_dimensions(png_bytes((7, 3))) == (7, 3)
    assert image_dimensions(b"garbage") is None


def test_to_png_passes_png_through():
    data = png_bytes()
    assert is_png(data)
    assert to_png(data) == data


def test_to_png_reencodes_gif():
    assert is_png(to_png(gif_bytes()))


def test_is_animated():
    assert is_animated(gif_bytes())
    assert not is_animated(gif_bytes(colors=((1, 2, 3),)))
    assert not is_animated(png_bytes())
    assert not is_animated(b"garbage")

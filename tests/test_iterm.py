import base64

import pytest

from pixelpop import iterm
from pixelpop.errors import DecodeFailure

from helpers import png_bytes


def test_inline_image_sequence():
    data = png_bytes()
    out = iterm.encode(data, "50%", "100%")
    assert out == (
        "\033]1337;File=inline=1;width=50%;height=100%:"
        + base64.b64encode(data).decode("ascii")
        + "\007"
    )


def test_sizes_are_optional():
    out = iterm.encode(png_bytes())
    assert out.startswith("\033]1337;File=inline=1:")


def test_numbers_and_aspect_flag():
    out = iterm.encode(png_bytes(), 40.0, 10, preserve_aspect_ratio=False)
    assert out.startswith("\033]1337;File=inline=1;width=40;height=10;preserveAspectRatio=0:")


def test_rejects_non_images():
    with pytest.raises(DecodeFailure):
        iterm.encode(b"nope")

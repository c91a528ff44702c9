"""
iTerm2 inline image protocol.

    OSC 1337 ; File=inline=1;width=W;height=H : <base64 data> BEL

Width and height are handed to the terminal untouched; iTerm2 understands
plain cell counts as well as percentages. The terminal decodes the file
itself, which also makes it play animated GIFs natively.
"""

import base64

from .bitmap import image_dimensions
from .errors import DecodeFailure


def _size_arg(value) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def encode(image_bytes: bytes, width=None, height=None, preserve_aspect_ratio: bool = True) -> str:
    if image_dimensions(image_bytes) is None:
        raise DecodeFailure("not a decodable image")

    args = "inline=1"
    if width:
        args += f";width={_size_arg(width)}"
    if height:
        args += f";height={_size_arg(height)}"
    if not preserve_aspect_ratio:
        args += ";preserveAspectRatio=0"

    encoded = base64.standard_b64encode(bytes(image_bytes)).decode("ascii")
    return f"\033]1337;File={args}:{encoded}\007"

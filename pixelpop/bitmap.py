"""
Bitmap decoding and resizing on top of Pillow.
"""

from io import BytesIO
from typing import NamedTuple, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from .errors import DecodeFailure

PNG_SIGNATURE = b"\x89PNG"


class PixelSample(NamedTuple):
    r: int
    g: int
    b: int
    a: int


class Bitmap:
    """A decoded RGBA grid, stored row-major, 4 bytes per pixel."""

    __slots__ = ("width", "height", "data")

    def __init__(self, width: int, height: int, data: bytes):
        if len(data) != width * height * 4:
            raise ValueError(f"expected {width * height * 4} bytes of RGBA data, got {len(data)}")
        self.width = width
        self.height = height
        self.data = data

    @classmethod
    def from_image(cls, image: Image.Image) -> "Bitmap":
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls(image.width, image.height, image.tobytes())

    def pixel(self, x: int, y: int) -> PixelSample:
        i = (y * self.width + x) * 4
        return PixelSample(*self.data[i:i + 4])

    def __repr__(self):
        return f"Bitmap({self.width}x{self.height})"


def is_png(data: bytes) -> bool:
    return bytes(data[:4]) == PNG_SIGNATURE


def _open(data: bytes) -> Image.Image:
    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise DecodeFailure(f"cannot decode image: {e}") from e
    return image


def image_dimensions(data: bytes) -> Optional[Tuple[int, int]]:
    """Read (width, height) from the image header without decoding pixels."""
    try:
        with Image.open(BytesIO(data)) as image:
            return image.size
    except (UnidentifiedImageError, OSError):
        return None


def is_animated(data: bytes) -> bool:
    try:
        with Image.open(BytesIO(data)) as image:
            return bool(getattr(image, 'is_animated', False))
    except (UnidentifiedImageError, OSError):
        return False


def decode(data: bytes) -> Bitmap:
    with _open(data) as image:
        return Bitmap.from_image(image)


def decode_resized(data: bytes, width: int, height: int) -> Bitmap:
    """Decode and resize to exactly width x height pixels."""
    with _open(data) as image:
        rgba = image.convert("RGBA")
        if rgba.size != (width, height):
            rgba = rgba.resize((width, height), Image.Resampling.LANCZOS)
        return Bitmap.from_image(rgba)


def to_png(data: bytes) -> bytes:
    """Return the bytes as PNG, re-encoding only when they are something else."""
    if is_png(data):
        return bytes(data)
    with _open(data) as image:
        if image.mode not in ("RGB", "RGBA", "L", "LA", "P"):
            image = image.convert("RGBA")
        buf = BytesIO()
        image.save(buf, format="PNG")
        return buf.getvalue()

"""
Half-block ANSI encoder: two image rows per terminal row, 24-bit color.
"""

from typing import List, Tuple

from .bitmap import Bitmap
from .terminal import TerminalCapabilities, TerminalKind

UPPER_HALF = "▀"
LOWER_HALF = "▄"
BLANK = " "

# Alpha below this is transparent on terminals that blank out transparency
BLANK_ALPHA_THRESHOLD = 128
# Alpha below this is drawn as if fully transparent
NEAR_TRANSPARENT_ALPHA = 50

RGB = Tuple[int, int, int]


def fg(rgb: RGB, text: str) -> str:
    r, g, b = rgb
    return f"\033[38;2;{r};{g};{b}m{text}\033[39m"


def bg(rgb: RGB, text: str) -> str:
    r, g, b = rgb
    return f"\033[48;2;{r};{g};{b}m{text}\033[49m"


def render_cell(top, bottom, capabilities: TerminalCapabilities) -> str:
    """Render one terminal cell from two vertically stacked RGBA samples."""
    r, g, b, a = top
    r2, g2, b2, a2 = bottom

    if capabilities.use_blank_for_transparency and (a < BLANK_ALPHA_THRESHOLD or a2 < BLANK_ALPHA_THRESHOLD):
        return BLANK
    if a == 0 and a2 == 0:
        return BLANK
    if a < NEAR_TRANSPARENT_ALPHA:
        return fg((r2, g2, b2), UPPER_HALF)
    if a2 < NEAR_TRANSPARENT_ALPHA:
        return fg((r, g, b), LOWER_HALF)
    if capabilities.kind is TerminalKind.WINDOWS_TERMINAL:
        # Windows Terminal misdraws background colors under the lower half
        # block; paint the top pixel as foreground instead.
        return bg((r2, g2, b2), fg((r, g, b), UPPER_HALF))
    return bg((r, g, b), fg((r2, g2, b2), LOWER_HALF))


def encode(bitmap: Bitmap, capabilities: TerminalCapabilities) -> List[str]:
    """Encode a bitmap into text lines. A trailing unpaired row is dropped."""
    lines = []
    width = bitmap.width
    data = bitmap.data
    stride = width * 4

    for y in range(0, bitmap.height - 1, 2):
        top_row = y * stride
        bottom_row = top_row + stride
        cells = []
        for x in range(width):
            i = x * 4
            top = data[top_row + i:top_row + i + 4]
            bottom = data[bottom_row + i:bottom_row + i + 4]
            cells.append(render_cell(top, bottom, capabilities))
        lines.append("".join(cells))

    return lines

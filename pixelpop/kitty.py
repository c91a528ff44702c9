"""
Kitty graphics protocol encoder (also understood by WezTerm and Konsole).

The image travels as base64 PNG data split over APC escape sequences:

    ESC _ G <control>,m=1 ; <chunk> ESC \\
    ESC _ G m=1 ; <chunk> ESC \\
    ...
    ESC _ G m=0 ; <chunk> ESC \\

Only the first chunk carries the control keys (f=100: PNG, a=T: transmit
and display, c/r: size in cells). ``m`` says whether more chunks follow.
"""

import base64
from typing import List, Optional, Tuple

from .bitmap import image_dimensions, to_png
from .dimensions import CellBudget, DimensionRequest, resolve_cell_budget
from .errors import DecodeFailure

CHUNK_SIZE = 4096

# Terminal cells are roughly twice as tall as they are wide
CELL_ASPECT_RATIO = 0.5


def split_payload(payload: str, size: int = CHUNK_SIZE) -> List[str]:
    return [payload[i:i + size] for i in range(0, len(payload), size)]


def control_data(columns: Optional[float] = None, rows: Optional[float] = None) -> str:
    control = "f=100,a=T"
    if columns and columns > 0:
        control += f",c={round(columns)}"
    if rows and rows > 0:
        control += f",r={round(rows)}"
    return control


def build_chunks(payload: str, control: str) -> List[str]:
    """Frame a base64 payload as a list of escape sequences, in send order."""
    chunks = split_payload(payload)
    if not chunks:
        raise DecodeFailure("empty image payload")

    out = []
    last = len(chunks) - 1
    for index, chunk in enumerate(chunks):
        more = 0 if index == last else 1
        if index == 0:
            out.append(f"\033_G{control},m={more};{chunk}\033\\")
        else:
            out.append(f"\033_Gm={more};{chunk}\033\\")
    return out


def frame(png: bytes, columns: Optional[float] = None, rows: Optional[float] = None) -> List[str]:
    """Transmission chunks for PNG bytes sized to the given cells."""
    payload = base64.standard_b64encode(png).decode("ascii")
    return build_chunks(payload, control_data(columns, rows))


def choose_axes(
    image_size: Optional[Tuple[int, int]],
    budget: CellBudget,
    preserve_aspect_ratio: bool,
) -> Tuple[Optional[int], Optional[int]]:
    """Pick which of columns/rows to send.

    With aspect ratio preservation only one axis is sent and the terminal
    derives the other, so the image stays inside the budget.
    """
    if not preserve_aspect_ratio:
        return budget.columns, budget.rows
    if not image_size or not image_size[0] or not image_size[1]:
        return budget.columns, None

    image_ratio = image_size[0] / image_size[1]
    budget_ratio = budget.columns * CELL_ASPECT_RATIO / budget.rows
    if image_ratio > budget_ratio:
        return budget.columns, None
    return None, budget.rows


def encode(image_bytes: bytes, budget: CellBudget, preserve_aspect_ratio: bool = True) -> List[str]:
    """Encode an image into transmission chunks.

    Everything is built before anything is returned, so a decode failure
    never leaves a half-sent image behind.
    """
    png = to_png(image_bytes)
    columns, rows = choose_axes(image_dimensions(image_bytes), budget, preserve_aspect_ratio)
    return frame(png, columns, rows)


def render(image_bytes: bytes, request: DimensionRequest, terminal_columns: int, terminal_rows: int) -> str:
    budget = resolve_cell_budget(request, terminal_columns, terminal_rows)
    return "".join(encode(image_bytes, budget, request.preserve_aspect_ratio))

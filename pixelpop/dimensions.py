"""
Width/height negotiation between the requested size, the image and the terminal.

Dimension values are either numbers (already in the target unit) or
percentage strings such as ``"50%"`` which are taken relative to the
terminal's columns or rows.
"""

import math
from dataclasses import dataclass
from typing import Optional, Union

from .errors import InvalidDimensionValue

DimensionValue = Union[int, float, str]

# Rows left free below the image for the shell prompt
ROW_OFFSET = 2

# Margins kept clear by the binary graphics protocol path
PROTOCOL_COLUMN_MARGIN = 2
PROTOCOL_ROW_MARGIN = 4


@dataclass(frozen=True)
class DimensionRequest:
    width: Optional[DimensionValue] = None
    height: Optional[DimensionValue] = None
    preserve_aspect_ratio: bool = True


@dataclass(frozen=True)
class ResolvedDimensions:
    """Target size in image pixels for the half-block path.

    One pixel maps to one column horizontally, two pixels map to one row.
    """

    width: int
    height: int

    @property
    def columns(self) -> int:
        return self.width

    @property
    def rows(self) -> int:
        return self.height // 2


@dataclass(frozen=True)
class CellBudget:
    """Columns/rows available to the binary graphics protocol."""

    columns: int
    rows: int


def _round(value: float) -> int:
    # Half-up, not banker's rounding
    return math.floor(value + 0.5)


def parse_dimension_value(value: DimensionValue, percentage_base: int) -> float:
    """Turn a number or ``"N%"`` string into a value in the base's unit.

    Percentages must lie in (0, 100]; the result is floored.
    """
    if isinstance(value, bool):
        raise InvalidDimensionValue(value)
    if isinstance(value, (int, float)):
        if not math.isfinite(value) or value <= 0:
            raise InvalidDimensionValue(value)
        return value
    if isinstance(value, str) and value.endswith("%"):
        try:
            percentage = float(value[:-1])
        except ValueError:
            raise InvalidDimensionValue(value) from None
        if math.isfinite(percentage) and 0 < percentage <= 100:
            return math.floor(percentage / 100 * percentage_base)
    raise InvalidDimensionValue(value)


def contain_fit(width: float, height: float, original_width: float, original_height: float):
    """Scale the original size to fit inside width x height, keeping its aspect ratio."""
    original_ratio = original_width / original_height
    if width / height > original_ratio:
        factor = height / original_height
    else:
        factor = width / original_width
    return factor * original_width, factor * original_height


def resolve(
    image_width: int,
    image_height: int,
    request: DimensionRequest,
    terminal_columns: int,
    terminal_rows: int,
) -> ResolvedDimensions:
    """Compute the pixel size to resize an image to before half-block encoding."""
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"image size must be positive, got {image_width}x{image_height}")

    columns = max(1, terminal_columns)
    rows = max(1, terminal_rows - ROW_OFFSET)
    input_width, input_height = request.width, request.height

    if input_width is not None and input_height is not None:
        width = parse_dimension_value(input_width, columns)
        height = parse_dimension_value(input_height, rows) * 2
        if request.preserve_aspect_ratio and width > 0 and height > 0:
            width, height = contain_fit(width, height, image_width, image_height)
    elif input_width is not None:
        width = parse_dimension_value(input_width, columns)
        height = image_height * width / image_width
    elif input_height is not None:
        height = parse_dimension_value(input_height, rows) * 2
        width = image_width * height / image_height
    else:
        width, height = contain_fit(columns, rows * 2, image_width, image_height)

    if width > columns:
        width, height = contain_fit(columns, rows * 2, image_width, image_height)

    return ResolvedDimensions(width=max(1, _round(width)), height=max(1, _round(height)))


def _budget_axis(value: Optional[DimensionValue], base: int) -> int:
    if value is None:
        return base
    parsed = parse_dimension_value(value, base)
    if isinstance(value, str):
        return int(parsed)
    return _round(min(parsed, base))


def resolve_cell_budget(request: DimensionRequest, terminal_columns: int, terminal_rows: int) -> CellBudget:
    """Column/row budget for the binary protocol, with its own margins."""
    columns = max(1, terminal_columns - PROTOCOL_COLUMN_MARGIN)
    rows = max(1, terminal_rows - PROTOCOL_ROW_MARGIN)
    return CellBudget(
        columns=_budget_axis(request.width, columns),
        rows=_budget_axis(request.height, rows),
    )

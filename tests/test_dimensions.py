import pytest

from pixelpop.dimensions import (
    CellBudget,
    DimensionRequest,
    ResolvedDimensions,
    contain_fit,
    parse_dimension_value,
    resolve,
    resolve_cell_budget,
)
from pixelpop.errors import InvalidDimensionValue


def test_default_request_contain_fits_terminal():
    # 80x24 terminal leaves 22 rows, i.e. an 80x44 pixel budget
    dims = resolve(100, 50, DimensionRequest(), 80, 24)
    assert dims == ResolvedDimensions(width=80, height=40)
    assert dims.rows == 20


def test_full_percentages_match_default():
    request = DimensionRequest("100%", "100%", preserve_aspect_ratio=True)
    assert resolve(100, 50, request, 80, 24) == ResolvedDimensions(80, 40)


def test_tall_image_is_height_bound():
    dims = resolve(50, 100, DimensionRequest(), 80, 24)
    assert dims == ResolvedDimensions(width=22, height=44)


def test_width_only_keeps_image_aspect_ratio():
    assert resolve(100, 50, DimensionRequest(width=40), 80, 24) == ResolvedDimensions(40, 20)


def test_height_only_counts_rows():
    assert resolve(100, 50, DimensionRequest(height=10), 80, 24) == ResolvedDimensions(40, 20)


def test_both_without_aspect_ratio_stretches():
    request = DimensionRequest("50%", "50%", preserve_aspect_ratio=False)
    assert resolve(100, 50, request, 80, 24) == ResolvedDimensions(40, 22)


def test_both_with_aspect_ratio_uses_tighter_axis():
    request = DimensionRequest("100%", "100%", preserve_aspect_ratio=True)
    assert resolve(100, 100, request, 80, 24) == ResolvedDimensions(44, 44)


def test_width_overflow_is_clamped_with_image_ratio():
    assert resolve(100, 50, DimensionRequest(width=200), 80, 24) == ResolvedDimensions(80, 40)


def test_stretched_overflow_clamp_uses_original_image_ratio():
    request = DimensionRequest(width=160, height=5, preserve_aspect_ratio=False)
    assert resolve(100, 100, request, 80, 24) == ResolvedDimensions(44, 44)


def test_percentages_are_floored():
    request = DimensionRequest(width="33%", preserve_aspect_ratio=True)
    # floor(0.33 * 80) = 26
    assert resolve(100, 100, request, 80, 24).width == 26


def test_rounding_happens_last():
    # 26.4 x 13.2 before rounding
    dims = resolve(1000, 500, DimensionRequest(width=26.4), 80, 24)
    assert dims == ResolvedDimensions(26, 13)


def test_rounds_half_up():
    assert resolve(2, 1, DimensionRequest(width=5), 80, 24) == ResolvedDimensions(5, 3)


@pytest.mark.parametrize("percentage", [0.5, 1, 12.5, 33.3, 50, 99.9, 100])
@pytest.mark.parametrize("image", [(100, 50), (50, 100), (1, 1), (1920, 1080), (3, 1000)])
def test_percentages_always_produce_positive_in_bounds_sizes(percentage, image):
    value = f"{percentage}%"
    for request in (
        DimensionRequest(value, value, True),
        DimensionRequest(value, value, False),
        DimensionRequest(width=value),
        DimensionRequest(height=value),
    ):
        dims = resolve(image[0], image[1], request, 80, 24)
        assert dims.width > 0
        assert dims.height > 0
        assert dims.width <= 80


@pytest.mark.parametrize("image", [(100, 50), (50, 100), (640, 480), (30, 30)])
def test_resolving_resolved_dimensions_is_idempotent(image):
    first = resolve(image[0], image[1], DimensionRequest(), 80, 24)
    again = resolve(
        image[0], image[1], DimensionRequest(first.width, first.rows, preserve_aspect_ratio=False), 80, 24
    )
    assert (again.width, again.rows) == (first.width, first.rows)


@pytest.mark.parametrize("value", ["0%", "101%", "-5%", "abc%", "%", "50", "50px", "", "nan%", True, 0, -3, float("inf")])
def test_invalid_dimension_values(value):
    with pytest.raises(InvalidDimensionValue):
        parse_dimension_value(value, 80)


def test_invalid_width_fails_resolution():
    with pytest.raises(InvalidDimensionValue):
        resolve(100, 50, DimensionRequest(width="0%"), 80, 24)
    with pytest.raises(InvalidDimensionValue):
        resolve(100, 50, DimensionRequest(width="101%"), 80, 24)


def test_invalid_dimension_is_a_value_error():
    with pytest.raises(ValueError):
        parse_dimension_value("wide", 80)


def test_numbers_are_used_as_is():
    assert parse_dimension_value(12, 80) == 12
    assert parse_dimension_value(12.5, 80) == 12.5
    assert parse_dimension_value("50%", 81) == 40


def test_contain_fit():
    assert contain_fit(80, 44, 100, 50) == (80, 40)
    assert contain_fit(80, 44, 50, 100) == (22, 44)


def test_tiny_terminal_still_resolves():
    dims = resolve(100, 50, DimensionRequest(), 1, 1)
    assert dims.width == 1
    assert dims.height >= 1


def test_cell_budget_defaults_to_terminal_minus_margins():
    assert resolve_cell_budget(DimensionRequest(), 80, 24) == CellBudget(78, 20)


def test_cell_budget_percentages_and_numbers():
    assert resolve_cell_budget(DimensionRequest("50%", "50%"), 80, 24) == CellBudget(39, 10)
    assert resolve_cell_budget(DimensionRequest(100, 5), 80, 24) == CellBudget(78, 5)


def test_cell_budget_rejects_bad_values():
    with pytest.raises(InvalidDimensionValue):
        resolve_cell_budget(DimensionRequest(width="150%"), 80, 24)

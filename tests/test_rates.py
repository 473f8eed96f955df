import pytest

from assmatpaie.rates import (DEFAULT_REFERENCE_GRID, ReferenceGridRow,
                              effective_hourly_rate, grid_from_json,
                              resolve_base_hourly_rate)


@pytest.mark.parametrize(
    ("days_per_week", "hours_per_day", "expected"),
    [
        (5, 8.5, 4.0),   # exact
        (5, 10.0, 3.9),  # exact
        (5, 9.0, 4.0),   # closest to 8.5
        (5, 9.5, 3.9),   # closest to 10
        (5, 9.25, 4.0),  # tie, first row wins
        (2, 6.0, 4.8),
        (3, 12.0, 4.5),
    ],
)
def test_resolve_base_hourly_rate(days_per_week, hours_per_day, expected):
    assert resolve_base_hourly_rate(DEFAULT_REFERENCE_GRID, days_per_week, hours_per_day) == expected


def test_resolve_base_hourly_rate_without_matching_days():
    grid = [ReferenceGridRow(days_per_week=5, hours_per_day=8.0, base_hourly_rate=4.0)]
    assert resolve_base_hourly_rate(grid, 4, 8.0) == 0.0
    assert resolve_base_hourly_rate([], 5, 8.0) == 0.0


def test_effective_hourly_rate():
    assert effective_hourly_rate(4.0, allow_override=True, override_hourly_rate=4.6) == 4.6
    assert effective_hourly_rate(4.0, allow_override=False, override_hourly_rate=4.6) == 4.0
    assert effective_hourly_rate(4.0, allow_override=True, override_hourly_rate=None) == 4.0


def test_grid_from_json_reads_stored_rows():
    stored = [row.to_dict() for row in DEFAULT_REFERENCE_GRID]
    assert grid_from_json(stored) == list(DEFAULT_REFERENCE_GRID)
    assert grid_from_json(None) == []

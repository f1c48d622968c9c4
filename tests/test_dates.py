from datetime import date, datetime

import pytest

from dayfit.core.calendar import month_grid, sleep_quality, weekday_index
from dayfit.core.datekeys import from_key, to_key
from dayfit.core.planner import plan


# ---------- date keys ----------

def test_to_key_zero_pads():
    assert to_key(date(2024, 3, 5)) == "2024-03-05"


def test_to_key_keeps_local_calendar_day_of_datetime():
    assert to_key(datetime(2024, 3, 15, 23, 30)) == "2024-03-15"


def test_to_key_accepts_canonical_key():
    assert to_key("2024-12-31") == "2024-12-31"


def test_key_round_trip():
    d = date(2023, 1, 9)
    assert to_key(from_key(to_key(d))) == to_key(d)


@pytest.mark.parametrize("bad", ["2024-3-5", "15/03/2024", "2024-13-01", ""])
def test_from_key_rejects_malformed(bad):
    with pytest.raises(ValueError):
        from_key(bad)


# ---------- calendar grid ----------

def test_weekday_index_sunday_is_zero():
    assert weekday_index(date(2024, 3, 17)) == 0
    assert weekday_index(date(2024, 3, 18)) == 1


@pytest.mark.parametrize("year,month", [(2024, m) for m in range(1, 13)] + [(2021, 2), (2026, 3)])
def test_month_grid_is_whole_monday_first_weeks(year, month):
    grid = month_grid(year, month)
    assert len(grid) % 7 == 0
    assert 28 <= len(grid) <= 42
    assert grid[0].weekday() == 0
    assert grid[-1].weekday() == 6
    assert date(year, month, 1) in grid


def test_month_grid_february_2021_is_exactly_four_weeks():
    grid = month_grid(2021, 2)
    assert grid[0] == date(2021, 2, 1)
    assert grid[-1] == date(2021, 2, 28)
    assert len(grid) == 28


def test_month_grid_starting_on_sunday_pulls_previous_monday():
    # September 2024 starts on a Sunday
    grid = month_grid(2024, 9)
    assert grid[0] == date(2024, 8, 26)
    assert grid[-1] == date(2024, 10, 6)


@pytest.mark.parametrize("month", [0, 13])
def test_month_grid_rejects_invalid_month(month):
    with pytest.raises(ValueError):
        month_grid(2024, month)


def test_sleep_quality_bands():
    assert sleep_quality(None) is None
    assert sleep_quality(8.5) == "good"
    assert sleep_quality(7) == "fair"
    assert sleep_quality(6.2) == "low"
    assert sleep_quality(4) == "poor"


# ---------- recurring planner ----------

def test_plan_mondays_in_january_2024():
    dates = plan(date(2024, 1, 1), date(2024, 1, 31), [0])
    assert [to_key(d) for d in dates] == [
        "2024-01-01",
        "2024-01-08",
        "2024-01-15",
        "2024-01-22",
        "2024-01-29",
    ]


def test_plan_is_chronological_for_several_weekdays():
    dates = plan(date(2024, 1, 1), date(2024, 1, 14), [4, 0])
    assert dates == sorted(dates)
    assert {d.weekday() for d in dates} == {0, 4}
    assert len(dates) == 4


def test_plan_range_is_inclusive():
    assert plan(date(2024, 1, 1), date(2024, 1, 1), [0]) == [date(2024, 1, 1)]


def test_plan_empty_selection():
    assert plan(date(2024, 1, 1), date(2024, 1, 31), []) == []


def test_plan_inverted_range():
    assert plan(date(2024, 2, 1), date(2024, 1, 1), [0, 1, 2]) == []

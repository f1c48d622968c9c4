from datetime import date, datetime
from types import SimpleNamespace

from dayfit.core.aggregate import DayIndex, export_day
from dayfit.core.calendar import build_month_view
from dayfit.core.nutrition import derive_macros


def sleep(day, hours=7.5):
    return SimpleNamespace(
        sleep_date=day,
        bedtime=datetime(2024, 3, 14, 23, 0),
        wake_time=datetime(2024, 3, 15, 6, 30),
        total_sleep_hours=hours,
        sleep_phases=[],
        notes=None,
    )


def meal(day, **slots):
    values = {name: None for name in ("breakfast", "lunch", "snack", "dinner")}
    values.update(slots)
    return SimpleNamespace(meal_date=day, water_liters=2.0, notes=None, **values)


def routine(day, routine_type, **payload):
    values = {
        "athletics_data": None,
        "running_data": None,
        "gym_data": None,
        "steps_count": None,
        "football_match_data": None,
        "yoyo_test_data": None,
    }
    values.update(payload)
    return SimpleNamespace(routine_date=day, routine_type=routine_type, notes=None, **values)


def test_empty_index_lookup():
    day = DayIndex.build().lookup(date(2024, 3, 15))
    assert day.date == "2024-03-15"
    assert day.sleep is None
    assert day.meal is None
    assert day.routines == []


def test_lookup_only_returns_records_of_that_day():
    index = DayIndex.build(
        [sleep(date(2024, 3, 15))],
        [meal(date(2024, 3, 15))],
        [routine(date(2024, 3, 15), "steps", steps_count=9000)],
    )
    assert index.lookup(date(2024, 3, 15)).sleep is not None
    assert len(index.lookup("2024-03-15").routines) == 1

    next_day = index.lookup(date(2024, 3, 16))
    assert next_day.sleep is None
    assert next_day.meal is None
    assert next_day.routines == []


def test_last_sleep_record_wins():
    first, second = sleep(date(2024, 3, 15), 6), sleep(date(2024, 3, 15), 8)
    index = DayIndex.build([first, second])
    assert index.lookup(date(2024, 3, 15)).sleep is second


def test_routines_keep_input_order():
    rs = [
        routine(date(2024, 3, 15), "running", running_data={"distance_km": 5}),
        routine(date(2024, 3, 15), "gym", gym_data={"exercises": []}),
    ]
    index = DayIndex.build(routines=rs)
    assert [r.routine_type for r in index.lookup(date(2024, 3, 15)).routines] == ["running", "gym"]
    assert index.keys() == {"2024-03-15"}


def test_export_meal_with_only_lunch():
    lunch = {
        "description": "Pasta",
        "products": [{"product_name": "Pasta", "quantity": 100, "calories": 350, "protein": 12}],
    }
    index = DayIndex.build(meals=[meal(date(2024, 3, 15), lunch=lunch)])
    doc = export_day(index.lookup(date(2024, 3, 15)))

    meals = doc["meals"]
    assert meals["breakfast"] is None
    assert meals["snack"] is None
    assert meals["dinner"] is None
    assert meals["lunch"]["description"] == "Pasta"
    assert meals["totals"] == {"calories": 350, "protein": 12, "carbs": 0, "fat": 0}


def test_export_reduces_routines_to_type_notes_data():
    index = DayIndex.build(
        routines=[
            routine(date(2024, 3, 15), "steps", steps_count=12000),
            routine(date(2024, 3, 15), "football_match", football_match_data={"total_kms": 8.5, "calories": 600}),
        ]
    )
    doc = export_day(index.lookup(date(2024, 3, 15)))
    assert doc["sleep"] is None
    assert doc["meals"] is None
    assert doc["routines"] == [
        {"type": "steps", "notes": None, "data": {"steps_count": 12000}},
        {"type": "football_match", "notes": None, "data": {"total_kms": 8.5, "calories": 600}},
    ]


def test_export_sleep_is_iso_formatted():
    index = DayIndex.build([sleep(date(2024, 3, 15))])
    doc = export_day(index.lookup(date(2024, 3, 15)))
    assert doc["sleep"]["bedtime"] == "2024-03-14T23:00:00"
    assert doc["sleep"]["total_sleep_hours"] == 7.5


def test_month_view_indicators():
    index = DayIndex.build(
        [sleep(date(2024, 3, 15), 8.2)],
        [meal(date(2024, 3, 15))],
        [
            routine(date(2024, 3, 15), "running", running_data={}),
            routine(date(2024, 3, 15), "gym", gym_data={}),
        ],
    )
    cells = build_month_view(2024, 3, index, today=date(2024, 3, 15))
    by_date = {c["date"]: c for c in cells}

    day = by_date["2024-03-15"]
    assert day["in_month"] and day["is_today"]
    assert day["has_sleep"] and day["has_meal"]
    assert day["sleep_quality"] == "good"
    assert day["routine_types"] == ["gym", "running"]

    assert by_date["2024-02-26"]["in_month"] is False
    assert by_date["2024-03-16"]["has_sleep"] is False


def test_derive_macros_scales_per_100g():
    product = SimpleNamespace(
        name="Rice",
        calories_per_100g=130,
        protein_per_100g=2.5,
        carbs_per_100g=28,
        fat_per_100g=None,
    )
    item = derive_macros({"product_name": "", "quantity": 200, "calories": 300}, product)
    assert item["calories"] == 300
    assert item["protein"] == 5.0
    assert item["carbs"] == 56.0
    assert "fat" not in item or item["fat"] is None
    assert item["product_name"] == "Rice"

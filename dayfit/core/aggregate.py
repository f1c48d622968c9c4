from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Iterable

from sqlalchemy.orm import Session

from dayfit.core.datekeys import to_key
from dayfit.core.nutrition import MEAL_SLOTS, meal_totals, slot_totals
from dayfit.models.meal import Meal
from dayfit.models.routine import Routine
from dayfit.models.sleep import SleepRecord
from dayfit.schemas.routines import payload_field


@dataclass
class DaySummary:
    date: str
    sleep: Any | None = None
    meal: Any | None = None
    routines: list = field(default_factory=list)


class DayIndex:
    """
    In-memory join of the three record streams by date key.

    Built wholesale from already-loaded collections; a reload builds a new
    index instead of mutating this one.
    """

    def __init__(self, sleep_by_key: dict, meal_by_key: dict, routines_by_key: dict):
        self._sleep = sleep_by_key
        self._meals = meal_by_key
        self._routines = routines_by_key

    @classmethod
    def build(
        cls,
        sleep_records: Iterable = (),
        meals: Iterable = (),
        routines: Iterable = (),
    ) -> "DayIndex":
        sleep_by_key = {}
        for record in sleep_records:
            sleep_by_key[to_key(record.sleep_date)] = record

        meal_by_key = {}
        for meal in meals:
            meal_by_key[to_key(meal.meal_date)] = meal

        routines_by_key = defaultdict(list)
        for routine in routines:
            routines_by_key[to_key(routine.routine_date)].append(routine)

        return cls(sleep_by_key, meal_by_key, dict(routines_by_key))

    def lookup(self, d: date | str) -> DaySummary:
        key = to_key(d)
        return DaySummary(
            date=key,
            sleep=self._sleep.get(key),
            meal=self._meals.get(key),
            routines=list(self._routines.get(key, [])),
        )

    def keys(self) -> set[str]:
        return set(self._sleep) | set(self._meals) | set(self._routines)


def load_day_index(db: Session, user_id: str, start: date, end: date) -> DayIndex:
    """Fetch the caller's records in [start, end] and index them by day."""
    sleep_records = (
        db.query(SleepRecord)
        .filter(SleepRecord.user_id == user_id)
        .filter(SleepRecord.sleep_date >= start, SleepRecord.sleep_date <= end)
        .order_by(SleepRecord.sleep_date.asc())
        .all()
    )
    meals = (
        db.query(Meal)
        .filter(Meal.user_id == user_id)
        .filter(Meal.meal_date >= start, Meal.meal_date <= end)
        .order_by(Meal.meal_date.asc())
        .all()
    )
    routines = (
        db.query(Routine)
        .filter(Routine.user_id == user_id)
        .filter(Routine.routine_date >= start, Routine.routine_date <= end)
        .order_by(Routine.routine_date.asc(), Routine.routine_type.asc())
        .all()
    )
    return DayIndex.build(sleep_records, meals, routines)


def load_day(db: Session, user_id: str, d: date, window_days: int) -> DaySummary:
    index = load_day_index(db, user_id, d - timedelta(days=window_days), d)
    return index.lookup(d)


# ---------- Export document ----------

def _export_sleep(record) -> dict | None:
    if record is None:
        return None
    return {
        "bedtime": record.bedtime.isoformat() if record.bedtime else None,
        "wake_time": record.wake_time.isoformat() if record.wake_time else None,
        "total_sleep_hours": record.total_sleep_hours,
        "sleep_phases": list(record.sleep_phases or []),
        "notes": record.notes,
    }


def _export_slot(slot) -> dict | None:
    if not slot:
        return None
    return {
        "description": slot.get("description"),
        "products": list(slot.get("products") or []),
        "totals": slot_totals(slot),
    }


def _export_meal(meal) -> dict | None:
    if meal is None:
        return None
    doc = {name: _export_slot(getattr(meal, name)) for name in MEAL_SLOTS}
    doc["water_liters"] = meal.water_liters
    doc["notes"] = meal.notes
    doc["totals"] = meal_totals(meal)
    return doc


def _export_routine(routine) -> dict:
    field_name = payload_field(routine.routine_type)
    data = getattr(routine, field_name)
    if field_name == "steps_count":
        data = {"steps_count": data}
    return {
        "type": routine.routine_type,
        "notes": routine.notes,
        "data": data,
    }


def export_day(summary: DaySummary) -> dict:
    """Flat, JSON-serialisable document for one day."""
    return {
        "date": summary.date,
        "sleep": _export_sleep(summary.sleep),
        "meals": _export_meal(summary.meal),
        "routines": [_export_routine(r) for r in summary.routines],
    }

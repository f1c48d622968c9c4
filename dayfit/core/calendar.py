from calendar import monthrange
from datetime import date, timedelta

from dayfit.core.datekeys import to_key


def weekday_index(d: date) -> int:
    """Sunday=0 .. Saturday=6."""
    return (d.weekday() + 1) % 7


def month_grid(year: int, month: int) -> list[date]:
    """
    Monday-first grid for a month: from the Monday on/before the 1st through
    the Sunday on/after the last day, always whole weeks.
    """
    if month < 1 or month > 12:
        raise ValueError(f"Invalid month: {month}")

    first = date(year, month, 1)
    last = date(year, month, monthrange(year, month)[1])

    start = first - timedelta(days=(weekday_index(first) + 6) % 7)
    end = last + timedelta(days=(7 - weekday_index(last)) % 7)

    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def sleep_quality(hours: float | None) -> str | None:
    if hours is None:
        return None
    if hours >= 8:
        return "good"
    if hours >= 7:
        return "fair"
    if hours >= 6:
        return "low"
    return "poor"


def build_month_view(year: int, month: int, index, today: date | None = None) -> list[dict]:
    """One indicator cell per grid day, looked up in a DayIndex."""
    today = today or date.today()
    cells = []
    for d in month_grid(year, month):
        day = index.lookup(d)
        hours = day.sleep.total_sleep_hours if day.sleep is not None else None
        cells.append(
            {
                "date": to_key(d),
                "in_month": d.month == month,
                "is_today": d == today,
                "has_sleep": day.sleep is not None,
                "sleep_hours": hours,
                "sleep_quality": sleep_quality(hours),
                "has_meal": day.meal is not None,
                "routine_types": sorted({r.routine_type for r in day.routines}),
            }
        )
    return cells

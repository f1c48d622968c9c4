from datetime import date, timedelta
from typing import Iterable

ONE_DAY = timedelta(days=1)


def plan(start: date, end: date, weekdays: Iterable[int]) -> list[date]:
    """
    Concrete dates in [start, end] whose weekday (0=Monday .. 6=Sunday) is
    selected, in chronological order.

    An empty selection or an inverted range yields an empty list; rejecting an
    empty selection as bad input is the caller's job.
    """
    wanted = set(weekdays)
    if not wanted or start > end:
        return []

    dates: list[date] = []
    d = start
    while d <= end:
        if d.weekday() in wanted:
            dates.append(d)
        d += ONE_DAY
    return dates

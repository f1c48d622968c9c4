import re
from datetime import date, datetime

_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def to_key(d: date | datetime | str) -> str:
    """
    Canonical YYYY-MM-DD key for a calendar day.

    Datetimes keep their own (local) calendar fields; no time-zone conversion
    is applied, so 23:30 on the 15th is always keyed to the 15th.
    """
    if isinstance(d, str):
        d = from_key(d)
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def from_key(key: str) -> date:
    if not isinstance(key, str) or not _KEY_RE.match(key):
        raise ValueError(f"Invalid date key: {key!r}, expected YYYY-MM-DD")
    year, month, day = (int(part) for part in key.split("-"))
    return date(year, month, day)

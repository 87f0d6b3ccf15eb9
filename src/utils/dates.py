"""
Calendar-date helpers.

All stats work on plain calendar dates. "Today" is always evaluated in a
fixed policy timezone, never the host's local clock.
"""

import calendar
import re
from datetime import date, datetime, timedelta
from typing import Iterator, Tuple, Union
from zoneinfo import ZoneInfo

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def today_in(timezone_name: str) -> date:
    """Current calendar date in the given IANA timezone."""
    return datetime.now(ZoneInfo(timezone_name)).date()


def add_days(day: date, delta: int) -> date:
    return day + timedelta(days=delta)


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every date from *start* to *end*, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def parse_iso_date(value: Union[str, date]) -> date:
    """Accept a ``date`` or a ``YYYY-MM-DD`` string.

    Datetimes are truncated to their date part.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DATE_RE.match(value.strip()):
        raise ValueError(f"Expected a YYYY-MM-DD date, got {value!r}")
    return date.fromisoformat(value.strip())


def month_bounds(month: str) -> Tuple[date, date]:
    """First and last day of a ``YYYY-MM`` month."""
    match = _MONTH_RE.match(month or "")
    if not match:
        raise ValueError(f"Expected a YYYY-MM month, got {month!r}")
    year, month_number = int(match.group(1)), int(match.group(2))
    if not 1 <= month_number <= 12:
        raise ValueError(f"Month out of range in {month!r}")
    last_day = calendar.monthrange(year, month_number)[1]
    return date(year, month_number, 1), date(year, month_number, last_day)

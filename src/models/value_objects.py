"""Domain value objects: recurrence rules as a closed set of variants.

A habit stores its schedule as two loose columns (``period_type`` and
``period_value``). ``parse_recurrence`` turns them into exactly one of the
variants below; every variant answers ``is_due(day)``. Rules that cannot be
understood become ``NeverDue`` instead of raising.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import date
from typing import FrozenSet, Optional, Union

logger = logging.getLogger(__name__)


class PeriodType(str, enum.Enum):
    """Recurrence kinds a habit may declare."""

    EVERY_DAY = "every_day"
    SPECIFIC_DAYS_OF_WEEK = "specific_days_week"
    SPECIFIC_DAYS_OF_MONTH = "specific_days_month"


# Sunday-based indices, matching the abbreviations users type.
WEEKDAY_ABBREVIATIONS = {
    "SUN": 0,
    "MON": 1,
    "TUE": 2,
    "WED": 3,
    "THU": 4,
    "FRI": 5,
    "SAT": 6,
}


def sunday_based_weekday(day: date) -> int:
    """Return 0 for Sunday through 6 for Saturday."""
    return day.isoweekday() % 7


@dataclass(frozen=True)
class EveryDay:
    def is_due(self, day: date) -> bool:
        return True


@dataclass(frozen=True)
class DaysOfWeek:
    days: FrozenSet[int]

    def is_due(self, day: date) -> bool:
        return sunday_based_weekday(day) in self.days


@dataclass(frozen=True)
class DaysOfMonth:
    """Due on the listed days of the month.

    A month without the listed day (the 31st in April) simply has no
    occurrence; it is not a missed day.
    """

    days: FrozenSet[int]

    def is_due(self, day: date) -> bool:
        return day.day in self.days


@dataclass(frozen=True)
class NeverDue:
    reason: str = ""

    def is_due(self, day: date) -> bool:
        return False


Recurrence = Union[EveryDay, DaysOfWeek, DaysOfMonth, NeverDue]


def _split_tokens(period_value: Optional[str]):
    if not period_value:
        return []
    return [token.strip() for token in period_value.split(",") if token.strip()]


def parse_weekdays(period_value: Optional[str]) -> FrozenSet[int]:
    """Parse ``"MON,WED,FRI"`` into Sunday-based weekday indices.

    Unknown tokens are dropped.
    """
    days = set()
    for token in _split_tokens(period_value):
        index = WEEKDAY_ABBREVIATIONS.get(token.upper())
        if index is not None:
            days.add(index)
    return frozenset(days)


def parse_month_days(period_value: Optional[str]) -> FrozenSet[int]:
    """Parse ``"1,15,30"`` into a set of days of the month (1-31).

    Non-numeric or out-of-range tokens are dropped.
    """
    days = set()
    for token in _split_tokens(period_value):
        try:
            value = int(token)
        except ValueError:
            continue
        if 1 <= value <= 31:
            days.add(value)
    return frozenset(days)


def parse_recurrence(period_type: Optional[str], period_value: Optional[str]) -> Recurrence:
    """Build the recurrence variant for a habit's schedule columns."""
    try:
        kind = PeriodType(period_type)
    except ValueError:
        logger.warning("Unknown period_type %r; habit is never due", period_type)
        return NeverDue(reason=f"unknown period_type {period_type!r}")

    if kind is PeriodType.EVERY_DAY:
        return EveryDay()

    if kind is PeriodType.SPECIFIC_DAYS_OF_WEEK:
        weekdays = parse_weekdays(period_value)
        if not weekdays:
            logger.warning("No valid weekdays in %r; habit is never due", period_value)
            return NeverDue(reason="no valid weekdays in period_value")
        return DaysOfWeek(days=weekdays)

    month_days = parse_month_days(period_value)
    if not month_days:
        logger.warning("No valid days of month in %r; habit is never due", period_value)
        return NeverDue(reason="no valid days of month in period_value")
    return DaysOfMonth(days=month_days)

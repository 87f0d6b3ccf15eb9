"""
Schedule resolution: which calendar dates a habit is due on.

Everything here is pure. Habits only need ``start_date``, ``end_date`` and a
``recurrence`` (see ``src.models.value_objects``).
"""

from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from ..models.value_objects import Recurrence
from ..utils.dates import add_days, iter_dates


def is_due(habit, day: date) -> bool:
    """True if the habit's recurrence selects *day* and *day* is not past its end."""
    if habit.end_date is not None and day > habit.end_date:
        return False
    return habit.recurrence.is_due(day)


def is_scheduled_on(habit, day: date) -> bool:
    """Like ``is_due`` but also honours ``start_date``."""
    if day < habit.start_date:
        return False
    return is_due(habit, day)


def scheduled_dates(habit, through: date) -> List[date]:
    """Due dates from ``start_date`` through *through* (inclusive), ascending."""
    if through < habit.start_date:
        return []
    end = through
    if habit.end_date is not None and habit.end_date < end:
        end = habit.end_date
    recurrence = habit.recurrence
    return [day for day in iter_dates(habit.start_date, end) if recurrence.is_due(day)]


def previous_scheduled_date(habit, day: date) -> Optional[date]:
    """The last due date strictly before *day*, or None if there is none."""
    if habit.end_date is not None and habit.end_date < day:
        candidate = habit.end_date
    else:
        candidate = add_days(day, -1)
    recurrence = habit.recurrence
    while candidate >= habit.start_date:
        if recurrence.is_due(candidate):
            return candidate
        candidate = add_days(candidate, -1)
    return None


def scope_scheduled_dates(habits: Iterable, through: date) -> List[date]:
    """Calendar days on which at least one of *habits* is due.

    The window runs from the earliest ``start_date`` through *through*.
    """
    rules = habit_rules(habits)
    if not rules:
        return []
    start = min(habit.start_date for habit, _ in rules)
    return [day for day in iter_dates(start, through) if due_on(rules, day)]


def habit_rules(habits: Iterable) -> List[Tuple[object, Recurrence]]:
    """Pair each habit with its parsed recurrence, parsing once."""
    return [(habit, habit.recurrence) for habit in habits]


def due_on(rules: Sequence[Tuple[object, Recurrence]], day: date) -> List[object]:
    """Habits from ``habit_rules`` output that are scheduled on *day*."""
    return [habit for habit, rule in rules if _selects(habit, rule, day)]


def _selects(habit, rule: Recurrence, day: date) -> bool:
    if day < habit.start_date:
        return False
    if habit.end_date is not None and day > habit.end_date:
        return False
    return rule.is_due(day)

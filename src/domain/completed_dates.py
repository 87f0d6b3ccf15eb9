"""Build completed-date sets from completion records.

A day with no record for a habit counts as PENDING.
"""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, Set

from ..models.completion import CompletionStatus
from .schedule import due_on, habit_rules


def done_index(completions: Iterable) -> Dict[date, Set[str]]:
    """Map each date to the habit ids marked DONE on it."""
    index: Dict[date, Set[str]] = defaultdict(set)
    for completion in completions:
        if completion.status == CompletionStatus.DONE.value:
            index[completion.date].add(completion.habit_id)
    return index


def habit_completed_dates(completions: Iterable, habit_id: str) -> Set[date]:
    return {
        completion.date
        for completion in completions
        if completion.habit_id == habit_id
        and completion.status == CompletionStatus.DONE.value
    }


def scope_completed_dates(
    habits: Iterable, completions: Iterable, days: Iterable[date]
) -> Set[date]:
    """Days among *days* on which every habit due that day is DONE.

    Days with nothing due are never complete.
    """
    rules = habit_rules(habits)
    done = done_index(completions)
    complete = set()
    for day in days:
        due_ids = [habit.id for habit in due_on(rules, day)]
        if due_ids and all(habit_id in done.get(day, ()) for habit_id in due_ids):
            complete.add(day)
    return complete

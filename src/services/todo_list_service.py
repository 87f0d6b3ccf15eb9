"""
Per-day todo list: the habits due on a date paired with what the user did.

This is the single place that decides which habits "count" on a day. The
category/user streak checks, the dashboard and the missed-day sweep all read
it, so they agree on what a complete day is.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from ..domain.repositories import CompletionRepository, HabitRepository
from ..domain.schedule import due_on, habit_rules
from ..models.completion import STATUS_ORDER, CompletionStatus
from ..models.habit import DayPeriod
from ..utils.dates import iter_dates

logger = logging.getLogger(__name__)

PERIOD_ORDER = {
    DayPeriod.MORNING.value: 0,
    DayPeriod.AFTERNOON.value: 1,
    DayPeriod.EVENING.value: 2,
    DayPeriod.ANYTIME.value: 3,
}


@dataclass
class TodoItem:
    habit: object
    status: CompletionStatus
    progress: float = 0.0
    notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    has_record: bool = False

    @property
    def habit_id(self) -> str:
        return self.habit.id

    @property
    def is_done(self) -> bool:
        return self.status == CompletionStatus.DONE


def all_done(items: Iterable[TodoItem]) -> bool:
    """True when there is at least one item and every item is DONE."""
    items = list(items)
    return bool(items) and all(item.is_done for item in items)


def _sort_key(item: TodoItem):
    return (
        STATUS_ORDER[item.status],
        PERIOD_ORDER.get(item.habit.period, len(PERIOD_ORDER)),
    )


def _item_for(habit, record) -> TodoItem:
    if record is None:
        return TodoItem(habit=habit, status=CompletionStatus.PENDING)
    return TodoItem(
        habit=habit,
        status=CompletionStatus(record.status),
        progress=record.progress or 0.0,
        notes=record.notes,
        completed_at=record.completed_at,
        has_record=True,
    )


class TodoListService:
    """Builds the list of due habits for one user and day."""

    def __init__(
        self, habits: HabitRepository, completions: CompletionRepository
    ) -> None:
        self._habits = habits
        self._completions = completions

    async def get_todo_list(
        self,
        user_id: str,
        day: date,
        category_id: Optional[str] = None,
        habit_id: Optional[str] = None,
    ) -> List[TodoItem]:
        """Active habits due on *day*, with their status (no record means PENDING).

        Args:
            user_id: Owner of the habits
            day: Calendar date
            category_id: Only habits of this category
            habit_id: Only this habit

        Returns:
            Items sorted PENDING, SKIPPED, DONE, then Morning to Anytime
        """
        lists = await self.get_todo_lists(
            user_id, day, day, category_id=category_id, habit_id=habit_id
        )
        return lists[day]

    async def get_todo_lists(
        self,
        user_id: str,
        start: date,
        end: date,
        category_id: Optional[str] = None,
        habit_id: Optional[str] = None,
    ) -> Dict[date, List[TodoItem]]:
        """Todo list of every day from *start* to *end*, loaded in two queries."""
        habits = await self._habits.list_by_user_and_date(user_id, end)
        habits = [
            habit
            for habit in habits
            if habit.active
            and (category_id is None or habit.category_id == category_id)
            and (habit_id is None or habit.id == habit_id)
        ]
        lists: Dict[date, List[TodoItem]] = {day: [] for day in iter_dates(start, end)}
        if not habits:
            return lists

        records = await self._completions.list_by_user_and_date_range(
            user_id, start, end
        )
        by_key = {(record.date, record.habit_id): record for record in records}

        rules = habit_rules(habits)
        for day in lists:
            items = [
                _item_for(habit, by_key.get((day, habit.id)))
                for habit in due_on(rules, day)
            ]
            items.sort(key=_sort_key)
            lists[day] = items

        logger.debug(
            "Todo lists for %s from %s to %s (%d habit(s))",
            user_id,
            start.isoformat(),
            end.isoformat(),
            len(habits),
        )
        return lists

    async def is_day_complete(
        self, user_id: str, day: date, category_id: Optional[str] = None
    ) -> bool:
        """True when something is due on *day* and every due habit is DONE."""
        return all_done(await self.get_todo_list(user_id, day, category_id=category_id))

"""
Monthly stats dashboard.

Read-only: combines the stored Stats rows with a scan of the month's todo
lists. Nothing computed here is persisted.
"""

import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Union

from pydantic import BaseModel

from ...core.typed_config import StatsEngineConfig
from ...domain.repositories import (
    CompletionRepository,
    HabitRepository,
    StatsRepository,
)
from ...domain.streak import best_consecutive_run
from ...models.completion import CompletionStatus
from ...models.stats import USER_SCOPE_ID, StatsScope
from ...utils.dates import month_bounds, parse_iso_date
from ..todo_list_service import TodoItem, TodoListService, all_done

logger = logging.getLogger(__name__)


class HabitForSelectedDate(BaseModel):
    id: str
    title: str
    emoji: str
    category_id: str
    status: CompletionStatus
    completed_at: Optional[datetime] = None


class StatsDashboard(BaseModel):
    """Everything the stats screen shows for one month."""

    month: str
    completed_dates: List[date] = []

    global_streak: int = 0
    global_longest_streak: int = 0
    global_total_completions: int = 0
    last_completed_date: Optional[date] = None

    month_completion_count: int = 0
    month_completion_rate: float = 0.0
    month_total_completions: int = 0
    month_daily_average: float = 0.0
    month_best_streak: int = 0

    habits_for_selected_date: Optional[List[HabitForSelectedDate]] = None

    category_streak: Optional[int] = None
    category_longest_streak: Optional[int] = None
    category_total_completions: Optional[int] = None
    category_month_total_completions: Optional[int] = None
    category_month_daily_average: Optional[float] = None
    category_month_best_streak: Optional[int] = None

    habit_streak: Optional[int] = None
    habit_longest_streak: Optional[int] = None
    habit_month_total_completions: Optional[int] = None
    habit_month_daily_average: Optional[float] = None
    habit_month_best_streak: Optional[int] = None


def _complete_days(
    lists: Dict[date, List[TodoItem]],
    category_id: Optional[str] = None,
    habit_id: Optional[str] = None,
) -> List[date]:
    days = []
    for day, items in sorted(lists.items()):
        selected = [
            item
            for item in items
            if (category_id is None or item.habit.category_id == category_id)
            and (habit_id is None or item.habit_id == habit_id)
        ]
        if all_done(selected):
            days.append(day)
    return days


class DashboardAggregator:
    """Builds StatsDashboard views on demand."""

    def __init__(
        self,
        habits: HabitRepository,
        completions: CompletionRepository,
        stats: StatsRepository,
        todo_list: TodoListService,
        config: Optional[StatsEngineConfig] = None,
    ) -> None:
        self._habits = habits
        self._completions = completions
        self._stats = stats
        self._todo_list = todo_list
        self._config = config if config is not None else StatsEngineConfig()

    async def get_dashboard(
        self,
        user_id: str,
        month: str,
        category_id: Optional[str] = None,
        habit_id: Optional[str] = None,
        selected_date: Optional[Union[str, date]] = None,
    ) -> StatsDashboard:
        """Build the dashboard for a ``YYYY-MM`` month.

        Args:
            user_id: Owner of the stats
            month: Month as ``YYYY-MM``
            category_id: Narrow the calendar and add category figures
            habit_id: Narrow the calendar and add habit figures
            selected_date: ``YYYY-MM-DD`` whose habits should be listed

        Raises:
            ValueError: If ``month`` or ``selected_date`` is malformed
        """
        first_day, last_day = month_bounds(month)
        selected = parse_iso_date(selected_date) if selected_date else None
        days_in_month = (last_day - first_day).days + 1

        logger.info(
            "Building dashboard for user %s month %s (category=%s habit=%s)",
            user_id,
            month,
            category_id,
            habit_id,
        )

        lists = await self._todo_list.get_todo_lists(user_id, first_day, last_day)
        completed_dates = _complete_days(lists, category_id, habit_id)

        records = await self._completions.list_by_user_and_date_range(
            user_id, first_day, last_day
        )
        done_records = [
            record
            for record in records
            if record.status == CompletionStatus.DONE.value
        ]

        user_stats = await self._stats.get(user_id, StatsScope.USER, USER_SCOPE_ID)
        dashboard = StatsDashboard(
            month=month,
            completed_dates=completed_dates,
            month_completion_count=len(completed_dates),
            month_completion_rate=len(completed_dates) / days_in_month,
            month_total_completions=len(done_records),
            month_daily_average=len(done_records) / days_in_month,
            month_best_streak=best_consecutive_run(completed_dates),
        )
        if user_stats is not None:
            dashboard.global_streak = user_stats.current_streak
            dashboard.global_longest_streak = user_stats.longest_streak
            dashboard.global_total_completions = user_stats.total_completions
            dashboard.last_completed_date = user_stats.last_completed_date

        if selected is not None and self._config.include_selected_date_habits:
            items = await self._todo_list.get_todo_list(
                user_id, selected, category_id=category_id, habit_id=habit_id
            )
            dashboard.habits_for_selected_date = [
                HabitForSelectedDate(
                    id=item.habit.id,
                    title=item.habit.title,
                    emoji=item.habit.emoji,
                    category_id=item.habit.category_id,
                    status=item.status,
                    completed_at=item.completed_at,
                )
                for item in items
            ]

        if category_id is not None:
            category_days = _complete_days(lists, category_id=category_id)
            category_habit_ids = {
                habit.id
                for habit in await self._habits.list_by_user(
                    user_id, category_id=category_id
                )
            }
            category_done = sum(
                1 for record in done_records if record.habit_id in category_habit_ids
            )
            category_stats = await self._stats.get(
                user_id, StatsScope.CATEGORY, category_id
            )
            if category_stats is not None:
                dashboard.category_streak = category_stats.current_streak
                dashboard.category_longest_streak = category_stats.longest_streak
                dashboard.category_total_completions = category_stats.total_completions
            else:
                dashboard.category_streak = 0
                dashboard.category_longest_streak = 0
                dashboard.category_total_completions = 0
            dashboard.category_month_total_completions = category_done
            dashboard.category_month_daily_average = category_done / days_in_month
            dashboard.category_month_best_streak = best_consecutive_run(category_days)

        if habit_id is not None:
            habit_days = _complete_days(lists, habit_id=habit_id)
            habit_done = sum(1 for record in done_records if record.habit_id == habit_id)
            habit_stats = await self._stats.get(user_id, StatsScope.HABIT, habit_id)
            if habit_stats is not None:
                dashboard.habit_streak = habit_stats.current_streak
                dashboard.habit_longest_streak = habit_stats.longest_streak
            else:
                dashboard.habit_streak = 0
                dashboard.habit_longest_streak = 0
            dashboard.habit_month_total_completions = habit_done
            dashboard.habit_month_daily_average = habit_done / days_in_month
            dashboard.habit_month_best_streak = best_consecutive_run(habit_days)

        return dashboard

"""Stats for a single habit, following the habit's own schedule."""

import logging
from datetime import date
from typing import Optional

from ...domain.completed_dates import habit_completed_dates
from ...domain.errors import HabitNotFound
from ...domain.events import StatusChange
from ...domain.schedule import previous_scheduled_date, scheduled_dates
from ...domain.streak import compute_full_streak, compute_streak_up_to
from ...models.stats import StatsScope, StreakFields
from .base import Recalculated, ScopeStatsUpdater

logger = logging.getLogger(__name__)


class HabitStatsUpdater(ScopeStatsUpdater):
    """A habit's streak counts consecutive *due* dates, so a Mon/Wed/Fri habit
    done on Monday and Wednesday has a streak of two.
    """

    scope = StatsScope.HABIT

    def scope_id_for(self, change: StatusChange) -> str:
        return change.habit_id

    async def _owned_habit(self, user_id: str, habit_id: str):
        habit = await self._habits.get(habit_id)
        if habit is None or not habit.is_owned_by(user_id):
            raise HabitNotFound(habit_id, user_id)
        return habit

    async def _incremental_fields(
        self, change: StatusChange, current: StreakFields
    ) -> Optional[StreakFields]:
        habit = await self._owned_habit(change.user_id, change.habit_id)
        previous_due = previous_scheduled_date(habit, change.date)

        if change.completed:
            if current.last_completed_date == change.date:
                # Already counted for this day
                return None
            if previous_due is not None and current.last_completed_date == previous_due:
                streak = current.current_streak + 1
            else:
                streak = 1
            return StreakFields(
                current_streak=streak,
                longest_streak=current.longest_streak,
                last_completed_date=change.date,
                total_completions=current.total_completions + 1,
            )

        if not change.retracted:
            return None

        total = max(0, current.total_completions - 1)
        if current.last_completed_date != change.date:
            return StreakFields(
                current_streak=current.current_streak,
                longest_streak=current.longest_streak,
                last_completed_date=current.last_completed_date,
                total_completions=total,
            )

        streak, last_completed = 0, None
        if previous_due is not None:
            records = await self._completions.list_by_user_and_date_range(
                change.user_id, habit.start_date, previous_due
            )
            up_to = compute_streak_up_to(
                scheduled_dates(habit, previous_due),
                habit_completed_dates(records, habit.id),
                previous_due,
            )
            if up_to.last_completed_date == previous_due:
                streak, last_completed = up_to.streak, previous_due

        return StreakFields(
            current_streak=streak,
            longest_streak=current.longest_streak,
            last_completed_date=last_completed,
            total_completions=total,
        )

    async def _recalculate(
        self, user_id: str, scope_id: str, today: date
    ) -> Optional[Recalculated]:
        habit = await self._owned_habit(user_id, scope_id)
        scheduled = scheduled_dates(habit, today)

        completed = set()
        if habit.start_date <= today:
            records = await self._completions.list_by_user_and_date_range(
                user_id, habit.start_date, today
            )
            completed = habit_completed_dates(records, habit.id)

        logger.debug(
            "Habit %s recalculation inputs: %d scheduled, %d completed",
            habit.id,
            len(scheduled),
            len(completed),
        )
        result = compute_full_streak(scheduled, completed, today)
        return Recalculated(
            current_streak=result.current_streak,
            longest_streak=result.longest_streak,
            last_completed_date=result.last_completed_date,
            total_completions=len(completed),
        )

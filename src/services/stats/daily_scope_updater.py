"""
Shared logic for scopes that aggregate several habits per calendar day.

A CATEGORY or USER day counts as completed only if every habit due that day
in the scope is DONE. Incremental updates compare against the previous
calendar day, not the previous due date of any one habit.
"""

import logging
from abc import abstractmethod
from datetime import date
from typing import List, Optional

from ...domain.completed_dates import scope_completed_dates
from ...domain.events import StatusChange
from ...domain.schedule import scope_scheduled_dates
from ...domain.streak import compute_full_streak
from ...models.stats import StreakFields
from ...utils.dates import add_days
from .base import Recalculated, ScopeStatsUpdater

logger = logging.getLogger(__name__)


class DailyScopeUpdater(ScopeStatsUpdater):
    @abstractmethod
    def _category_filter(self, scope_id: str) -> Optional[str]:
        """Category to restrict habits to, or None for all of the user's habits."""

    async def _active_habits(self, user_id: str, scope_id: str) -> List[object]:
        habits = await self._habits.list_by_user(
            user_id, category_id=self._category_filter(scope_id)
        )
        return [habit for habit in habits if habit.active]

    async def _day_complete(self, user_id: str, scope_id: str, day: date) -> bool:
        return await self._todo_list.is_day_complete(
            user_id, day, category_id=self._category_filter(scope_id)
        )

    async def _incremental_fields(
        self, change: StatusChange, current: StreakFields
    ) -> Optional[StreakFields]:
        scope_id = self.scope_id_for(change)
        yesterday = add_days(change.date, -1)
        last = current.last_completed_date

        if await self._day_complete(change.user_id, scope_id, change.date):
            if last == change.date:
                # Already counted by an earlier change on the same day
                return None
            streak = current.current_streak + 1 if last == yesterday else 1
            return StreakFields(
                current_streak=streak,
                longest_streak=current.longest_streak,
                last_completed_date=change.date,
                total_completions=current.total_completions + 1,
            )

        if last != change.date:
            return None

        total = max(0, current.total_completions - 1)
        if await self._day_complete(change.user_id, scope_id, yesterday):
            return StreakFields(
                current_streak=max(0, current.current_streak - 1),
                longest_streak=current.longest_streak,
                last_completed_date=yesterday,
                total_completions=total,
            )
        return StreakFields(
            current_streak=0,
            longest_streak=current.longest_streak,
            last_completed_date=None,
            total_completions=total,
        )

    async def _recalculate(
        self, user_id: str, scope_id: str, today: date
    ) -> Optional[Recalculated]:
        habits = await self._active_habits(user_id, scope_id)
        if not habits:
            return None

        scheduled = scope_scheduled_dates(habits, today)
        completed = set()
        if scheduled:
            records = await self._completions.list_by_user_and_date_range(
                user_id, scheduled[0], today
            )
            completed = scope_completed_dates(habits, records, scheduled)

        logger.debug(
            "%s %s recalculation inputs: %d habit(s), %d scheduled, %d completed",
            self.scope.value,
            scope_id or "-",
            len(habits),
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

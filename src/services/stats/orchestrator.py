"""
StatsOrchestrator - entry point of the streak & stats engine.

Every trigger (status change, habit created/edited, missed day) fans out to
the habit, category and user updaters concurrently. All of them are awaited
even when one fails; failures are then reported together as an
AggregateUpdateFailure. Scopes that were written stay written.
"""

import asyncio
import logging
from datetime import date
from typing import Awaitable, Callable, Dict, Iterable, Optional, Union

from ...core.typed_config import StatsEngineConfig
from ...domain.errors import AggregateUpdateFailure, HabitNotFound, StatsNotFound
from ...domain.events import StatusChange
from ...domain.repositories import HabitRepository, StatsRepository
from ...models.completion import CompletionStatus
from ...models.habit import SCHEDULE_FIELDS
from ...models.stats import USER_SCOPE_ID, Stats, StatsScope
from ...utils.dates import parse_iso_date, today_in
from ...utils.logging import StatsLogContext
from .base import UpdateStrategy
from .category_stats_updater import CategoryStatsUpdater
from .dashboard import DashboardAggregator, StatsDashboard
from .habit_stats_updater import HabitStatsUpdater
from .user_stats_updater import UserStatsUpdater

logger = logging.getLogger(__name__)

DateLike = Union[str, date]

# Labels used as keys of AggregateUpdateFailure.failures
HABIT_LABEL = StatsScope.HABIT.value
USER_LABEL = StatsScope.USER.value


def category_label(category_id: str) -> str:
    return f"{StatsScope.CATEGORY.value}:{category_id}"


class StatsOrchestrator:
    """Fans single events out to the three scope updaters."""

    def __init__(
        self,
        habits: HabitRepository,
        stats: StatsRepository,
        habit_updater: HabitStatsUpdater,
        category_updater: CategoryStatsUpdater,
        user_updater: UserStatsUpdater,
        dashboard: DashboardAggregator,
        config: Optional[StatsEngineConfig] = None,
        today_provider: Optional[Callable[[], date]] = None,
    ) -> None:
        self._habits = habits
        self._stats = stats
        self._habit_updater = habit_updater
        self._category_updater = category_updater
        self._user_updater = user_updater
        self._dashboard = dashboard
        self._config = config if config is not None else StatsEngineConfig()
        self._today_provider = today_provider

    def today(self) -> date:
        if self._today_provider is not None:
            return self._today_provider()
        return today_in(self._config.timezone)

    # -- Triggers --

    async def on_status_change(
        self,
        user_id: str,
        habit_id: str,
        category_id: Optional[str],
        day: DateLike,
        new_status: Union[str, CompletionStatus],
        previous_status: Union[str, CompletionStatus],
    ) -> None:
        """Bring all three scopes in line with one habit's new status on *day*.

        Same-day changes are applied incrementally; changes to any other day
        trigger a full recalculation of every scope.

        Raises:
            AggregateUpdateFailure: If one or more scopes could not be updated
        """
        change = StatusChange(
            user_id=user_id,
            habit_id=habit_id,
            category_id=category_id or "",
            date=parse_iso_date(day),
            new_status=CompletionStatus(new_status),
            previous_status=CompletionStatus(previous_status),
        )
        if change.new_status == change.previous_status:
            logger.debug("Status of %s unchanged on %s", habit_id, change.date)
            return

        strategy = UpdateStrategy.for_date(change.date, self.today())
        with StatsLogContext(
            "status_change",
            user_id=user_id,
            habit_id=habit_id,
            category_id=change.category_id,
            date=change.date.isoformat(),
            strategy=strategy.value,
        ):
            await self._settle(
                {
                    HABIT_LABEL: self._habit_updater.apply(strategy, change),
                    category_label(change.category_id): self._category_updater.apply(
                        strategy, change
                    ),
                    USER_LABEL: self._user_updater.apply(strategy, change),
                }
            )

    async def on_habit_created(
        self, user_id: str, habit_id: str, category_id: Optional[str]
    ) -> None:
        """Create the stats rows for a new habit.

        The habit row is always reset; category and user rows are only created
        when missing so that their accumulated streaks survive.
        """
        category_id = category_id or ""
        with StatsLogContext(
            "habit_created", user_id=user_id, habit_id=habit_id, category_id=category_id
        ):
            habit = await self._habits.get(habit_id)
            if habit is None or not habit.is_owned_by(user_id):
                raise HabitNotFound(habit_id, user_id)

            await self._stats.put(Stats.zeroed(user_id, StatsScope.HABIT, habit_id))
            created_category = await self._stats.put_if_absent(
                Stats.zeroed(user_id, StatsScope.CATEGORY, category_id)
            )
            created_user = await self._stats.put_if_absent(
                Stats.zeroed(user_id, StatsScope.USER, USER_SCOPE_ID)
            )
            logger.info(
                "Stats bootstrapped for habit %s (category row created=%s, user row created=%s)",
                habit_id,
                created_category,
                created_user,
            )

            if habit.start_date <= self.today():
                await self._recalculate_all(user_id, habit_id, [category_id])

    async def on_habit_edited(
        self,
        user_id: str,
        habit_id: str,
        old_category_id: Optional[str],
        new_category_id: Optional[str],
        changed_fields: Optional[Iterable[str]] = None,
    ) -> None:
        """Recalculate after an edit that can move due dates or the category.

        Args:
            changed_fields: Names of the edited habit fields. When omitted the
                edit is assumed to affect the schedule.
        """
        old_category_id = old_category_id or ""
        new_category_id = new_category_id or ""
        if changed_fields is not None:
            changed = set(changed_fields)
            if old_category_id != new_category_id:
                changed.add("category_id")
            if not changed & SCHEDULE_FIELDS:
                logger.debug("Edit of habit %s does not affect its schedule", habit_id)
                return

        categories = [old_category_id]
        if new_category_id != old_category_id:
            categories.append(new_category_id)

        with StatsLogContext(
            "habit_edited",
            user_id=user_id,
            habit_id=habit_id,
            categories=categories,
        ):
            await self._recalculate_all(user_id, habit_id, categories)

    async def on_missed_day(
        self, user_id: str, habit_id: str, category_id: Optional[str]
    ) -> None:
        """A due habit got no action yesterday; rebuild its scopes."""
        category_id = category_id or ""
        with StatsLogContext(
            "missed_day", user_id=user_id, habit_id=habit_id, category_id=category_id
        ):
            await self._recalculate_all(user_id, habit_id, [category_id])

    # -- Reads --

    async def get_dashboard(
        self,
        user_id: str,
        month: str,
        category_id: Optional[str] = None,
        habit_id: Optional[str] = None,
        selected_date: Optional[DateLike] = None,
    ) -> StatsDashboard:
        return await self._dashboard.get_dashboard(
            user_id,
            month,
            category_id=category_id,
            habit_id=habit_id,
            selected_date=selected_date,
        )

    async def get_current_streak(
        self, user_id: str, scope: Union[str, StatsScope], scope_id: str = ""
    ) -> int:
        scope = StatsScope(scope)
        scope_id = USER_SCOPE_ID if scope is StatsScope.USER else (scope_id or "")
        row = await self._stats.get(user_id, scope, scope_id)
        if row is None:
            raise StatsNotFound(user_id, scope.value, scope_id)
        return row.current_streak

    # -- Fan-out --

    async def _recalculate_all(
        self, user_id: str, habit_id: str, category_ids: Iterable[str]
    ) -> None:
        operations = {HABIT_LABEL: self._habit_updater.recalculate(user_id, habit_id)}
        for category_id in category_ids:
            operations[category_label(category_id)] = self._category_updater.recalculate(
                user_id, category_id
            )
        operations[USER_LABEL] = self._user_updater.recalculate(user_id, USER_SCOPE_ID)
        await self._settle(operations)

    async def _settle(self, operations: Dict[str, Awaitable[None]]) -> None:
        labels = list(operations)
        results = await asyncio.gather(*operations.values(), return_exceptions=True)

        failures = {}
        for label, result in zip(labels, results):
            if not isinstance(result, BaseException):
                continue
            if not isinstance(result, Exception):
                # Cancellation and interpreter exits are not scope failures
                raise result
            logger.error(
                "Stats update failed for %s: %s: %s", label, type(result).__name__, result
            )
            failures[label] = result

        if failures:
            raise AggregateUpdateFailure(failures)

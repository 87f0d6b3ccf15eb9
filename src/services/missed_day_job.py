"""
Missed-day sweep.

Run once shortly after midnight (policy timezone). For every user it looks at
yesterday's todo list and, for each due habit the user never touched,
rebuilds the habit/category/user stats: no action on a due day is a missed
occurrence.

A failure for one user does not stop the sweep; all failures are raised
together once every user has been processed.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, Optional

from ..core.typed_config import StatsEngineConfig
from ..domain.errors import AggregateUpdateFailure
from ..domain.repositories import HabitRepository
from ..utils.dates import add_days, today_in
from ..utils.logging import StatsLogContext
from .stats.orchestrator import StatsOrchestrator
from .todo_list_service import TodoListService, all_done

logger = logging.getLogger(__name__)


@dataclass
class MissedDayReport:
    day: date
    users_checked: int = 0
    recalculations: int = 0
    failures: Dict[str, BaseException] = field(default_factory=dict)


class MissedDayJob:
    def __init__(
        self,
        habits: HabitRepository,
        todo_list: TodoListService,
        orchestrator: StatsOrchestrator,
        config: Optional[StatsEngineConfig] = None,
        today_provider: Optional[Callable[[], date]] = None,
    ) -> None:
        self._habits = habits
        self._todo_list = todo_list
        self._orchestrator = orchestrator
        self._config = config if config is not None else StatsEngineConfig()
        self._today_provider = today_provider

    def _today(self) -> date:
        if self._today_provider is not None:
            return self._today_provider()
        return today_in(self._config.timezone)

    async def run(self, today: Optional[date] = None) -> MissedDayReport:
        """Sweep yesterday (relative to *today*) for every user.

        Raises:
            AggregateUpdateFailure: Keyed by user id, after all users ran
        """
        yesterday = add_days(today or self._today(), -1)
        report = MissedDayReport(day=yesterday)

        with StatsLogContext("missed_day_sweep", day=yesterday.isoformat()):
            user_ids = await self._habits.list_user_ids()
            if not user_ids:
                logger.info("Missed-day sweep: no users found")
                return report

            for user_id in user_ids:
                report.users_checked += 1
                try:
                    report.recalculations += await self._sweep_user(user_id, yesterday)
                except Exception as e:
                    logger.error(
                        "Missed-day sweep failed for user %s: %s", user_id, e, exc_info=True
                    )
                    report.failures[user_id] = e

            logger.info(
                "Missed-day sweep for %s done: %d user(s), %d recalculation(s), %d failure(s)",
                yesterday.isoformat(),
                report.users_checked,
                report.recalculations,
                len(report.failures),
            )
            if report.failures:
                raise AggregateUpdateFailure(report.failures)
        return report

    async def _sweep_user(self, user_id: str, day: date) -> int:
        items = await self._todo_list.get_todo_list(user_id, day)
        if not items:
            logger.info("Missed-day sweep: nothing was due for user %s", user_id)
            return 0
        if all_done(items):
            logger.info("Missed-day sweep: user %s completed everything", user_id)
            return 0

        recalculations = 0
        for item in items:
            if item.has_record:
                continue
            logger.info(
                "Missed-day sweep: no action on habit %s of user %s, recalculating",
                item.habit_id,
                user_id,
            )
            await self._orchestrator.on_missed_day(
                user_id, item.habit_id, item.habit.category_id
            )
            recalculations += 1
        return recalculations

"""
Scope updater base types.

UpdateStrategy names the two ways a stats row can be brought up to date.
ScopeStatsUpdater owns the read-modify-write cycle shared by every scope:
per-key lock, optimistic version check, retry on conflict, and the
longest-streak ratchet. Subclasses only decide the new field values.
"""

import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from ...core.typed_config import StatsEngineConfig
from ...domain.errors import StatsNotFound, StatsWriteConflict
from ...domain.events import StatusChange
from ...domain.repositories import (
    CompletionRepository,
    HabitRepository,
    StatsRepository,
)
from ...models.stats import Stats, StatsScope, StreakFields
from ...utils.dates import today_in
from ...utils.keyed_locks import KeyedLocks
from ...utils.retry import with_retry
from ..todo_list_service import TodoListService

logger = logging.getLogger(__name__)


class UpdateStrategy(str, enum.Enum):
    INCREMENTAL = "incremental"
    FULL_RECALCULATION = "full_recalculation"

    @classmethod
    def for_date(cls, day: date, today: date) -> "UpdateStrategy":
        """Same-day changes are patched; anything else is rebuilt."""
        return cls.INCREMENTAL if day == today else cls.FULL_RECALCULATION


@dataclass(frozen=True)
class Recalculated:
    """Streak numbers rebuilt from history, before the longest ratchet."""

    current_streak: int
    longest_streak: int
    last_completed_date: Optional[date]
    total_completions: int


class ScopeStatsUpdater(ABC):
    """Keeps the stats rows of one scope up to date."""

    scope: StatsScope

    def __init__(
        self,
        habits: HabitRepository,
        completions: CompletionRepository,
        stats: StatsRepository,
        todo_list: Optional[TodoListService] = None,
        locks: Optional[KeyedLocks] = None,
        config: Optional[StatsEngineConfig] = None,
        today_provider: Optional[Callable[[], date]] = None,
    ) -> None:
        self._habits = habits
        self._completions = completions
        self._stats = stats
        self._todo_list = (
            todo_list if todo_list is not None else TodoListService(habits, completions)
        )
        self._locks = locks if locks is not None else KeyedLocks()
        self._config = config if config is not None else StatsEngineConfig()
        self._today_provider = today_provider

    def today(self) -> date:
        if self._today_provider is not None:
            return self._today_provider()
        return today_in(self._config.timezone)

    @abstractmethod
    def scope_id_for(self, change: StatusChange) -> str:
        """Stats row id this change lands on."""

    @abstractmethod
    async def _incremental_fields(
        self, change: StatusChange, current: StreakFields
    ) -> Optional[StreakFields]:
        """New fields after a same-day change, or None to leave the row as is."""

    @abstractmethod
    async def _recalculate(
        self, user_id: str, scope_id: str, today: date
    ) -> Optional[Recalculated]:
        """Rebuild from history, or None when there is nothing to rebuild from."""

    # -- Public operations --

    async def apply(self, strategy: UpdateStrategy, change: StatusChange) -> None:
        if strategy is UpdateStrategy.INCREMENTAL:
            await self.update_incremental(change)
        else:
            await self.recalculate(change.user_id, self.scope_id_for(change))

    async def update_incremental(self, change: StatusChange) -> None:
        scope_id = self.scope_id_for(change)
        logger.info(
            "Incremental %s stats update for user %s (%s) on %s: %s -> %s",
            self.scope.value,
            change.user_id,
            scope_id or "-",
            change.date.isoformat(),
            change.previous_status.value,
            change.new_status.value,
        )
        async with self._locks.hold(self._key(change.user_id, scope_id)):
            await with_retry(
                self._incremental_once,
                change,
                scope_id,
                max_attempts=self._config.write_max_attempts,
                base_delay=self._config.write_base_delay,
            )

    async def recalculate(self, user_id: str, scope_id: str) -> None:
        logger.info(
            "Recalculating %s stats for user %s (%s)",
            self.scope.value,
            user_id,
            scope_id or "-",
        )
        async with self._locks.hold(self._key(user_id, scope_id)):
            await with_retry(
                self._recalculate_once,
                user_id,
                scope_id,
                max_attempts=self._config.write_max_attempts,
                base_delay=self._config.write_base_delay,
            )

    # -- Read-modify-write --

    def _key(self, user_id: str, scope_id: str):
        return (user_id, self.scope.value, scope_id or "")

    async def _incremental_once(self, change: StatusChange, scope_id: str) -> None:
        row = await self._stats.get(change.user_id, self.scope, scope_id)
        if row is None:
            raise StatsNotFound(change.user_id, self.scope.value, scope_id)

        current = row.streak_fields()
        fields = await self._incremental_fields(change, current)
        if fields is None:
            logger.info(
                "%s stats unchanged for user %s (%s) on %s",
                self.scope.value,
                change.user_id,
                scope_id or "-",
                change.date.isoformat(),
            )
            return

        fields = StreakFields(
            current_streak=max(0, fields.current_streak),
            longest_streak=max(current.longest_streak, fields.current_streak),
            last_completed_date=fields.last_completed_date,
            total_completions=max(0, fields.total_completions),
        )
        logger.debug("%s incremental computed: %s", self.scope.value, fields)
        await self._stats.patch_streak_fields(
            change.user_id, self.scope, scope_id, fields, expected_version=row.version
        )
        logger.info(
            "%s stats updated for user %s (%s): current=%d longest=%d total=%d",
            self.scope.value,
            change.user_id,
            scope_id or "-",
            fields.current_streak,
            fields.longest_streak,
            fields.total_completions,
        )

    async def _recalculate_once(self, user_id: str, scope_id: str) -> None:
        """Read the row version, rebuild from history, write against that version.

        A write by another process after the version was read fails the
        version check, so the whole cycle runs again on fresh inputs.
        """
        row = await self._stats.get(user_id, self.scope, scope_id)
        result = await self._recalculate(user_id, scope_id, self.today())
        if result is None:
            logger.info(
                "%s stats recalculation skipped for user %s (%s): nothing active",
                self.scope.value,
                user_id,
                scope_id or "-",
            )
            return

        if row is None:
            row = Stats.zeroed(user_id, self.scope, scope_id)
            if not await self._stats.put_if_absent(row):
                # Created elsewhere while we were computing
                raise StatsWriteConflict(user_id, self.scope.value, scope_id)

        fields = StreakFields(
            current_streak=result.current_streak,
            longest_streak=max(row.longest_streak or 0, result.longest_streak),
            last_completed_date=result.last_completed_date,
            total_completions=result.total_completions,
        )
        logger.debug("%s recalculation computed: %s", self.scope.value, fields)
        await self._stats.patch_streak_fields(
            user_id, self.scope, scope_id, fields, expected_version=row.version
        )
        logger.info(
            "%s stats recalculated for user %s (%s): current=%d longest=%d total=%d",
            self.scope.value,
            user_id,
            scope_id or "-",
            fields.current_streak,
            fields.longest_streak,
            fields.total_completions,
        )

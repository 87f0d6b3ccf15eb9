"""
CompletionService - records what a user did with a habit on a day.

Writes the completion row first, then hands the status transition to the
stats orchestrator. One writer per habit and day runs at a time. A stats
failure never loses the user's action; it surfaces as AggregateUpdateFailure
after the row is stored.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional, Union

from ..domain.errors import HabitNotFound
from ..domain.repositories import CompletionRepository, HabitRepository
from ..models.completion import Completion, CompletionStatus
from ..utils.dates import parse_iso_date
from ..utils.keyed_locks import KeyedLocks
from .stats.orchestrator import StatsOrchestrator

logger = logging.getLogger(__name__)


def compute_progress(
    previous_status: CompletionStatus,
    new_status: CompletionStatus,
    target: float,
    progress: Optional[float] = None,
) -> float:
    """Progress stored with a status.

    DONE fills the target, SKIPPED and leaving DONE reset to zero, anything
    else keeps the supplied value.
    """
    if new_status == CompletionStatus.DONE:
        return target
    if new_status == CompletionStatus.SKIPPED:
        return 0.0
    if previous_status == CompletionStatus.DONE:
        return 0.0
    return progress if progress is not None else 0.0


class CompletionService:
    def __init__(
        self,
        habits: HabitRepository,
        completions: CompletionRepository,
        orchestrator: StatsOrchestrator,
        locks: Optional[KeyedLocks] = None,
    ) -> None:
        self._habits = habits
        self._completions = completions
        self._orchestrator = orchestrator
        self._locks = locks if locks is not None else KeyedLocks()

    @staticmethod
    def _day_key(user_id: str, habit_id: str, day: date):
        return ("COMPLETION", user_id, habit_id, day.isoformat())

    async def _owned_habit(self, user_id: str, habit_id: str):
        habit = await self._habits.get(habit_id)
        if habit is None or not habit.is_owned_by(user_id):
            raise HabitNotFound(habit_id, user_id)
        return habit

    async def set_status(
        self,
        user_id: str,
        habit_id: str,
        day: Union[str, date],
        status: Union[str, CompletionStatus],
        progress: Optional[float] = None,
    ) -> Completion:
        """Store the habit's status for *day* and update every stats scope.

        Raises:
            HabitNotFound: If the habit does not exist or belongs to someone else
            AggregateUpdateFailure: If the row was stored but some stats were not
        """
        habit = await self._owned_habit(user_id, habit_id)
        day = parse_iso_date(day)
        status = CompletionStatus(status)

        # The previous status must be read and replaced by one writer at a time
        async with self._locks.hold(self._day_key(user_id, habit_id, day)):
            return await self._set_status_locked(habit, user_id, day, status, progress)

    async def _set_status_locked(
        self,
        habit,
        user_id: str,
        day: date,
        status: CompletionStatus,
        progress: Optional[float],
    ) -> Completion:
        habit_id = habit.id
        existing = await self._completions.get(user_id, day, habit_id)
        previous_status = (
            CompletionStatus(existing.status)
            if existing is not None
            else CompletionStatus.PENDING
        )
        target = habit.target_value

        completion = Completion(
            user_id=user_id,
            habit_id=habit_id,
            date=day,
            status=status.value,
            progress=compute_progress(previous_status, status, target, progress),
            target=target,
            completed_at=(
                datetime.now(timezone.utc) if status == CompletionStatus.DONE else None
            ),
            notes=existing.notes if existing is not None else None,
        )
        stored = await self._completions.upsert(completion)
        logger.info(
            "Habit %s of user %s on %s: %s -> %s",
            habit_id,
            user_id,
            day.isoformat(),
            previous_status.value,
            status.value,
        )

        await self._orchestrator.on_status_change(
            user_id, habit_id, habit.category_id, day, status, previous_status
        )
        return stored

    async def update_notes(
        self, user_id: str, habit_id: str, day: Union[str, date], notes: str
    ) -> Completion:
        """Attach notes to a day without touching its status."""
        habit = await self._owned_habit(user_id, habit_id)
        day = parse_iso_date(day)

        async with self._locks.hold(self._day_key(user_id, habit_id, day)):
            existing = await self._completions.get(user_id, day, habit_id)
            if existing is None:
                completion = Completion(
                    user_id=user_id,
                    habit_id=habit_id,
                    date=day,
                    status=CompletionStatus.PENDING.value,
                    progress=0.0,
                    target=habit.target_value,
                    notes=notes,
                )
            else:
                existing.notes = notes
                completion = existing
            return await self._completions.upsert(completion)

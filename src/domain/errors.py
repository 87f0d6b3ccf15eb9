"""
Typed domain errors for the stats engine.

Callers can tell a missing habit from a missing stats row, a lost write
race, or a fan-out where only some scopes were updated, and map each to an
appropriate response.
"""

from typing import Dict, Optional


class DomainError(Exception):
    """Base class for all domain-specific errors."""


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


class HabitNotFound(DomainError):
    """Habit does not exist, or exists but belongs to another user."""

    def __init__(self, habit_id: str, user_id: Optional[str] = None) -> None:
        self.habit_id = habit_id
        self.user_id = user_id
        if user_id is None:
            message = f"Habit {habit_id} could not be found"
        else:
            message = f"Habit {habit_id} could not be found for user {user_id}"
        super().__init__(message)


class StatsNotFound(DomainError):
    """No stats row exists for (user, scope, scope_id)."""

    def __init__(self, user_id: str, scope: str, scope_id: str = "") -> None:
        self.user_id = user_id
        self.scope = scope
        self.scope_id = scope_id
        super().__init__(
            f"No {scope} stats found for user {user_id}"
            + (f" and id {scope_id}" if scope_id else "")
        )


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


class StatsWriteConflict(DomainError):
    """The stats row changed between read and write (version mismatch)."""

    def __init__(self, user_id: str, scope: str, scope_id: str = "") -> None:
        self.user_id = user_id
        self.scope = scope
        self.scope_id = scope_id
        super().__init__(
            f"Concurrent update detected on {scope} stats for user {user_id}"
            + (f" and id {scope_id}" if scope_id else "")
        )


class AggregateUpdateFailure(DomainError):
    """One or more scope updates failed during a fan-out.

    Scopes that succeeded are not rolled back. ``failures`` maps a scope
    label (``"HABIT"``, ``"CATEGORY:<id>"``, ``"USER"``) to its exception.
    """

    def __init__(self, failures: Dict[str, BaseException]) -> None:
        self.failures = dict(failures)
        details = "; ".join(
            f"{scope}: {type(error).__name__}: {error}"
            for scope, error in self.failures.items()
        )
        super().__init__(
            f"Stats update failed for {len(self.failures)} scope(s): {details}"
        )

    @property
    def failed_scopes(self):
        return list(self.failures)

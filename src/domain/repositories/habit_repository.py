"""HabitRepository protocol: defines habit lookup contract."""

from datetime import date
from typing import List, Optional, Protocol, runtime_checkable


@runtime_checkable
class HabitRepository(Protocol):
    """Repository interface for Habit access."""

    async def get(self, habit_id: str) -> Optional[object]:
        """Look up a habit by ID.

        Args:
            habit_id: The habit's primary key.

        Returns:
            The Habit object, or None if not found.
        """
        ...

    async def list_by_user(
        self, user_id: str, category_id: Optional[str] = None
    ) -> List[object]:
        """All habits of a user, optionally restricted to one category."""
        ...

    async def list_by_user_and_date(self, user_id: str, day: date) -> List[object]:
        """Habits of a user whose start_date is on or before *day*."""
        ...

    async def list_user_ids(self) -> List[str]:
        """Distinct IDs of users owning at least one habit."""
        ...

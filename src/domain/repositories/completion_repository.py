"""CompletionRepository protocol: defines completion record contract."""

from datetime import date
from typing import List, Optional, Protocol, runtime_checkable


@runtime_checkable
class CompletionRepository(Protocol):
    """Repository interface for per-day completion records."""

    async def get(self, user_id: str, day: date, habit_id: str) -> Optional[object]:
        """Fetch the record for (user, day, habit).

        Returns:
            The Completion object, or None when the user took no action.
        """
        ...

    async def list_by_user_and_date_range(
        self, user_id: str, start: date, end: date
    ) -> List[object]:
        """All records of a user with start <= date <= end."""
        ...

    async def upsert(self, completion: object) -> object:
        """Insert or replace the record for the completion's (user, date, habit)."""
        ...

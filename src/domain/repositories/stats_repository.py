"""StatsRepository protocol: defines the stats aggregate storage contract."""

from typing import Optional, Protocol, runtime_checkable

from ...models.stats import StatsScope, StreakFields


@runtime_checkable
class StatsRepository(Protocol):
    """Repository interface for Stats rows keyed by (user, scope, scope_id)."""

    async def get(
        self, user_id: str, scope: StatsScope, scope_id: str = ""
    ) -> Optional[object]:
        """Fetch a stats row, or None if it does not exist."""
        ...

    async def put(self, stats: object) -> None:
        """Create or overwrite the row for the stats' key."""
        ...

    async def put_if_absent(self, stats: object) -> bool:
        """Create the row only if its key is free.

        Returns:
            True if the row was created, False if one already existed.
        """
        ...

    async def patch_streak_fields(
        self,
        user_id: str,
        scope: StatsScope,
        scope_id: str,
        fields: StreakFields,
        expected_version: Optional[int] = None,
    ) -> int:
        """Write the streak fields and bump the row version.

        Args:
            expected_version: When given, the write only applies if the stored
                version still matches; otherwise StatsWriteConflict is raised.

        Returns:
            The new version.
        """
        ...

"""SQLAlchemy implementation of StatsRepository."""

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.domain.errors import StatsNotFound, StatsWriteConflict
from src.models.stats import Stats, StatsScope, StreakFields

logger = logging.getLogger(__name__)


def _key_filter(user_id: str, scope: StatsScope, scope_id: str):
    return (
        Stats.user_id == user_id,
        Stats.scope == StatsScope(scope).value,
        Stats.scope_id == (scope_id or ""),
    )


class SqlAlchemyStatsRepository:
    """Concrete StatsRepository backed by SQLAlchemy async sessions.

    Writes through ``patch_streak_fields`` are conditional on the row version
    when the caller supplies one.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(
        self, user_id: str, scope: StatsScope, scope_id: str = ""
    ) -> Optional[Stats]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Stats).where(*_key_filter(user_id, scope, scope_id))
            )
            return result.scalar_one_or_none()

    async def put(self, stats: Stats) -> None:
        """Create the row, or overwrite every streak field of the existing one."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Stats).where(
                    *_key_filter(stats.user_id, stats.scope, stats.scope_id)
                )
            )
            existing = result.scalar_one_or_none()
            if existing is None:
                session.add(stats)
            else:
                existing.current_streak = stats.current_streak
                existing.longest_streak = stats.longest_streak
                existing.last_completed_date = stats.last_completed_date
                existing.total_completions = stats.total_completions
                existing.version = (existing.version or 0) + 1
            await session.commit()

    async def put_if_absent(self, stats: Stats) -> bool:
        """Insert the row unless one with the same key exists."""
        async with self._session_factory() as session:
            session.add(stats)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                logger.debug(
                    "Stats row %s/%s/%s already exists",
                    stats.user_id,
                    stats.scope,
                    stats.scope_id,
                )
                return False
            return True

    async def patch_streak_fields(
        self,
        user_id: str,
        scope: StatsScope,
        scope_id: str,
        fields: StreakFields,
        expected_version: Optional[int] = None,
    ) -> int:
        conditions = list(_key_filter(user_id, scope, scope_id))
        if expected_version is not None:
            conditions.append(Stats.version == expected_version)

        async with self._session_factory() as session:
            result = await session.execute(
                update(Stats)
                .where(*conditions)
                .values(
                    current_streak=max(0, fields.current_streak),
                    longest_streak=max(0, fields.longest_streak),
                    last_completed_date=fields.last_completed_date,
                    total_completions=max(0, fields.total_completions),
                    version=Stats.version + 1,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await session.rollback()
                exists = await session.execute(
                    select(Stats.id).where(*_key_filter(user_id, scope, scope_id))
                )
                if exists.scalar_one_or_none() is None:
                    raise StatsNotFound(user_id, StatsScope(scope).value, scope_id)
                raise StatsWriteConflict(user_id, StatsScope(scope).value, scope_id)

            version_result = await session.execute(
                select(Stats.version).where(*_key_filter(user_id, scope, scope_id))
            )
            new_version = version_result.scalar_one()
            await session.commit()
            return new_version

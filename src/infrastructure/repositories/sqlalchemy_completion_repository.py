"""SQLAlchemy implementation of CompletionRepository."""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.models.completion import Completion

logger = logging.getLogger(__name__)


class SqlAlchemyCompletionRepository:
    """Concrete CompletionRepository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(
        self, user_id: str, day: date, habit_id: str
    ) -> Optional[Completion]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Completion).where(
                    Completion.user_id == user_id,
                    Completion.date == day,
                    Completion.habit_id == habit_id,
                )
            )
            return result.scalar_one_or_none()

    async def list_by_user_and_date_range(
        self, user_id: str, start: date, end: date
    ) -> List[Completion]:
        """Get a user's completion records between two dates, inclusive."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Completion)
                .where(
                    Completion.user_id == user_id,
                    Completion.date >= start,
                    Completion.date <= end,
                )
                .order_by(Completion.date, Completion.habit_id)
            )
            return list(result.scalars().all())

    async def upsert(self, completion: Completion) -> Completion:
        """Insert the record, or overwrite the one already stored for its key."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Completion).where(
                    Completion.user_id == completion.user_id,
                    Completion.date == completion.date,
                    Completion.habit_id == completion.habit_id,
                )
            )
            existing = result.scalar_one_or_none()
            if existing is None:
                session.add(completion)
                target = completion
            else:
                existing.status = completion.status
                existing.progress = completion.progress
                existing.target = completion.target
                existing.completed_at = completion.completed_at
                existing.notes = completion.notes
                target = existing
            await session.commit()
            await session.refresh(target)
            logger.debug(
                "Stored completion %s/%s on %s: %s",
                target.user_id,
                target.habit_id,
                target.date,
                target.status,
            )
            return target

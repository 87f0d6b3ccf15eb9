"""SQLAlchemy implementation of HabitRepository."""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.models.habit import Habit

logger = logging.getLogger(__name__)


class SqlAlchemyHabitRepository:
    """Concrete HabitRepository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, habit_id: str) -> Optional[Habit]:
        """Look up a habit by ID."""
        async with self._session_factory() as session:
            return await session.get(Habit, habit_id)

    async def list_by_user(
        self, user_id: str, category_id: Optional[str] = None
    ) -> List[Habit]:
        """Get all habits belonging to a user, oldest first."""
        query = select(Habit).where(Habit.user_id == user_id)
        if category_id is not None:
            query = query.where(Habit.category_id == category_id)
        async with self._session_factory() as session:
            result = await session.execute(
                query.order_by(Habit.start_date, Habit.id)
            )
            return list(result.scalars().all())

    async def list_by_user_and_date(self, user_id: str, day: date) -> List[Habit]:
        """Get a user's habits that have started on or before *day*."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Habit)
                .where(Habit.user_id == user_id, Habit.start_date <= day)
                .order_by(Habit.start_date, Habit.id)
            )
            return list(result.scalars().all())

    async def list_user_ids(self) -> List[str]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Habit.user_id).distinct().order_by(Habit.user_id)
            )
            return list(result.scalars().all())

    async def add(self, habit: Habit) -> Habit:
        """Persist a new habit."""
        async with self._session_factory() as session:
            session.add(habit)
            await session.commit()
            await session.refresh(habit)
            logger.debug("Stored habit %s for user %s", habit.id, habit.user_id)
            return habit

"""
Completion model: one row per (user, date, habit) recording what the user did.
"""

import datetime
import enum
from typing import Optional

from sqlalchemy import Date, DateTime, Float, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class CompletionStatus(str, enum.Enum):
    PENDING = "pending"
    SKIPPED = "skipped"
    DONE = "done"


# PENDING first, DONE last when listing a day's habits.
STATUS_ORDER = {
    CompletionStatus.PENDING: 0,
    CompletionStatus.SKIPPED: 1,
    CompletionStatus.DONE: 2,
}


class Completion(Base, TimestampMixin):
    """Status of one habit on one calendar day.

    A missing row means the same thing as a PENDING row.
    """

    __tablename__ = "completions"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "date", "habit_id", name="uq_completions_user_date_habit"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    habit_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)

    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=CompletionStatus.PENDING.value
    )
    progress: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    target: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    completed_at: Mapped[Optional[datetime.datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    @property
    def is_done(self) -> bool:
        return self.status == CompletionStatus.DONE.value

    def __repr__(self) -> str:
        return (
            f"<Completion(habit_id={self.habit_id}, date={self.date}, "
            f"status={self.status})>"
        )

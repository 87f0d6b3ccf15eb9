"""
Stats model: streak aggregates per habit, per category and per user.
"""

import enum
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import Date, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class StatsScope(str, enum.Enum):
    HABIT = "HABIT"
    CATEGORY = "CATEGORY"
    USER = "USER"


# USER rows have no scope id.
USER_SCOPE_ID = ""


@dataclass(frozen=True)
class StreakFields:
    """The mutable part of a stats row, written as one unit."""

    current_streak: int
    longest_streak: int
    last_completed_date: Optional[date]
    total_completions: int


class Stats(Base, TimestampMixin):
    """Aggregate row keyed by (user_id, scope, scope_id).

    ``version`` is bumped on every write; writers pass the version they read
    so that a concurrent write is detected instead of overwritten.
    """

    __tablename__ = "stats"
    __table_args__ = (
        UniqueConstraint("user_id", "scope", "scope_id", name="uq_stats_user_scope"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    scope: Mapped[str] = mapped_column(String(16), nullable=False)
    scope_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")

    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_completed_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    total_completions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    @classmethod
    def zeroed(cls, user_id: str, scope: StatsScope, scope_id: str = "") -> "Stats":
        """A fresh row with every counter at zero."""
        return cls(
            user_id=user_id,
            scope=StatsScope(scope).value,
            scope_id=scope_id or "",
            current_streak=0,
            longest_streak=0,
            last_completed_date=None,
            total_completions=0,
            version=1,
        )

    def streak_fields(self) -> StreakFields:
        return StreakFields(
            current_streak=self.current_streak or 0,
            longest_streak=self.longest_streak or 0,
            last_completed_date=self.last_completed_date,
            total_completions=self.total_completions or 0,
        )

    def __repr__(self) -> str:
        return (
            f"<Stats(user_id={self.user_id}, scope={self.scope}, "
            f"scope_id={self.scope_id}, current={self.current_streak}, "
            f"longest={self.longest_streak})>"
        )

"""
Habit model: a recurring task definition and its schedule.
"""

import enum
import uuid
from datetime import date
from typing import Optional

from sqlalchemy import Boolean, Date, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin
from .value_objects import PeriodType, Recurrence, parse_recurrence

# Editing any of these can move due dates or change the category a habit
# counts towards, so stats must be rebuilt.
SCHEDULE_FIELDS = frozenset(
    {"start_date", "end_date", "period_type", "period_value", "category_id"}
)


class DayPeriod(str, enum.Enum):
    """Time of day a habit is usually performed; drives list ordering."""

    MORNING = "Morning"
    AFTERNOON = "Afternoon"
    EVENING = "Evening"
    ANYTIME = "Anytime"


class Habit(Base, TimestampMixin):
    """
    A habit owned by a user, optionally grouped in a category.
    """

    __tablename__ = "habits"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    category_id: Mapped[str] = mapped_column(
        String(64), nullable=False, default="", index=True
    )

    # Display
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    emoji: Mapped[str] = mapped_column(String(16), nullable=False, default="📝")
    color: Mapped[str] = mapped_column(String(16), nullable=False, default="#000000")

    # Target quantity, stored as the string the user typed ("1", "2.5")
    value: Mapped[str] = mapped_column(String(32), nullable=False, default="1")
    unit: Mapped[str] = mapped_column(String(16), nullable=False, default="count")
    period: Mapped[str] = mapped_column(
        String(16), nullable=False, default=DayPeriod.ANYTIME.value
    )

    # Scheduling
    period_type: Mapped[str] = mapped_column(
        String(32), nullable=False, default=PeriodType.EVERY_DAY.value
    )
    period_value: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Status
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # --- Domain behavior ---

    @property
    def recurrence(self) -> Recurrence:
        return parse_recurrence(self.period_type, self.period_value)

    @property
    def target_value(self) -> float:
        """Numeric target parsed from ``value``; 0 when it is not a number."""
        try:
            return float(self.value)
        except (TypeError, ValueError):
            return 0.0

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id

    def __repr__(self) -> str:
        return (
            f"<Habit(id={self.id}, user_id={self.user_id}, "
            f"period_type={self.period_type}, start_date={self.start_date})>"
        )

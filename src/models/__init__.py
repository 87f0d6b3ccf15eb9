from .base import Base, TimestampMixin
from .completion import Completion, CompletionStatus
from .habit import DayPeriod, Habit
from .stats import Stats, StatsScope, StreakFields
from .value_objects import PeriodType

__all__ = [
    "Base",
    "TimestampMixin",
    "Habit",
    "DayPeriod",
    "PeriodType",
    "Completion",
    "CompletionStatus",
    "Stats",
    "StatsScope",
    "StreakFields",
]

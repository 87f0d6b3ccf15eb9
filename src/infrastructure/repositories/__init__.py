from .sqlalchemy_completion_repository import SqlAlchemyCompletionRepository
from .sqlalchemy_habit_repository import SqlAlchemyHabitRepository
from .sqlalchemy_stats_repository import SqlAlchemyStatsRepository

__all__ = [
    "SqlAlchemyCompletionRepository",
    "SqlAlchemyHabitRepository",
    "SqlAlchemyStatsRepository",
]

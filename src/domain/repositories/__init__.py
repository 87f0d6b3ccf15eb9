from .completion_repository import CompletionRepository
from .habit_repository import HabitRepository
from .stats_repository import StatsRepository

__all__ = ["CompletionRepository", "HabitRepository", "StatsRepository"]

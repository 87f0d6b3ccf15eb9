"""
Streak & stats engine.

Scope updaters keep one Stats row per habit, category and user in line with
completion changes; the orchestrator fans every event out to all three and
the dashboard aggregator serves the monthly read view.
"""

from .base import UpdateStrategy
from .category_stats_updater import CategoryStatsUpdater
from .dashboard import DashboardAggregator, HabitForSelectedDate, StatsDashboard
from .habit_stats_updater import HabitStatsUpdater
from .orchestrator import StatsOrchestrator
from .user_stats_updater import UserStatsUpdater

__all__ = [
    "CategoryStatsUpdater",
    "DashboardAggregator",
    "HabitForSelectedDate",
    "HabitStatsUpdater",
    "StatsDashboard",
    "StatsOrchestrator",
    "UpdateStrategy",
    "UserStatsUpdater",
]

"""
Service Registry - wires the stats engine together.

Services are registered lazily and instantiated on first access. All of them
share one set of per-key locks so that every writer of a stats row in this
process goes through the same lock.

Usage:
    from src.core.database import get_session_factory
    from src.core.services import setup_services, get_service

    setup_services(await get_session_factory())
    orchestrator = get_service(Services.STATS)
"""

import logging
from datetime import date
from typing import Any, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .container import get_container, reset_container
from .typed_config import StatsEngineConfig

logger = logging.getLogger(__name__)


class Services:
    """Constants for service names."""

    SETTINGS = "settings"
    CONFIG = "stats_config"
    LOCKS = "stats_locks"
    HABIT_STORE = "habit_store"
    COMPLETION_STORE = "completion_store"
    STATS_STORE = "stats_store"
    TODO_LIST = "todo_list"
    HABIT_UPDATER = "habit_stats_updater"
    CATEGORY_UPDATER = "category_stats_updater"
    USER_UPDATER = "user_stats_updater"
    DASHBOARD = "dashboard"
    STATS = "stats"
    COMPLETIONS = "completions"
    MISSED_DAY_JOB = "missed_day_job"


def setup_services(
    session_factory: async_sessionmaker[AsyncSession],
    config: Optional[StatsEngineConfig] = None,
    today_provider: Optional[Callable[[], date]] = None,
) -> None:
    """
    Register all engine services in the container.

    Args:
        session_factory: Factory the repositories open their sessions from
        config: Engine config; loaded from defaults.yaml and env when omitted
        today_provider: Override of "today" (tests, backfills)
    """
    container = get_container()

    # ========================================================================
    # Configuration
    # ========================================================================

    def create_settings(c):
        from .config import get_settings

        return get_settings()

    container.register(Services.SETTINGS, create_settings)

    def create_config(c):
        if config is not None:
            return config
        from .typed_config_loader import get_stats_engine_config

        return get_stats_engine_config()

    container.register(Services.CONFIG, create_config)

    def create_locks(c):
        from ..utils.keyed_locks import KeyedLocks

        return KeyedLocks()

    container.register(Services.LOCKS, create_locks)

    # ========================================================================
    # Stores
    # ========================================================================

    def create_habit_store(c):
        from ..infrastructure.repositories import SqlAlchemyHabitRepository

        return SqlAlchemyHabitRepository(session_factory)

    container.register(Services.HABIT_STORE, create_habit_store)

    def create_completion_store(c):
        from ..infrastructure.repositories import SqlAlchemyCompletionRepository

        return SqlAlchemyCompletionRepository(session_factory)

    container.register(Services.COMPLETION_STORE, create_completion_store)

    def create_stats_store(c):
        from ..infrastructure.repositories import SqlAlchemyStatsRepository

        return SqlAlchemyStatsRepository(session_factory)

    container.register(Services.STATS_STORE, create_stats_store)

    # ========================================================================
    # Stats engine
    # ========================================================================

    def create_todo_list(c):
        from ..services.todo_list_service import TodoListService

        return TodoListService(
            c.get(Services.HABIT_STORE), c.get(Services.COMPLETION_STORE)
        )

    container.register(Services.TODO_LIST, create_todo_list)

    def updater_factory(updater_cls):
        def create(c):
            return updater_cls(
                c.get(Services.HABIT_STORE),
                c.get(Services.COMPLETION_STORE),
                c.get(Services.STATS_STORE),
                todo_list=c.get(Services.TODO_LIST),
                locks=c.get(Services.LOCKS),
                config=c.get(Services.CONFIG),
                today_provider=today_provider,
            )

        return create

    from ..services.stats import (
        CategoryStatsUpdater,
        HabitStatsUpdater,
        UserStatsUpdater,
    )

    container.register(Services.HABIT_UPDATER, updater_factory(HabitStatsUpdater))
    container.register(Services.CATEGORY_UPDATER, updater_factory(CategoryStatsUpdater))
    container.register(Services.USER_UPDATER, updater_factory(UserStatsUpdater))

    def create_dashboard(c):
        from ..services.stats import DashboardAggregator

        return DashboardAggregator(
            c.get(Services.HABIT_STORE),
            c.get(Services.COMPLETION_STORE),
            c.get(Services.STATS_STORE),
            c.get(Services.TODO_LIST),
            config=c.get(Services.CONFIG),
        )

    container.register(Services.DASHBOARD, create_dashboard)

    def create_orchestrator(c):
        from ..services.stats import StatsOrchestrator

        return StatsOrchestrator(
            c.get(Services.HABIT_STORE),
            c.get(Services.STATS_STORE),
            c.get(Services.HABIT_UPDATER),
            c.get(Services.CATEGORY_UPDATER),
            c.get(Services.USER_UPDATER),
            c.get(Services.DASHBOARD),
            config=c.get(Services.CONFIG),
            today_provider=today_provider,
        )

    container.register(Services.STATS, create_orchestrator)

    # ========================================================================
    # Callers of the engine
    # ========================================================================

    def create_completion_service(c):
        from ..services.completion_service import CompletionService

        return CompletionService(
            c.get(Services.HABIT_STORE),
            c.get(Services.COMPLETION_STORE),
            c.get(Services.STATS),
            locks=c.get(Services.LOCKS),
        )

    container.register(Services.COMPLETIONS, create_completion_service)

    def create_missed_day_job(c):
        from ..services.missed_day_job import MissedDayJob

        return MissedDayJob(
            c.get(Services.HABIT_STORE),
            c.get(Services.TODO_LIST),
            c.get(Services.STATS),
            config=c.get(Services.CONFIG),
            today_provider=today_provider,
        )

    container.register(Services.MISSED_DAY_JOB, create_missed_day_job)

    logger.info("All services registered in container")


def get_service(name: str) -> Any:
    """
    Get a service by name from the container.

    Raises:
        KeyError: If service is not registered
    """
    return get_container().get(name)


def reset_services() -> None:
    """Drop every registration (useful for testing)."""
    reset_container()
    logger.info("Services reset")

import logging
import os
from datetime import date

import pytest

# Set test environment variables
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"


@pytest.fixture(autouse=True)
def _strip_file_handlers():
    """Remove file handlers from root logger so tests never write to the log files."""
    root = logging.getLogger()
    saved = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
    for h in saved:
        root.removeHandler(h)
    yield
    # Restore any that were removed (and strip any new ones tests may have added)
    for h in list(root.handlers):
        if isinstance(h, logging.FileHandler):
            root.removeHandler(h)
    for h in saved:
        root.addHandler(h)


@pytest.fixture
async def async_engine(tmp_path):
    """File-backed SQLite engine with all tables.

    A file (not :memory:) so that concurrently running repositories each get
    their own connection to the same database.
    """
    from sqlalchemy.ext.asyncio import create_async_engine

    from src.models.base import Base

    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'streaks.db'}", echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine):
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def habit_store(session_factory):
    from src.infrastructure.repositories import SqlAlchemyHabitRepository

    return SqlAlchemyHabitRepository(session_factory)


@pytest.fixture
def completion_store(session_factory):
    from src.infrastructure.repositories import SqlAlchemyCompletionRepository

    return SqlAlchemyCompletionRepository(session_factory)


@pytest.fixture
def stats_store(session_factory):
    from src.infrastructure.repositories import SqlAlchemyStatsRepository

    return SqlAlchemyStatsRepository(session_factory)


class Clock:
    """Mutable "today" handed to services as their today_provider."""

    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest.fixture
def clock():
    return Clock(date(2025, 1, 29))


@pytest.fixture
def engine_config():
    from src.core.typed_config import StatsEngineConfig

    return StatsEngineConfig(write_base_delay=0.0)


@pytest.fixture
def stats_engine(
    session_factory, habit_store, completion_store, stats_store, clock, engine_config
):
    """All services of the engine wired the way setup_services wires them."""
    from src.core.container import reset_container
    from src.core.services import Services, get_service, setup_services

    reset_container()
    setup_services(session_factory, config=engine_config, today_provider=clock)

    class Engine:
        habits = habit_store
        completions = completion_store
        stats = stats_store
        orchestrator = get_service(Services.STATS)
        completion_service = get_service(Services.COMPLETIONS)
        todo_list = get_service(Services.TODO_LIST)
        missed_day_job = get_service(Services.MISSED_DAY_JOB)
        habit_updater = get_service(Services.HABIT_UPDATER)
        category_updater = get_service(Services.CATEGORY_UPDATER)
        user_updater = get_service(Services.USER_UPDATER)

    yield Engine
    reset_container()


@pytest.fixture
def make_habit(habit_store):
    """Store a habit and return it."""
    from src.models.habit import Habit

    async def _make(**overrides):
        values = {
            "user_id": "user-1",
            "category_id": "health",
            "title": "Habit",
            "period_type": "every_day",
            "period_value": None,
            "start_date": date(2025, 1, 1),
        }
        values.update(overrides)
        return await habit_store.add(Habit(**values))

    return _make


@pytest.fixture
def mark(completion_store):
    """Store a completion row directly, bypassing the stats engine."""
    from src.models.completion import Completion, CompletionStatus

    async def _mark(habit, day, status=CompletionStatus.DONE):
        return await completion_store.upsert(
            Completion(
                user_id=habit.user_id,
                habit_id=habit.id,
                date=day,
                status=CompletionStatus(status).value,
                progress=0.0,
                target=1.0,
            )
        )

    return _mark


@pytest.fixture
def create_habit(stats_engine, make_habit):
    """Store a habit and bootstrap its stats rows the way the app does."""

    async def _create(**overrides):
        habit = await make_habit(**overrides)
        await stats_engine.orchestrator.on_habit_created(
            habit.user_id, habit.id, habit.category_id
        )
        return habit

    return _create


@pytest.fixture
def scope_stats(stats_store):
    """Fetch (current, longest, total, last) of one stats row."""
    from src.models.stats import StatsScope

    async def _get(scope, scope_id="", user_id="user-1"):
        row = await stats_store.get(user_id, StatsScope(scope), scope_id)
        if row is None:
            return None
        return (
            row.current_streak,
            row.longest_streak,
            row.total_completions,
            row.last_completed_date,
        )

    return _get

"""
Integration tests for the SQLAlchemy repository implementations.

Uses a file-backed SQLite database per test to verify real persistence.
Covers:
- SqlAlchemyHabitRepository: get, list_by_user, list_by_user_and_date, list_user_ids
- SqlAlchemyCompletionRepository: get, list_by_user_and_date_range, upsert
- SqlAlchemyStatsRepository: get, put, put_if_absent, patch_streak_fields
"""

from datetime import date

import pytest

from src.domain.errors import StatsNotFound, StatsWriteConflict
from src.models.completion import Completion, CompletionStatus
from src.models.stats import Stats, StatsScope, StreakFields


class TestSqlAlchemyHabitRepository:
    @pytest.mark.asyncio
    async def test_add_and_get(self, habit_store, make_habit):
        habit = await make_habit(title="Read")

        fetched = await habit_store.get(habit.id)
        assert fetched is not None
        assert fetched.title == "Read"
        assert fetched.active is True
        assert fetched.period == "Anytime"

    @pytest.mark.asyncio
    async def test_get_missing(self, habit_store):
        assert await habit_store.get("nope") is None

    @pytest.mark.asyncio
    async def test_list_by_user_and_category(self, habit_store, make_habit):
        await make_habit(title="Run", category_id="health")
        await make_habit(title="Write", category_id="work")
        await make_habit(title="Other", user_id="user-2")

        all_habits = await habit_store.list_by_user("user-1")
        health = await habit_store.list_by_user("user-1", category_id="health")

        assert {h.title for h in all_habits} == {"Run", "Write"}
        assert [h.title for h in health] == ["Run"]

    @pytest.mark.asyncio
    async def test_list_by_user_and_date_excludes_future_habits(
        self, habit_store, make_habit
    ):
        await make_habit(title="Old", start_date=date(2025, 1, 1))
        await make_habit(title="New", start_date=date(2025, 2, 1))

        habits = await habit_store.list_by_user_and_date("user-1", date(2025, 1, 31))
        assert [h.title for h in habits] == ["Old"]

    @pytest.mark.asyncio
    async def test_list_user_ids_distinct(self, habit_store, make_habit):
        await make_habit(user_id="b")
        await make_habit(user_id="a")
        await make_habit(user_id="a")

        assert await habit_store.list_user_ids() == ["a", "b"]


class TestSqlAlchemyCompletionRepository:
    @pytest.mark.asyncio
    async def test_upsert_inserts_then_updates(self, completion_store, make_habit, mark):
        habit = await make_habit()
        day = date(2025, 1, 10)

        await mark(habit, day, CompletionStatus.DONE)
        await mark(habit, day, CompletionStatus.SKIPPED)

        stored = await completion_store.get("user-1", day, habit.id)
        assert stored.status == "skipped"

        rows = await completion_store.list_by_user_and_date_range("user-1", day, day)
        assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_upsert_keeps_notes(self, completion_store, make_habit):
        habit = await make_habit()
        await completion_store.upsert(
            Completion(
                user_id="user-1",
                habit_id=habit.id,
                date=date(2025, 1, 10),
                status="pending",
                notes="tired",
            )
        )
        stored = await completion_store.get("user-1", date(2025, 1, 10), habit.id)
        assert stored.notes == "tired"

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, completion_store):
        assert await completion_store.get("user-1", date(2025, 1, 1), "h") is None

    @pytest.mark.asyncio
    async def test_date_range_inclusive_and_ordered(
        self, completion_store, make_habit, mark
    ):
        habit = await make_habit()
        for day in (12, 10, 11, 13):
            await mark(habit, date(2025, 1, day))

        rows = await completion_store.list_by_user_and_date_range(
            "user-1", date(2025, 1, 10), date(2025, 1, 12)
        )
        assert [r.date for r in rows] == [
            date(2025, 1, 10),
            date(2025, 1, 11),
            date(2025, 1, 12),
        ]


class TestSqlAlchemyStatsRepository:
    @pytest.mark.asyncio
    async def test_put_and_get(self, stats_store):
        await stats_store.put(Stats.zeroed("user-1", StatsScope.HABIT, "h-1"))

        row = await stats_store.get("user-1", StatsScope.HABIT, "h-1")
        assert row is not None
        assert row.current_streak == 0
        assert row.version == 1

    @pytest.mark.asyncio
    async def test_put_overwrites_and_bumps_version(self, stats_store):
        await stats_store.put(Stats.zeroed("user-1", StatsScope.HABIT, "h-1"))
        replacement = Stats.zeroed("user-1", StatsScope.HABIT, "h-1")
        replacement.current_streak = 4
        await stats_store.put(replacement)

        row = await stats_store.get("user-1", StatsScope.HABIT, "h-1")
        assert row.current_streak == 4
        assert row.version == 2

    @pytest.mark.asyncio
    async def test_put_if_absent(self, stats_store):
        first = await stats_store.put_if_absent(Stats.zeroed("user-1", StatsScope.USER))
        second = await stats_store.put_if_absent(Stats.zeroed("user-1", StatsScope.USER))

        assert first is True
        assert second is False

    @pytest.mark.asyncio
    async def test_scopes_are_separate(self, stats_store):
        await stats_store.put(Stats.zeroed("user-1", StatsScope.CATEGORY, "health"))

        assert await stats_store.get("user-1", StatsScope.CATEGORY, "work") is None
        assert await stats_store.get("user-1", StatsScope.USER) is None

    @pytest.mark.asyncio
    async def test_patch_with_matching_version(self, stats_store):
        await stats_store.put(Stats.zeroed("user-1", StatsScope.USER))
        fields = StreakFields(3, 5, date(2025, 1, 10), 12)

        new_version = await stats_store.patch_streak_fields(
            "user-1", StatsScope.USER, "", fields, expected_version=1
        )

        row = await stats_store.get("user-1", StatsScope.USER)
        assert new_version == 2
        assert row.streak_fields() == fields

    @pytest.mark.asyncio
    async def test_patch_with_stale_version_conflicts(self, stats_store):
        await stats_store.put(Stats.zeroed("user-1", StatsScope.USER))
        fields = StreakFields(1, 1, date(2025, 1, 10), 1)
        await stats_store.patch_streak_fields(
            "user-1", StatsScope.USER, "", fields, expected_version=1
        )

        with pytest.raises(StatsWriteConflict):
            await stats_store.patch_streak_fields(
                "user-1", StatsScope.USER, "", fields, expected_version=1
            )

    @pytest.mark.asyncio
    async def test_patch_missing_row(self, stats_store):
        with pytest.raises(StatsNotFound):
            await stats_store.patch_streak_fields(
                "user-1", StatsScope.HABIT, "h-1", StreakFields(1, 1, None, 1)
            )

    @pytest.mark.asyncio
    async def test_patch_clamps_negative_counts(self, stats_store):
        await stats_store.put(Stats.zeroed("user-1", StatsScope.HABIT, "h-1"))
        await stats_store.patch_streak_fields(
            "user-1", StatsScope.HABIT, "h-1", StreakFields(-1, 0, None, -3)
        )

        row = await stats_store.get("user-1", StatsScope.HABIT, "h-1")
        assert row.current_streak == 0
        assert row.total_completions == 0

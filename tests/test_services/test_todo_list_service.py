"""
Tests for TodoListService.

Covers:
- Which habits are listed on a day (active, started, due)
- Missing completion records reported as PENDING
- Ordering by status, then time of day
- Category and habit filters
- Day completeness
"""

from datetime import date

import pytest

from src.models.completion import CompletionStatus
from src.services.todo_list_service import TodoListService, all_done

TODAY = date(2025, 1, 29)  # Wednesday


@pytest.fixture
def todo_list(habit_store, completion_store):
    return TodoListService(habit_store, completion_store)


class TestGetTodoList:
    @pytest.mark.asyncio
    async def test_lists_only_due_active_started_habits(self, todo_list, make_habit):
        due = await make_habit(title="Due")
        await make_habit(title="Inactive", active=False)
        await make_habit(title="Future", start_date=date(2025, 2, 1))
        await make_habit(title="Ended", end_date=date(2025, 1, 28))
        await make_habit(
            title="Mondays", period_type="specific_days_week", period_value="MON"
        )

        items = await todo_list.get_todo_list("user-1", TODAY)
        assert [item.habit_id for item in items] == [due.id]

    @pytest.mark.asyncio
    async def test_missing_record_is_pending(self, todo_list, make_habit):
        await make_habit()

        (item,) = await todo_list.get_todo_list("user-1", TODAY)
        assert item.status == CompletionStatus.PENDING
        assert item.has_record is False
        assert item.progress == 0.0

    @pytest.mark.asyncio
    async def test_sorted_by_status_then_period(self, todo_list, make_habit, mark):
        done_morning = await make_habit(title="A", period="Morning")
        pending_evening = await make_habit(title="B", period="Evening")
        pending_morning = await make_habit(title="C", period="Morning")
        skipped = await make_habit(title="D", period="Anytime")
        await mark(done_morning, TODAY, CompletionStatus.DONE)
        await mark(skipped, TODAY, CompletionStatus.SKIPPED)

        items = await todo_list.get_todo_list("user-1", TODAY)
        assert [item.habit_id for item in items] == [
            pending_morning.id,
            pending_evening.id,
            skipped.id,
            done_morning.id,
        ]
        assert items[-1].has_record is True

    @pytest.mark.asyncio
    async def test_filters(self, todo_list, make_habit):
        health = await make_habit(category_id="health")
        work = await make_habit(category_id="work")

        by_category = await todo_list.get_todo_list("user-1", TODAY, category_id="work")
        by_habit = await todo_list.get_todo_list("user-1", TODAY, habit_id=health.id)

        assert [item.habit_id for item in by_category] == [work.id]
        assert [item.habit_id for item in by_habit] == [health.id]

    @pytest.mark.asyncio
    async def test_other_users_not_listed(self, todo_list, make_habit):
        await make_habit(user_id="user-2")
        assert await todo_list.get_todo_list("user-1", TODAY) == []


class TestGetTodoLists:
    @pytest.mark.asyncio
    async def test_one_entry_per_day(self, todo_list, make_habit, mark):
        habit = await make_habit(
            period_type="specific_days_week", period_value="MON,WED"
        )
        await mark(habit, date(2025, 1, 27))

        lists = await todo_list.get_todo_lists(
            "user-1", date(2025, 1, 27), date(2025, 1, 29)
        )
        assert list(lists) == [date(2025, 1, 27), date(2025, 1, 28), date(2025, 1, 29)]
        assert lists[date(2025, 1, 27)][0].is_done
        assert lists[date(2025, 1, 28)] == []
        assert lists[date(2025, 1, 29)][0].status == CompletionStatus.PENDING

    @pytest.mark.asyncio
    async def test_habit_started_mid_range(self, todo_list, make_habit):
        await make_habit(start_date=date(2025, 1, 28))

        lists = await todo_list.get_todo_lists(
            "user-1", date(2025, 1, 27), date(2025, 1, 28)
        )
        assert lists[date(2025, 1, 27)] == []
        assert len(lists[date(2025, 1, 28)]) == 1


class TestDayComplete:
    @pytest.mark.asyncio
    async def test_nothing_due_is_not_complete(self, todo_list):
        assert await todo_list.is_day_complete("user-1", TODAY) is False

    @pytest.mark.asyncio
    async def test_all_due_done(self, todo_list, make_habit, mark):
        first = await make_habit()
        second = await make_habit()
        await mark(first, TODAY)
        assert await todo_list.is_day_complete("user-1", TODAY) is False

        await mark(second, TODAY)
        assert await todo_list.is_day_complete("user-1", TODAY) is True

    @pytest.mark.asyncio
    async def test_category_scoped(self, todo_list, make_habit, mark):
        health = await make_habit(category_id="health")
        await make_habit(category_id="work")
        await mark(health, TODAY)

        assert await todo_list.is_day_complete("user-1", TODAY, "health") is True
        assert await todo_list.is_day_complete("user-1", TODAY) is False

    def test_all_done_empty(self):
        assert all_done([]) is False

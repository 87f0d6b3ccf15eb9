"""Tests for building completed-date sets from completion records."""

from datetime import date

from src.domain.completed_dates import (
    done_index,
    habit_completed_dates,
    scope_completed_dates,
)
from src.models.completion import Completion
from src.models.habit import Habit

D1 = date(2025, 1, 6)  # Monday
D2 = date(2025, 1, 7)


def _record(habit_id, day, status="done"):
    return Completion(user_id="u", habit_id=habit_id, date=day, status=status)


def _habit(habit_id, period_type="every_day", period_value=None):
    return Habit(
        id=habit_id,
        period_type=period_type,
        period_value=period_value,
        start_date=date(2025, 1, 1),
        end_date=None,
    )


class TestDoneIndex:
    def test_only_done_records(self):
        index = done_index(
            [_record("a", D1), _record("b", D1, "skipped"), _record("a", D2, "pending")]
        )
        assert index[D1] == {"a"}
        assert D2 not in index


class TestHabitCompletedDates:
    def test_filters_by_habit(self):
        records = [_record("a", D1), _record("b", D2), _record("a", D2, "skipped")]
        assert habit_completed_dates(records, "a") == {D1}


class TestScopeCompletedDates:
    def test_every_due_habit_must_be_done(self):
        habits = [_habit("a"), _habit("b")]
        records = [_record("a", D1), _record("b", D1), _record("a", D2)]
        assert scope_completed_dates(habits, records, [D1, D2]) == {D1}

    def test_habit_not_due_does_not_block(self):
        # "b" is only due on Mondays
        habits = [_habit("a"), _habit("b", "specific_days_week", "MON")]
        records = [_record("a", D1), _record("b", D1), _record("a", D2)]
        assert scope_completed_dates(habits, records, [D1, D2]) == {D1, D2}

    def test_day_with_nothing_due_is_not_complete(self):
        habits = [_habit("b", "specific_days_week", "MON")]
        assert scope_completed_dates(habits, [], [D2]) == set()

"""
Streak arithmetic over due dates and completed dates.

A streak is a run of consecutive *due* dates that were all completed. Dates a
habit is not due on are never part of the input, so they can never break a
run.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import AbstractSet, Iterable, Optional, Sequence


@dataclass(frozen=True)
class StreakResult:
    current_streak: int = 0
    longest_streak: int = 0
    last_completed_date: Optional[date] = None


@dataclass(frozen=True)
class StreakUpTo:
    streak: int = 0
    last_completed_date: Optional[date] = None


def _walk(scheduled: Sequence[date], completed: AbstractSet[date]):
    run = 0
    longest = 0
    last_completed = None
    run_before_gap = 0
    for day in scheduled:
        if day in completed:
            run += 1
            longest = max(longest, run)
            last_completed = day
        else:
            if run > 0:
                run_before_gap = run
            run = 0
    return run, longest, last_completed, run_before_gap


def compute_full_streak(
    scheduled: Sequence[date],
    completed: AbstractSet[date],
    today: Optional[date] = None,
) -> StreakResult:
    """Current and longest streak for an ascending list of due dates.

    If the last due date is *today*, it is not completed yet, and the run was
    alive through the previous due date, the current streak is that run: the
    user still has the rest of today to act.
    """
    if not scheduled:
        return StreakResult()

    trailing, longest, last_completed, run_before_gap = _walk(scheduled, completed)

    current = trailing
    if (
        today is not None
        and len(scheduled) >= 2
        and scheduled[-1] == today
        and today not in completed
        and last_completed == scheduled[-2]
    ):
        current = run_before_gap

    return StreakResult(
        current_streak=current,
        longest_streak=longest,
        last_completed_date=last_completed,
    )


def compute_streak_up_to(
    scheduled: Sequence[date],
    completed: AbstractSet[date],
    cutoff: date,
) -> StreakUpTo:
    """Trailing streak as of *cutoff* (inclusive), without the grace rule."""
    window = [day for day in scheduled if day <= cutoff]
    trailing, _, last_completed, _ = _walk(window, completed)
    return StreakUpTo(streak=trailing, last_completed_date=last_completed)


def best_consecutive_run(days: Iterable[date]) -> int:
    """Longest run of back-to-back calendar days in *days*."""
    best = 0
    run = 0
    previous = None
    for day in sorted(set(days)):
        if previous is not None and day - previous == timedelta(days=1):
            run += 1
        else:
            run = 1
        best = max(best, run)
        previous = day
    return best

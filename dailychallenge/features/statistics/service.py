"""
Streak and completion statistics over a user's assignment history.

All calculations are deterministic: "today" is supplied by the caller (or
derived from the configured challenge timezone) rather than read implicitly.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, List, Optional

from dailychallenge.core.config import settings
from dailychallenge.features.challenges.store import ChallengeStore
from dailychallenge.models.challenge import Assignment
from dailychallenge.models.dates import local_today
from dailychallenge.models.stats import UserStats

ONE_DAY = timedelta(days=1)


def completion_rate(completed: int, total: int) -> int:
    """Percentage of completed assignments, rounded half up; 0 for no assignments."""
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def current_streak(history: List[Assignment], today: date) -> int:
    """
    Consecutive completed days ending at the most recent assignment.

    ``history`` is ordered most recent first. A missing row for today keeps a
    streak that ended yesterday (or earlier) alive; an incomplete row for the
    most recent date zeroes it.
    """
    if not history:
        return 0

    most_recent = history[0]
    if not most_recent.completed:
        return 0

    if most_recent.day == today:
        return 1 + _count_back(history[1:], today - ONE_DAY)
    return _count_back(history, most_recent.day)


def _count_back(history: Iterable[Assignment], expected: date) -> int:
    streak = 0
    for assignment in history:
        day = assignment.day
        if day > expected:
            continue
        if day < expected or not assignment.completed:
            break
        streak += 1
        expected -= ONE_DAY
    return streak


def longest_streak(history: Iterable[Assignment]) -> int:
    """
    Longest run of completed assignments on adjacent dates.

    ``history`` is ordered oldest first. Only an explicit incomplete row
    resets the run to zero; a completed row after a date gap restarts it at 1.
    """
    current_run = 0
    best = 0
    previous_completed: Optional[date] = None

    for assignment in history:
        day = assignment.day
        if assignment.completed:
            if previous_completed is None or previous_completed == day - ONE_DAY:
                current_run += 1
            else:
                current_run = 1
            best = max(best, current_run)
            previous_completed = day
        else:
            current_run = 0
            previous_completed = None

    return best


class StatisticsEngine:
    """Computes UserStats from the store."""

    def __init__(
        self,
        store: ChallengeStore,
        *,
        lookback: Optional[int] = None,
        timezone_name: Optional[str] = None,
    ):
        self._store = store
        self._lookback = lookback or settings.CURRENT_STREAK_LOOKBACK
        self._timezone_name = timezone_name or settings.CHALLENGE_TIMEZONE

    def calculate_current_streak(self, user_id: str, today: Optional[date] = None) -> int:
        history = self._store.fetch_assignments_for_user(user_id, descending=True, limit=self._lookback)
        return current_streak(history, today or local_today(self._timezone_name))

    def calculate_longest_streak(self, user_id: str) -> int:
        return longest_streak(self._store.fetch_assignments_for_user(user_id, descending=False))

    def calculate_completion_rate(self, user_id: str) -> int:
        total = self._store.count_assignments(user_id)
        if total == 0:
            return 0
        return completion_rate(self._store.count_assignments(user_id, completed=True), total)

    def get_user_stats(self, user_id: str, today: Optional[date] = None) -> UserStats:
        total = self._store.count_assignments(user_id)
        completed = self._store.count_assignments(user_id, completed=True)
        return UserStats(
            total_challenges=total,
            completed_challenges=completed,
            current_streak=self.calculate_current_streak(user_id, today),
            longest_streak=self.calculate_longest_streak(user_id),
            completion_rate=completion_rate(completed, total),
        )

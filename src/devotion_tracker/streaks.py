"""
Streak Calculator.

Streaks are always recomputed from the entries; nothing here caches or
persists a streak value.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional, Set

from .models import Entry, EntryPredicate
from .store import EntryStore

logger = logging.getLogger(__name__)

MILESTONES = (7, 14, 21, 30, 60, 90, 100, 365)

MILESTONE_MESSAGES = {
    7: "One week strong! Keep it up!",
    14: "Two weeks strong! You're building a habit.",
    21: "Three weeks! This is becoming part of who you are.",
    30: "A whole month of faithfulness!",
    60: "Two months! Your consistency is inspiring.",
    90: "Ninety days! A season of devotion.",
    100: "One hundred days! What a milestone.",
    365: "A full year! Well done, good and faithful servant.",
}


@dataclass(frozen=True)
class Streak:
    """Derived streak statistics for one tracker."""

    current_streak: int = 0
    longest_streak: int = 0
    total_qualifying_days: int = 0

    @property
    def is_active(self) -> bool:
        return self.current_streak > 0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "total_qualifying_days": self.total_qualifying_days,
            "is_active": self.is_active,
        }


def qualifying_days(entries: Iterable[Entry], predicate: Optional[EntryPredicate] = None) -> Set[date]:
    """Distinct days with at least one entry satisfying predicate."""
    return {e.date for e in entries if predicate is None or predicate(e)}


def _current_run(days: Set[date], today: date) -> int:
    # A streak that reached yesterday stays current until today has elapsed
    if today in days:
        cursor = today
    elif today - timedelta(days=1) in days:
        cursor = today - timedelta(days=1)
    else:
        return 0

    run = 0
    while cursor in days:
        run += 1
        cursor -= timedelta(days=1)
    return run


def _longest_run(days: Set[date]) -> int:
    longest = run = 0
    previous: Optional[date] = None
    for day in sorted(days):
        if previous is not None and (day - previous).days == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        previous = day
    return longest


def compute_streak(
    entries: Iterable[Entry],
    predicate: Optional[EntryPredicate] = None,
    today: Optional[date] = None,
) -> Streak:
    """
    Compute current and longest consecutive-day streaks.

    Args:
        entries: Entries to scan (any order, duplicates tolerated)
        predicate: Qualification test per entry; None means every entry qualifies
        today: Reference day (defaults to date.today())

    Returns:
        Streak with current, longest and total qualifying days
    """
    today = today or date.today()
    days = qualifying_days(entries, predicate)
    if not days:
        return Streak()

    # Future-dated entries count toward history but not toward the current run
    streak = Streak(
        current_streak=_current_run(days, today),
        longest_streak=_longest_run(days),
        total_qualifying_days=len(days),
    )
    logger.debug(
        f"[STREAK] current={streak.current_streak} longest={streak.longest_streak} "
        f"days={streak.total_qualifying_days}"
    )
    return streak


def streak_for(store: EntryStore, today: Optional[date] = None) -> Streak:
    """Streak of a store using its profile's qualification predicate."""
    return compute_streak(store.all(), store.profile.qualifies, today)


def is_milestone(current_streak: int) -> bool:
    return current_streak in MILESTONES


def next_milestone(current_streak: int) -> Optional[int]:
    """Smallest milestone strictly above current_streak, if any remain."""
    return next((m for m in MILESTONES if m > current_streak), None)


def milestone_message(current_streak: int) -> Optional[str]:
    return MILESTONE_MESSAGES.get(current_streak)

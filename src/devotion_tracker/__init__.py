"""
Devotion Tracker Engine.

Temporal activity tracking shared by the journal, gratitude, habit and
mood check-in features: dated entry stores, streaks, period summaries,
mood trends and debounced search.
"""

from .aggregator import Summary, compute_summary, month_summary, week_summary
from .config import TrackerSettings, get_settings
from .errors import (
    DuplicateDayError,
    InvalidRangeError,
    NotFoundError,
    PersistenceError,
    TrackerError,
)
from .models import (
    GRATITUDE,
    JOURNAL,
    MOOD,
    Entry,
    EntryItem,
    GratitudeCategory,
    JournalMood,
    MoodLevel,
    SpiritualHabit,
    TrackerProfile,
    habit_profile,
    profile_for_key,
)
from .query import QueryDescriptor, SortOrder, evaluate
from .debounce import QueryDebouncer
from .session import TrackerSession
from .store import EntryStore
from .streaks import Streak, compute_streak
from .trends import MoodTrend, TrendReport, classify_trend

__all__ = [
    "Summary",
    "compute_summary",
    "week_summary",
    "month_summary",
    "TrackerSettings",
    "get_settings",
    "TrackerError",
    "DuplicateDayError",
    "NotFoundError",
    "InvalidRangeError",
    "PersistenceError",
    "Entry",
    "EntryItem",
    "GratitudeCategory",
    "JournalMood",
    "MoodLevel",
    "SpiritualHabit",
    "TrackerProfile",
    "JOURNAL",
    "GRATITUDE",
    "MOOD",
    "habit_profile",
    "profile_for_key",
    "QueryDescriptor",
    "SortOrder",
    "evaluate",
    "QueryDebouncer",
    "TrackerSession",
    "EntryStore",
    "Streak",
    "compute_streak",
    "MoodTrend",
    "TrendReport",
    "classify_trend",
]

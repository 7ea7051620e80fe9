"""
Aggregator: day-level rollups over an inclusive date range.

There is one aggregation algorithm. Week and month views only choose the
range they pass to compute_summary().
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from .dates import DayLike, DayRange, month_range, trailing_days, week_range
from .models import Entry, TrackerProfile, declaration_index, display_name
from .store import EntryStore

logger = logging.getLogger(__name__)

CategoryCount = Tuple[Optional[Enum], int]


@dataclass(frozen=True)
class Summary:
    """Counts and category distribution for one date range."""

    start: date
    end: date
    total_items: int = 0
    days_with_entries: int = 0
    complete_days: Optional[int] = None
    category_distribution: List[CategoryCount] = field(default_factory=list)
    entry_count: int = 0
    word_count: int = 0

    @property
    def date_range_label(self) -> str:
        return DayRange(self.start, self.end).label

    @property
    def top_category(self) -> Optional[Enum]:
        return self.category_distribution[0][0] if self.category_distribution else None

    @property
    def is_empty(self) -> bool:
        return self.entry_count == 0

    @classmethod
    def empty(cls, window: DayRange, has_completeness: bool = False) -> "Summary":
        return cls(
            start=window.start,
            end=window.end,
            complete_days=0 if has_completeness else None,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "date_range_label": self.date_range_label,
            "total_items": self.total_items,
            "days_with_entries": self.days_with_entries,
            "complete_days": self.complete_days,
            "category_distribution": [
                {
                    "category": category.value if category else None,
                    "display_name": display_name(category) or "Uncategorized",
                    "count": count,
                }
                for category, count in self.category_distribution
            ],
            "entry_count": self.entry_count,
            "word_count": self.word_count,
        }


@dataclass(frozen=True)
class DayActivity:
    """One cell of a tracker's activity strip."""

    day: date
    has_entry: bool
    is_complete: bool


def _distribution_key(item: CategoryCount):
    category, count = item
    # Uncategorized units sort after every declared category
    order = declaration_index(category) if category is not None else float("inf")
    return (-count, order)


def summarize(entries: Iterable[Entry], profile: TrackerProfile, window: DayRange) -> Summary:
    """Aggregate already selected entries of one tracker over window."""
    entries = [e for e in entries if window.contains(e.date)]

    categories: Counter = Counter()
    unit_days = set()
    complete = set()
    total_units = 0
    words = 0

    for entry in entries:
        units = entry.units(profile.items_are_units)
        if units:
            unit_days.add(entry.date)
        total_units += len(units)
        categories.update(category for _, category in units)
        words += entry.word_count
        if profile.is_complete and profile.is_complete(entry):
            complete.add(entry.date)

    summary = Summary(
        start=window.start,
        end=window.end,
        total_items=total_units,
        days_with_entries=len(unit_days),
        complete_days=len(complete) if profile.is_complete else None,
        category_distribution=sorted(categories.items(), key=_distribution_key),
        entry_count=len(entries),
        word_count=words,
    )
    logger.debug(
        f"[AGGREGATE] {profile.key} {summary.date_range_label}: "
        f"{summary.total_items} items over {summary.days_with_entries} days"
    )
    return summary


def compute_summary(store: EntryStore, start: DayLike, end: DayLike) -> Summary:
    """
    Aggregate a store over [start, end].

    Raises:
        InvalidRangeError: start is after end
    """
    window = DayRange.of(start, end)
    return summarize(store.entries_in_range(window.start, window.end), store.profile, window)


def _period_range(period: str, today: date, offset: int, first_weekday: int) -> DayRange:
    if period == "week":
        return week_range(today, offset, first_weekday)
    if period == "month":
        return month_range(today, offset)
    raise ValueError(f"Unknown period {period!r}; expected 'week' or 'month'")


def can_go_back(
    store: EntryStore,
    offset: int,
    today: Optional[date] = None,
    period: str = "week",
    first_weekday: int = 0,
) -> bool:
    """True if the period before `offset` still overlaps stored history."""
    earliest = store.earliest_day()
    if earliest is None:
        return False
    today = today or date.today()
    previous = _period_range(period, today, offset - 1, first_weekday)
    return previous.end >= earliest


def period_summary(
    store: EntryStore,
    period: str,
    offset: int = 0,
    today: Optional[date] = None,
    first_weekday: int = 0,
) -> Summary:
    """
    Summary for the week or month `offset` periods from the current one.

    Past periods that end before the earliest stored entry, and future
    periods, yield an empty summary instead of a fabricated one.
    """
    today = today or date.today()
    window = _period_range(period, today, offset, first_weekday)
    has_completeness = store.profile.is_complete is not None

    if offset > 0:
        return Summary.empty(window, has_completeness)
    if offset < 0:
        earliest = store.earliest_day()
        if earliest is None or window.end < earliest:
            logger.debug(f"[AGGREGATE] {period} offset {offset} precedes history")
            return Summary.empty(window, has_completeness)

    return compute_summary(store, window.start, window.end)


def week_summary(
    store: EntryStore,
    week_offset: int = 0,
    today: Optional[date] = None,
    first_weekday: int = 0,
) -> Summary:
    return period_summary(store, "week", week_offset, today, first_weekday)


def month_summary(
    store: EntryStore,
    month_offset: int = 0,
    today: Optional[date] = None,
) -> Summary:
    return period_summary(store, "month", month_offset, today)


def day_activity(
    store: EntryStore,
    days: int = 7,
    today: Optional[date] = None,
) -> List[DayActivity]:
    """Per-day presence and completeness for the last `days` days, oldest first."""
    window = trailing_days(today or date.today(), days)
    profile = store.profile
    by_day = {e.date: e for e in store.entries_in_range(window.start, window.end)}

    activity = []
    for day in window.days():
        entry = by_day.get(day)
        activity.append(
            DayActivity(
                day=day,
                has_entry=entry is not None and profile.qualifies(entry),
                is_complete=bool(
                    entry is not None and profile.is_complete and profile.is_complete(entry)
                ),
            )
        )
    return activity


def entries_per_day(
    store: EntryStore,
    days: int = 7,
    today: Optional[date] = None,
) -> List[Tuple[date, int]]:
    """Entry count per day for the last `days` days, oldest first."""
    window = trailing_days(today or date.today(), days)
    counts: Dict[date, int] = Counter(
        e.date for e in store.entries_in_range(window.start, window.end)
    )
    return [(day, counts.get(day, 0)) for day in window.days()]

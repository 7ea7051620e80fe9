"""
Unit tests for the Aggregator.

Usage:
    pytest tests/test_aggregator.py -v
"""
import pytest
from datetime import date

from conftest import TODAY, days_ago

from devotion_tracker.aggregator import (
    Summary,
    can_go_back,
    compute_summary,
    day_activity,
    entries_per_day,
    month_summary,
    week_summary,
)
from devotion_tracker.dates import DayRange, month_range, range_label, week_range
from devotion_tracker.errors import InvalidRangeError
from devotion_tracker.models import (
    Entry,
    GratitudeCategory,
    JournalMood,
    MoodLevel,
)

G = GratitudeCategory


def add_gratitude(store, day, *items):
    """Insert a gratitude entry holding (text, category) items."""
    return store.insert(Entry.create(day, items=list(items)))


# ============================================================================
# compute_summary
# ============================================================================


class TestComputeSummary:
    """Test the single day-level aggregation."""

    def test_scenario_b_gratitude_counts(self, gratitude_store):
        """Item counts [3, 3, 2, 3, 0] over five days."""
        counts = [3, 3, 2, 3, 0]
        for offset, count in enumerate(counts):
            items = [(f"item {n}", G.BLESSINGS) for n in range(count)]
            gratitude_store.insert(Entry.create(date(2024, 5, 1 + offset), items=items))

        summary = compute_summary(gratitude_store, date(2024, 5, 1), date(2024, 5, 5))

        assert summary.total_items == 11
        assert summary.complete_days == 3
        assert summary.days_with_entries == 4
        assert summary.entry_count == 5

    def test_distribution_sorted_by_count_then_declaration(self, gratitude_store):
        """Ties keep the taxonomy's declared order, not insertion order."""
        add_gratitude(gratitude_store, days_ago(2), ("Trees", G.NATURE), ("Mom", G.PEOPLE))
        add_gratitude(gratitude_store, days_ago(1), ("Rain", G.NATURE), ("Job", G.PROVISION))
        add_gratitude(gratitude_store, TODAY, ("Dad", G.PEOPLE), ("Church", G.SPIRITUAL))

        summary = compute_summary(gratitude_store, days_ago(2), TODAY)

        assert summary.category_distribution == [
            (G.PEOPLE, 2),
            (G.NATURE, 2),
            (G.PROVISION, 1),
            (G.SPIRITUAL, 1),
        ]
        assert summary.top_category == G.PEOPLE

    def test_distribution_sums_to_total_items(self, gratitude_store):
        """Uncategorized items are counted too, ordered last."""
        add_gratitude(gratitude_store, days_ago(1), "Plain text", ("Hope", G.SPIRITUAL))
        add_gratitude(gratitude_store, TODAY, "Another", "And another", ("Sun", G.NATURE))

        summary = compute_summary(gratitude_store, days_ago(1), TODAY)

        assert sum(count for _, count in summary.category_distribution) == summary.total_items
        assert summary.category_distribution == [(None, 3), (G.NATURE, 1), (G.SPIRITUAL, 1)]

    def test_uncategorized_orders_after_declared_on_tie(self, gratitude_store):
        """A None bucket never beats a declared category with the same count."""
        add_gratitude(gratitude_store, TODAY, "Plain", ("Sun", G.NATURE))

        summary = compute_summary(gratitude_store, TODAY, TODAY)

        assert summary.category_distribution == [(G.NATURE, 1), (None, 1)]

    def test_single_occurrence_entries_are_one_unit(self, mood_store):
        """Each mood entry counts once under its mood."""
        mood_store.insert(Entry.create(days_ago(2), category=MoodLevel.GOOD))
        mood_store.insert(Entry.create(days_ago(1), category=MoodLevel.GOOD))
        mood_store.insert(Entry.create(TODAY, category=MoodLevel.LOW))

        summary = compute_summary(mood_store, days_ago(6), TODAY)

        assert summary.total_items == 3
        assert summary.days_with_entries == 3
        assert summary.complete_days is None
        assert summary.category_distribution == [(MoodLevel.GOOD, 2), (MoodLevel.LOW, 1)]

    def test_word_count(self, journal_store):
        """Words of title, note and items are totalled for export headers."""
        journal_store.insert(
            Entry.create(TODAY, title="Quiet morning", note="Read Psalm 23 today", category=JournalMood.PEACEFUL)
        )

        assert compute_summary(journal_store, TODAY, TODAY).word_count == 6

    def test_idempotent(self, gratitude_store):
        """Two computations over the same unchanged store are identical."""
        add_gratitude(gratitude_store, TODAY, ("Mom", G.PEOPLE))

        first = compute_summary(gratitude_store, days_ago(7), TODAY)
        second = compute_summary(gratitude_store, days_ago(7), TODAY)

        assert first == second

    def test_invalid_range(self, gratitude_store):
        """start after end is rejected before computing."""
        with pytest.raises(InvalidRangeError):
            compute_summary(gratitude_store, TODAY, days_ago(1))

    def test_empty_range(self, gratitude_store):
        """A range without entries gives an empty summary, not an error."""
        summary = compute_summary(gratitude_store, days_ago(3), TODAY)

        assert summary.is_empty
        assert summary.total_items == 0
        assert summary.complete_days == 0
        assert summary.top_category is None

    def test_to_dict(self, gratitude_store):
        """Serialized summaries carry labels and display names."""
        add_gratitude(gratitude_store, date(2024, 5, 1), ("Mom", G.PEOPLE), "Rest")

        data = compute_summary(gratitude_store, date(2024, 5, 1), date(2024, 5, 7)).to_dict()

        assert data["date_range_label"] == "May 1 - May 7"
        assert data["category_distribution"] == [
            {"category": "people", "display_name": "People", "count": 1},
            {"category": None, "display_name": "Uncategorized", "count": 1},
        ]


# ============================================================================
# Week / Month Navigation
# ============================================================================


class TestPeriods:
    """Test week and month windows and back-navigation gating."""

    def test_week_range_starts_monday(self):
        """The default week runs Monday through Sunday."""
        assert week_range(TODAY) == DayRange(date(2024, 5, 13), date(2024, 5, 19))
        assert week_range(TODAY, -1) == DayRange(date(2024, 5, 6), date(2024, 5, 12))

    def test_week_range_sunday_start(self):
        """first_weekday=6 starts weeks on Sunday."""
        assert week_range(TODAY, first_weekday=6).start == date(2024, 5, 12)

    def test_month_range_crosses_year(self):
        """Month offsets wrap across year boundaries."""
        assert month_range(date(2024, 1, 20), -1) == DayRange(date(2023, 12, 1), date(2023, 12, 31))
        assert month_range(date(2024, 1, 20), 1).end == date(2024, 2, 29)

    def test_range_label_across_years(self):
        """Labels spanning a year boundary carry both years."""
        assert range_label(date(2024, 12, 30), date(2025, 1, 5)) == "Dec 30, 2024 - Jan 5, 2025"

    def test_week_summary_current(self, gratitude_store):
        """Offset 0 aggregates the current week only."""
        add_gratitude(gratitude_store, date(2024, 5, 13), ("Mom", G.PEOPLE))
        add_gratitude(gratitude_store, date(2024, 5, 10), ("Rain", G.NATURE))

        summary = week_summary(gratitude_store, 0, today=TODAY)

        assert (summary.start, summary.end) == (date(2024, 5, 13), date(2024, 5, 19))
        assert summary.total_items == 1

    def test_week_summary_matches_compute_summary(self, gratitude_store):
        """A week view is the day-level aggregation over the week range."""
        add_gratitude(gratitude_store, date(2024, 5, 7), ("Mom", G.PEOPLE), ("Job", G.PROVISION))

        window = week_range(TODAY, -1)
        assert week_summary(gratitude_store, -1, today=TODAY) == compute_summary(
            gratitude_store, window.start, window.end
        )

    def test_past_week_before_history_is_empty(self, gratitude_store):
        """Navigating before the earliest entry yields an empty summary."""
        add_gratitude(gratitude_store, date(2024, 5, 8), ("Mom", G.PEOPLE))

        assert not week_summary(gratitude_store, -1, today=TODAY).is_empty
        assert week_summary(gratitude_store, -2, today=TODAY).is_empty
        assert can_go_back(gratitude_store, 0, today=TODAY)
        assert not can_go_back(gratitude_store, -1, today=TODAY)

    def test_empty_store_cannot_go_back(self, gratitude_store):
        """With no history every past period is empty."""
        assert not can_go_back(gratitude_store, 0, today=TODAY)
        assert week_summary(gratitude_store, -1, today=TODAY).is_empty

    def test_future_period_is_empty(self, gratitude_store):
        """Positive offsets never fabricate data."""
        add_gratitude(gratitude_store, date(2024, 5, 20), ("Mom", G.PEOPLE))

        summary = week_summary(gratitude_store, 1, today=TODAY)

        assert summary.is_empty
        assert summary.complete_days == 0

    def test_month_summary(self, mood_store):
        """Month views cover the whole calendar month."""
        mood_store.insert(Entry.create(date(2024, 5, 1), category=MoodLevel.GOOD))
        mood_store.insert(Entry.create(date(2024, 4, 30), category=MoodLevel.LOW))

        summary = month_summary(mood_store, 0, today=TODAY)

        assert summary.total_items == 1
        assert month_summary(mood_store, -1, today=TODAY).total_items == 1
        assert month_summary(mood_store, -2, today=TODAY).is_empty
        assert Summary.empty(month_range(TODAY)).complete_days is None


# ============================================================================
# Activity
# ============================================================================


class TestActivity:
    """Test the per-day activity strip."""

    def test_day_activity(self, gratitude_store):
        """Days show presence and completeness, oldest first."""
        add_gratitude(gratitude_store, days_ago(2), "a", "b", "c")
        add_gratitude(gratitude_store, TODAY, "a")

        activity = day_activity(gratitude_store, days=3, today=TODAY)

        assert [a.day for a in activity] == [days_ago(2), days_ago(1), TODAY]
        assert [a.has_entry for a in activity] == [True, False, True]
        assert [a.is_complete for a in activity] == [True, False, False]

    def test_entries_per_day(self, journal_store):
        """Counts are zero-filled across the window."""
        journal_store.insert(Entry.create(days_ago(1), title="One"))

        assert entries_per_day(journal_store, days=3, today=TODAY) == [
            (days_ago(2), 0),
            (days_ago(1), 1),
            (TODAY, 0),
        ]

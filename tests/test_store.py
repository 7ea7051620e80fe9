"""
Unit tests for the Entry Store.

These tests verify:
1. Day normalization and the one-entry-per-day invariant
2. Merge-on-insert for multi-item trackers
3. All-or-nothing updates and deletes
4. Loading from a persistence backend

Usage:
    pytest tests/test_store.py -v
"""
import pytest
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta, timezone

from conftest import TODAY, MemoryBackend, days_ago

from devotion_tracker.errors import DuplicateDayError, InvalidRangeError, NotFoundError
from devotion_tracker.models import (
    GRATITUDE,
    MOOD,
    Entry,
    GratitudeCategory,
    JournalMood,
    MoodLevel,
    SpiritualHabit,
    habit_profile,
)
from devotion_tracker.persistence import PersistenceWriter
from devotion_tracker.store import EntryStore


# ============================================================================
# Insert
# ============================================================================


class TestInsert:
    """Test inserting entries."""

    def test_insert_normalizes_datetime_to_day(self, mood_store):
        """A timestamp is stored under its calendar day."""
        entry_id = mood_store.insert(
            Entry.create(datetime(2024, 5, 15, 23, 59), category=MoodLevel.GOOD)
        )

        assert mood_store.get(entry_id).date == date(2024, 5, 15)

    def test_single_occurrence_rejects_second_entry(self, mood_store):
        """Mood check-in allows one entry per day."""
        mood_store.insert(Entry.create(datetime(2024, 5, 15, 8, 0), category=MoodLevel.GOOD))

        with pytest.raises(DuplicateDayError) as exc_info:
            mood_store.insert(Entry.create(datetime(2024, 5, 15, 21, 0), category=MoodLevel.LOW))

        assert exc_info.value.day == date(2024, 5, 15)
        assert len(mood_store) == 1

    def test_habits_are_keyed_per_kind(self):
        """Different habit kinds never collide on the same day."""
        prayer = EntryStore(habit_profile(SpiritualHabit.PRAYER))
        reading = EntryStore(habit_profile(SpiritualHabit.BIBLE_READING))

        prayer.insert(Entry.create(TODAY))
        reading.insert(Entry.create(TODAY))

        assert prayer.entry_for_day(TODAY).tracked == "prayer"
        assert reading.entry_for_day(TODAY).category == SpiritualHabit.BIBLE_READING

    def test_habit_store_rejects_other_kind(self, prayer_store):
        """An entry tracking another habit does not belong in this store."""
        with pytest.raises(ValueError):
            prayer_store.insert(Entry.create(TODAY, tracked="fasting"))

    def test_multi_item_insert_merges_into_existing_day(self, gratitude_store):
        """A second gratitude entry on the same day adds its items to the first."""
        first_id = gratitude_store.insert(
            Entry.create(TODAY, items=[("Family", GratitudeCategory.PEOPLE)])
        )
        merged_id = gratitude_store.insert(
            Entry.create(TODAY, items=[("Sunrise", GratitudeCategory.NATURE)], note="Good day")
        )

        assert merged_id == first_id
        assert len(gratitude_store) == 1
        entry = gratitude_store.get(first_id)
        assert [i.text for i in entry.items] == ["Family", "Sunrise"]
        assert entry.note == "Good day"

    def test_merge_respects_item_limit(self, gratitude_store):
        """Merging beyond three gratitude items fails and changes nothing."""
        entry_id = gratitude_store.insert(Entry.create(TODAY, items=["a", "b"]))

        with pytest.raises(ValueError):
            gratitude_store.insert(Entry.create(TODAY, items=["c", "d"]))

        assert gratitude_store.get(entry_id).item_count == 2

    def test_duplicate_id_rejected(self, journal_store):
        """Ids are unique across the store."""
        entry = Entry.create(TODAY, title="One")
        journal_store.insert(entry)
        copy = Entry.create(days_ago(1), title="Two")
        copy.id = entry.id

        with pytest.raises(ValueError):
            journal_store.insert(copy)

    def test_store_keeps_its_own_copy(self, journal_store):
        """Mutating the caller's object after insert does not leak into the store."""
        entry = Entry.create(TODAY, title="Original")
        journal_store.insert(entry)
        entry.title = "Changed"

        assert journal_store.get(entry.id).title == "Original"


# ============================================================================
# Update / Delete
# ============================================================================


class TestUpdate:
    """Test atomic updates."""

    def test_update_in_place(self, journal_store):
        """The mutator may edit the copy it receives."""
        entry_id = journal_store.insert(Entry.create(TODAY, title="Draft"))
        before = journal_store.get(entry_id).modified_at

        updated = journal_store.update(entry_id, lambda e: setattr(e, "title", "Final"))

        assert updated.title == "Final"
        assert journal_store.get(entry_id).title == "Final"
        assert updated.modified_at >= before

    def test_update_with_replacement(self, mood_store):
        """The mutator may return a replacement entry."""
        entry_id = mood_store.insert(Entry.create(TODAY, category=MoodLevel.LOW))

        def lift(entry):
            entry = entry.clone()
            entry.category = MoodLevel.GREAT
            return entry

        assert mood_store.update(entry_id, lift).category == MoodLevel.GREAT

    def test_update_unknown_id(self, journal_store):
        """Updating a missing entry raises NotFoundError."""
        with pytest.raises(NotFoundError):
            journal_store.update("missing", lambda e: None)

    def test_update_onto_occupied_day_changes_nothing(self, mood_store):
        """Moving an entry onto a day that already has one fails atomically."""
        mood_store.insert(Entry.create(TODAY, category=MoodLevel.GOOD))
        other_id = mood_store.insert(Entry.create(days_ago(1), category=MoodLevel.LOW))

        with pytest.raises(DuplicateDayError):
            mood_store.update(other_id, lambda e: setattr(e, "date", TODAY))

        assert mood_store.get(other_id).date == days_ago(1)
        assert mood_store.entry_for_day(TODAY).category == MoodLevel.GOOD

    def test_update_moves_day_index(self, mood_store):
        """After a date change the entry is found under its new day only."""
        entry_id = mood_store.insert(Entry.create(days_ago(3), category=MoodLevel.OKAY))

        mood_store.update(entry_id, lambda e: setattr(e, "date", days_ago(2)))

        assert mood_store.entry_for_day(days_ago(3)) is None
        assert mood_store.entry_for_day(days_ago(2)).id == entry_id
        mood_store.insert(Entry.create(days_ago(3), category=MoodLevel.GOOD))

    def test_failing_mutator_leaves_store_unchanged(self, journal_store):
        """An exception inside the mutator commits nothing."""
        entry_id = journal_store.insert(Entry.create(TODAY, title="Keep"))

        def broken(entry):
            entry.title = "Lost"
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            journal_store.update(entry_id, broken)

        assert journal_store.get(entry_id).title == "Keep"

    def test_id_is_immutable(self, journal_store):
        """Changing the id through update is rejected."""
        entry_id = journal_store.insert(Entry.create(TODAY))

        with pytest.raises(ValueError):
            journal_store.update(entry_id, lambda e: setattr(e, "id", "other"))

    def test_delete(self, journal_store):
        """Delete removes the entry and frees its day."""
        entry_id = journal_store.insert(Entry.create(TODAY, category=JournalMood.PEACEFUL))

        assert journal_store.delete(entry_id) is True
        assert entry_id not in journal_store
        assert journal_store.entry_for_day(TODAY) is None

    def test_delete_unknown_id(self, journal_store):
        """Deleting a missing entry raises NotFoundError."""
        with pytest.raises(NotFoundError):
            journal_store.delete("missing")


# ============================================================================
# Reads
# ============================================================================


class TestReads:
    """Test range queries and ordering."""

    def test_entries_in_range_is_inclusive_and_ordered(self, journal_store):
        """Both endpoints are included and results are ascending."""
        for n in (0, 2, 4, 6):
            journal_store.insert(Entry.create(days_ago(n), title=f"day {n}"))

        results = journal_store.entries_in_range(days_ago(4), TODAY)

        assert [e.date for e in results] == [days_ago(4), days_ago(2), TODAY]

    def test_invalid_range(self, journal_store):
        """start after end raises InvalidRangeError."""
        with pytest.raises(InvalidRangeError):
            journal_store.entries_in_range(TODAY, days_ago(1))

    def test_earliest_day(self, journal_store):
        """earliest_day is None on an empty store."""
        assert journal_store.earliest_day() is None
        journal_store.insert(Entry.create(days_ago(10)))
        journal_store.insert(Entry.create(days_ago(2)))
        assert journal_store.earliest_day() == days_ago(10)

    def test_threaded_writes_and_reads(self, journal_store):
        """Inserts from worker threads interleave safely with full reads."""

        def write(n):
            journal_store.insert(Entry.create(days_ago(n), title=f"day {n}"))
            return len(journal_store.all())

        with ThreadPoolExecutor(max_workers=8) as pool:
            sizes = list(pool.map(write, range(200)))

        assert len(journal_store) == 200
        assert max(sizes) == 200
        assert journal_store.days() == sorted(days_ago(n) for n in range(200))


# ============================================================================
# Load
# ============================================================================


class TestLoad:
    """Test building a store from persisted rows."""

    def test_load_round_trips_rows(self):
        """Rows written by one store load into another."""
        backend = MemoryBackend()
        store = EntryStore(GRATITUDE, writer=PersistenceWriter(backend))
        store.insert(Entry.create(TODAY, items=[("Friends", GratitudeCategory.PEOPLE)]))

        loaded = EntryStore.load(GRATITUDE, backend)

        entry = loaded.entry_for_day(TODAY)
        assert entry.items[0].category == GratitudeCategory.PEOPLE

    def test_load_keeps_most_recently_modified_duplicate(self):
        """Rows breaking the day invariant resolve to the newest modification."""
        older = Entry.create(TODAY, category=MoodLevel.LOW)
        newer = Entry.create(TODAY, category=MoodLevel.GREAT)
        newer.modified_at = older.modified_at + timedelta(minutes=5)
        backend = MemoryBackend([older.to_dict(), newer.to_dict()])

        store = EntryStore.load(MOOD, backend)

        assert len(store) == 1
        assert store.entry_for_day(TODAY).category == MoodLevel.GREAT

    def test_aware_datetime_normalizes_to_local_day(self, mood_store):
        """Aware timestamps are converted to local time before taking the day."""
        moment = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)
        entry_id = mood_store.insert(Entry.create(moment, category=MoodLevel.OKAY))

        assert mood_store.get(entry_id).date == moment.astimezone().date()

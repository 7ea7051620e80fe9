"""
Entry Store: the owning collection of dated entries for one tracked domain.

The store enforces the one-entry-per-day invariant, applies mutations
all-or-nothing, and forwards committed changes to an optional persistence
writer. Returned entries are snapshots; mutate through update().
"""

import logging
import threading
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .dates import DayLike, DayRange, normalize_day
from .errors import DuplicateDayError, NotFoundError
from .models import Entry, TrackerProfile
from .persistence import PersistenceBackend, PersistenceWriter

logger = logging.getLogger(__name__)

DayKey = Tuple[Optional[str], date]
Mutator = Callable[[Entry], Optional[Entry]]


def chronological_key(entry: Entry) -> Tuple[date, datetime, str]:
    """Total ascending order: day, then creation time, then id."""
    return (entry.date, entry.created_at, entry.id)


class EntryStore:
    """
    Typed collection of dated entries for one tracker.

    Single-occurrence trackers (mood, habits) reject a second entry for the
    same day with DuplicateDayError. Multi-item trackers (journal, gratitude)
    merge a second insert for the same day into the existing entry.

    Safe to share between threads: every public method runs under one
    reentrant lock, including the persistence write that follows a mutation.
    """

    def __init__(
        self,
        profile: TrackerProfile,
        writer: Optional[PersistenceWriter] = None,
    ):
        self.profile = profile
        self.writer = writer
        self._entries: Dict[str, Entry] = {}
        self._by_day: Dict[DayKey, str] = {}
        self._lock = threading.RLock()

    @classmethod
    def load(
        cls,
        profile: TrackerProfile,
        backend: PersistenceBackend,
        writer: Optional[PersistenceWriter] = None,
    ) -> "EntryStore":
        """
        Build a store from backend.load_all() at session start.

        If stored rows break the one-entry-per-day invariant, the most
        recently modified entry for that day wins.
        """
        store = cls(profile, writer=writer)
        for row in backend.load_all():
            entry = profile.parse_entry(row)
            key = store._day_key(entry)
            existing_id = store._by_day.get(key)
            if existing_id:
                existing = store._entries[existing_id]
                logger.warning(
                    f"[STORE] {profile.key}: duplicate stored entries for {entry.date}, "
                    f"keeping the most recently modified"
                )
                if existing.modified_at >= entry.modified_at:
                    continue
                del store._entries[existing_id]
            store._entries[entry.id] = entry
            store._by_day[key] = entry.id

        logger.info(f"[STORE] Loaded {len(store)} {profile.key} entries")
        return store

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert(self, entry: Entry) -> str:
        """
        Add a new entry.

        Returns:
            The id of the stored entry. For multi-item trackers whose day is
            already occupied, this is the id of the entry the items merged into.

        Raises:
            DuplicateDayError: single-occurrence tracker, day already has an entry
            ValueError: duplicate id, wrong habit kind, or too many items
        """
        with self._lock:
            entry = self._prepare(entry.clone())
            if entry.id in self._entries:
                raise ValueError(f"Entry id {entry.id} already exists")

            existing_id = self._by_day.get(self._day_key(entry))
            if existing_id:
                if self.profile.single_occurrence:
                    raise DuplicateDayError(entry.date, entry.tracked)
                self.update(existing_id, lambda current: self._merge(current, entry))
                logger.info(
                    f"[STORE] {self.profile.key}: merged {entry.item_count} item(s) "
                    f"into {existing_id} on {entry.date}"
                )
                return existing_id

            self._entries[entry.id] = entry
            self._by_day[self._day_key(entry)] = entry.id
            logger.info(f"[STORE] {self.profile.key}: inserted {entry.id} on {entry.date}")

            if self.writer:
                self.writer.persist(entry)
            return entry.id

    def update(self, entry_id: str, mutator: Mutator) -> Entry:
        """
        Apply mutator to a private copy of an entry and commit it atomically.

        The mutator may change the copy in place or return a replacement.
        Nothing is committed if the mutator raises or the result is invalid.

        Raises:
            NotFoundError: unknown id
            DuplicateDayError: the change would move the entry onto an occupied day
            ValueError: the change touches id/created_at or breaks item limits
        """
        with self._lock:
            current = self._entries.get(entry_id)
            if current is None:
                raise NotFoundError(entry_id)

            draft = current.clone()
            replacement = mutator(draft)
            if replacement is not None:
                draft = replacement
            draft = self._prepare(draft)

            if draft.id != current.id or draft.created_at != current.created_at:
                raise ValueError("Entry id and created_at are immutable")

            old_key, new_key = self._day_key(current), self._day_key(draft)
            if new_key != old_key and new_key in self._by_day:
                raise DuplicateDayError(draft.date, draft.tracked)

            draft.modified_at = datetime.now(timezone.utc)
            del self._by_day[old_key]
            self._by_day[new_key] = entry_id
            self._entries[entry_id] = draft
            logger.debug(f"[STORE] {self.profile.key}: updated {entry_id}")

            if self.writer:
                self.writer.persist(draft)
            return draft.clone()

    def delete(self, entry_id: str) -> bool:
        """
        Remove an entry.

        Raises:
            NotFoundError: unknown id
        """
        with self._lock:
            entry = self._entries.pop(entry_id, None)
            if entry is None:
                raise NotFoundError(entry_id)
            del self._by_day[self._day_key(entry)]
            logger.info(f"[STORE] {self.profile.key}: deleted {entry_id}")

            if self.writer:
                self.writer.remove(entry_id)
            return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, entry_id: str) -> Entry:
        with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None:
                raise NotFoundError(entry_id)
            return entry.clone()

    def entries_in_range(self, start: DayLike, end: DayLike) -> List[Entry]:
        """
        Entries whose day falls in [start, end], ascending.

        Raises:
            InvalidRangeError: start is after end
        """
        window = DayRange.of(start, end)
        with self._lock:
            return [
                e.clone()
                for e in sorted(self._entries.values(), key=chronological_key)
                if window.contains(e.date)
            ]

    def entry_for_day(self, day: DayLike, tracked: Optional[str] = None) -> Optional[Entry]:
        with self._lock:
            entry_id = self._by_day.get((tracked or self.profile.tracked, normalize_day(day)))
            return self._entries[entry_id].clone() if entry_id else None

    def all(self) -> List[Entry]:
        with self._lock:
            return [e.clone() for e in sorted(self._entries.values(), key=chronological_key)]

    def days(self) -> List[date]:
        with self._lock:
            return sorted({e.date for e in self._entries.values()})

    def earliest_day(self) -> Optional[date]:
        with self._lock:
            return min((e.date for e in self._entries.values()), default=None)

    def retry_writes(self) -> int:
        """Replay failed writes while no mutation can queue a newer one. Returns successes."""
        if not self.writer:
            return 0
        with self._lock:
            return self.writer.retry_pending()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.all())

    def __contains__(self, entry_id: Any) -> bool:
        return entry_id in self._entries

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _day_key(self, entry: Entry) -> DayKey:
        return self.profile.occurrence_key(entry)

    def _prepare(self, entry: Entry) -> Entry:
        """Normalize and validate an entry against this store's profile."""
        entry.date = normalize_day(entry.date)
        tracked = self.profile.tracked
        if tracked:
            if entry.tracked is None:
                entry.tracked = tracked
            elif entry.tracked != tracked:
                raise ValueError(
                    f"Entry tracks {entry.tracked!r} but this store tracks {tracked!r}"
                )
            if entry.category is None and self.profile.category_type is not None:
                entry.category = self.profile.category_type(tracked)

        limit = self.profile.max_items
        if limit is not None and entry.item_count > limit:
            raise ValueError(
                f"{self.profile.key} entries hold at most {limit} items, got {entry.item_count}"
            )
        return entry

    @staticmethod
    def _merge(current: Entry, incoming: Entry) -> None:
        current.items.extend(incoming.items)
        if incoming.note and not current.note:
            current.note = incoming.note
        if incoming.title and not current.title:
            current.title = incoming.title
        current.favorite = current.favorite or incoming.favorite
        for ref in incoming.linked_refs:
            if ref not in current.linked_refs:
                current.linked_refs.append(ref)
        current.photo_names.extend(
            name for name in incoming.photo_names if name not in current.photo_names
        )

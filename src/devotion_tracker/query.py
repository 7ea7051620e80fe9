"""
Filter/Search Composer.

A QueryDescriptor is an immutable value. Predicates combine with AND; the
text predicate matches if ANY searchable field contains the text.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from itertools import groupby
from typing import Iterable, List, Optional, Tuple, Union

from .aggregator import Summary, summarize
from .dates import DayLike, DayRange, month_label, normalize_day
from .models import Entry, display_name
from .store import EntryStore, chronological_key

logger = logging.getLogger(__name__)


class SortOrder(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    MOST_ITEMS = "most_items"


@dataclass(frozen=True)
class QueryDescriptor:
    """Active filter and sort state. Replace it wholesale; never mutate."""

    text: str = ""
    category: Optional[Enum] = None
    favorites_only: bool = False
    has_photos_only: bool = False
    start: Optional[DayLike] = None
    end: Optional[DayLike] = None
    sort: SortOrder = SortOrder.NEWEST

    def __post_init__(self):
        # Bounds compare against entry days, so datetimes become local days
        for name in ("start", "end"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, normalize_day(value))

    @property
    def search_text(self) -> str:
        return self.text.strip()

    @property
    def is_active(self) -> bool:
        """True if any predicate narrows the result set."""
        return bool(
            self.search_text
            or self.category is not None
            or self.favorites_only
            or self.has_photos_only
            or self.start is not None
            or self.end is not None
        )

    def with_changes(self, **changes) -> "QueryDescriptor":
        return replace(self, **changes)

    def cleared(self) -> "QueryDescriptor":
        """Same sort order, no predicates."""
        return QueryDescriptor(sort=self.sort)


@dataclass(frozen=True)
class ExportSelection:
    """What the export formatter receives: entries newest-first plus header stats."""

    entries: List[Entry]
    summary: Optional[Summary]


def searchable_fields(entry: Entry) -> List[str]:
    fields = [entry.title, entry.note or "", display_name(entry.category)]
    for item in entry.items:
        fields.append(item.text)
        fields.append(display_name(item.category))
    fields.extend(entry.linked_refs)
    return fields


def matches_text(entry: Entry, text: str) -> bool:
    needle = text.strip().casefold()
    if not needle:
        return True
    return any(needle in value.casefold() for value in searchable_fields(entry) if value)


def _has_category(entry: Entry, category: Enum) -> bool:
    return entry.category == category or any(i.category == category for i in entry.items)


def matches(entry: Entry, query: QueryDescriptor) -> bool:
    """Evaluate every predicate of query against one entry (AND semantics)."""
    if query.category is not None and not _has_category(entry, query.category):
        return False
    if query.favorites_only and not entry.favorite:
        return False
    if query.has_photos_only and not entry.has_photos:
        return False
    if query.start is not None and entry.date < query.start:
        return False
    if query.end is not None and entry.date > query.end:
        return False
    return matches_text(entry, query.search_text)


def sort_entries(entries: Iterable[Entry], order: SortOrder) -> List[Entry]:
    """Stable, total ordering; no two distinct entries compare equal."""
    if order is SortOrder.OLDEST:
        return sorted(entries, key=chronological_key)
    newest = sorted(entries, key=chronological_key, reverse=True)
    if order is SortOrder.MOST_ITEMS:
        # Stable sort keeps the newest-first tie-break
        return sorted(newest, key=lambda e: e.item_count, reverse=True)
    return newest


def evaluate(source: Union[EntryStore, Iterable[Entry]], query: QueryDescriptor) -> List[Entry]:
    """
    Filter and sort entries with a QueryDescriptor.

    Raises:
        InvalidRangeError: query.start is after query.end
    """
    if query.start is not None and query.end is not None:
        DayRange(query.start, query.end)

    entries = source.all() if isinstance(source, EntryStore) else list(source)
    results = sort_entries((e for e in entries if matches(e, query)), query.sort)
    logger.debug(f"[QUERY] {len(results)}/{len(entries)} entries matched")
    return results


def group_by_month(entries: List[Entry]) -> List[Tuple[str, List[Entry]]]:
    """
    Group already filtered and sorted entries under month labels.

    Consecutive entries in the same month share a group, so the incoming
    order is preserved.
    """
    return [
        (label, list(group))
        for label, group in groupby(entries, key=lambda e: month_label(e.date))
    ]


def export_selection(store: EntryStore, query: QueryDescriptor) -> ExportSelection:
    """
    Entries for the export formatter, newest-first, with header statistics.

    The summary counts only the selected entries. Its range is the query's
    explicit range when both ends are set, otherwise the span of the selection.
    """
    entries = evaluate(store, query.with_changes(sort=SortOrder.NEWEST))
    if query.start is not None and query.end is not None:
        window = DayRange(query.start, query.end)
    elif entries:
        window = DayRange(entries[-1].date, entries[0].date)
    else:
        return ExportSelection(entries=[], summary=None)
    return ExportSelection(entries=entries, summary=summarize(entries, store.profile, window))

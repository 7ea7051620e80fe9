"""
Entry model, category taxonomies and tracker profiles.

A TrackerProfile carries the feature-specific policy (occurrence rule,
qualification and completeness predicates, category taxonomy) so the store,
streak calculator and aggregator stay feature-agnostic.
"""

import copy
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from .dates import DayLike, normalize_day


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Polarity(str, Enum):
    """Fixed classification of moods used by the trend classifier."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class MoodLevel(str, Enum):
    """Daily check-in mood."""

    STRUGGLING = "struggling"
    LOW = "low"
    OKAY = "okay"
    GOOD = "good"
    GREAT = "great"

    @property
    def display_name(self) -> str:
        return self.value.title()

    @property
    def polarity(self) -> Polarity:
        return _MOOD_LEVEL_POLARITY[self]


_MOOD_LEVEL_POLARITY = {
    MoodLevel.STRUGGLING: Polarity.NEGATIVE,
    MoodLevel.LOW: Polarity.NEGATIVE,
    MoodLevel.OKAY: Polarity.NEUTRAL,
    MoodLevel.GOOD: Polarity.POSITIVE,
    MoodLevel.GREAT: Polarity.POSITIVE,
}


class JournalMood(str, Enum):
    """Mood attached to a journal entry."""

    JOYFUL = "joyful"
    PEACEFUL = "peaceful"
    GRATEFUL = "grateful"
    HOPEFUL = "hopeful"
    REFLECTIVE = "reflective"
    ANXIOUS = "anxious"
    STRUGGLING = "struggling"

    @property
    def display_name(self) -> str:
        return self.value.title()

    @property
    def polarity(self) -> Polarity:
        return _JOURNAL_MOOD_POLARITY[self]


_JOURNAL_MOOD_POLARITY = {
    JournalMood.JOYFUL: Polarity.POSITIVE,
    JournalMood.PEACEFUL: Polarity.POSITIVE,
    JournalMood.GRATEFUL: Polarity.POSITIVE,
    JournalMood.HOPEFUL: Polarity.POSITIVE,
    JournalMood.REFLECTIVE: Polarity.NEUTRAL,
    JournalMood.ANXIOUS: Polarity.NEGATIVE,
    JournalMood.STRUGGLING: Polarity.NEGATIVE,
}


class GratitudeCategory(str, Enum):
    """Category of a single gratitude item."""

    PEOPLE = "people"
    EXPERIENCES = "experiences"
    BLESSINGS = "blessings"
    NATURE = "nature"
    HEALTH = "health"
    PROVISION = "provision"
    SPIRITUAL = "spiritual"
    GENERAL = "general"

    @property
    def display_name(self) -> str:
        return self.value.title()


class SpiritualHabit(str, Enum):
    """Kinds of habits that get their own store."""

    PRAYER = "prayer"
    BIBLE_READING = "bible_reading"
    GRATITUDE = "gratitude"
    SERVICE = "service"
    FASTING = "fasting"
    MEDITATION = "meditation"
    WORSHIP = "worship"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


class TrackerKind(str, Enum):
    JOURNAL = "journal"
    GRATITUDE = "gratitude"
    HABIT = "habit"
    MOOD = "mood"


def display_name(category: Optional[Enum]) -> str:
    """Display name of a category member, or an empty string."""
    if category is None:
        return ""
    return getattr(category, "display_name", str(category.value))


def declaration_index(category: Enum) -> int:
    """Position of a member in its enum's declaration order."""
    return list(type(category)).index(category)


@dataclass
class EntryItem:
    """One free-text fragment of an entry (e.g. one gratitude item)."""

    text: str
    category: Optional[Enum] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "category": self.category.value if self.category else None,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class Entry:
    """One logged activity instance, keyed on a normalized calendar day."""

    date: date
    items: List[EntryItem] = field(default_factory=list)
    category: Optional[Enum] = None
    title: str = ""
    note: Optional[str] = None
    favorite: bool = False
    completed: bool = True
    tracked: Optional[str] = None
    linked_refs: List[str] = field(default_factory=list)
    photo_names: List[str] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=_utcnow)
    modified_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        self.date = normalize_day(self.date)

    @classmethod
    def create(
        cls,
        day: DayLike,
        items: Optional[List[Any]] = None,
        **kwargs,
    ) -> "Entry":
        """
        Build an entry, accepting plain strings or (text, category) tuples as items.

        Args:
            day: Any date or datetime; normalized to its local day
            items: EntryItem objects, strings, or (text, category) tuples
            **kwargs: Remaining Entry fields
        """
        built = []
        for item in items or []:
            if isinstance(item, EntryItem):
                built.append(item)
            elif isinstance(item, tuple):
                built.append(EntryItem(text=item[0], category=item[1]))
            else:
                built.append(EntryItem(text=str(item)))
        return cls(date=normalize_day(day), items=built, **kwargs)

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def word_count(self) -> int:
        text = " ".join([self.title, self.note or ""] + [i.text for i in self.items])
        return len(text.split())

    @property
    def has_photos(self) -> bool:
        return bool(self.photo_names)

    def units(self, items_are_units: bool = True) -> List[Tuple[str, Optional[Enum]]]:
        """
        Countable units of this entry as (text, category) pairs.

        Item-based trackers count each item, falling back to the entry
        category. Otherwise the entry itself is one unit.
        """
        if items_are_units:
            return [(i.text, i.category or self.category) for i in self.items]
        return [(self.title or self.note or "", self.category)]

    def clone(self) -> "Entry":
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "items": [i.to_dict() for i in self.items],
            "category": self.category.value if self.category else None,
            "title": self.title,
            "note": self.note,
            "favorite": self.favorite,
            "completed": self.completed,
            "tracked": self.tracked,
            "linked_refs": list(self.linked_refs),
            "photo_names": list(self.photo_names),
            "created_at": self.created_at.isoformat(),
            "modified_at": self.modified_at.isoformat(),
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        category_type: Optional[Type[Enum]] = None,
        item_category_type: Optional[Type[Enum]] = None,
    ) -> "Entry":
        """
        Rebuild an entry from to_dict() output.

        Raises:
            ValueError: if required fields are missing or a category is unknown
        """
        try:
            day = date.fromisoformat(data["date"])
            entry_id = data["id"]
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed entry payload: {e}") from e

        def parse_category(raw, enum_type):
            if raw is None or enum_type is None:
                return None
            return enum_type(raw)

        items = [
            EntryItem(
                text=raw["text"],
                category=parse_category(raw.get("category"), item_category_type),
                id=raw.get("id") or str(uuid.uuid4()),
                created_at=datetime.fromisoformat(raw["created_at"])
                if raw.get("created_at")
                else _utcnow(),
            )
            for raw in data.get("items", [])
        ]
        return cls(
            id=entry_id,
            date=day,
            items=items,
            category=parse_category(data.get("category"), category_type),
            title=data.get("title", ""),
            note=data.get("note"),
            favorite=bool(data.get("favorite", False)),
            completed=bool(data.get("completed", True)),
            tracked=data.get("tracked"),
            linked_refs=list(data.get("linked_refs", [])),
            photo_names=list(data.get("photo_names", [])),
            created_at=datetime.fromisoformat(data["created_at"]),
            modified_at=datetime.fromisoformat(data["modified_at"]),
        )


EntryPredicate = Callable[[Entry], bool]


@dataclass(frozen=True)
class TrackerProfile:
    """Feature-specific policy for one tracked domain."""

    kind: TrackerKind
    key: str
    single_occurrence: bool
    category_type: Optional[Type[Enum]] = None
    item_category_type: Optional[Type[Enum]] = None
    qualifies: EntryPredicate = lambda entry: True
    is_complete: Optional[EntryPredicate] = None
    items_are_units: bool = False
    max_items: Optional[int] = None
    tracked: Optional[str] = None

    def occurrence_key(self, entry: Entry) -> Tuple[Optional[str], date]:
        return (entry.tracked, entry.date)

    def parse_entry(self, data: Dict[str, Any]) -> Entry:
        return Entry.from_dict(data, self.category_type, self.item_category_type)


JOURNAL = TrackerProfile(
    kind=TrackerKind.JOURNAL,
    key="journal",
    single_occurrence=False,
    category_type=JournalMood,
)

GRATITUDE_MAX_ITEMS = 3

GRATITUDE = TrackerProfile(
    kind=TrackerKind.GRATITUDE,
    key="gratitude",
    single_occurrence=False,
    item_category_type=GratitudeCategory,
    qualifies=lambda entry: entry.item_count >= 1,
    is_complete=lambda entry: entry.item_count >= GRATITUDE_MAX_ITEMS,
    items_are_units=True,
    max_items=GRATITUDE_MAX_ITEMS,
)

MOOD = TrackerProfile(
    kind=TrackerKind.MOOD,
    key="mood",
    single_occurrence=True,
    category_type=MoodLevel,
)


def habit_profile(habit: SpiritualHabit) -> TrackerProfile:
    """Profile for one habit kind; each habit has its own store."""
    return TrackerProfile(
        kind=TrackerKind.HABIT,
        key=f"habit:{habit.value}",
        single_occurrence=True,
        category_type=SpiritualHabit,
        qualifies=lambda entry: entry.completed,
        tracked=habit.value,
    )


def profile_for_key(key: str) -> TrackerProfile:
    """
    Resolve a tracker key ('journal', 'gratitude', 'mood', 'habit:<kind>').

    Raises:
        KeyError: if the key names no known tracker
    """
    fixed = {p.key: p for p in (JOURNAL, GRATITUDE, MOOD)}
    if key in fixed:
        return fixed[key]
    if key.startswith("habit:"):
        try:
            return habit_profile(SpiritualHabit(key.split(":", 1)[1]))
        except ValueError:
            pass
    raise KeyError(key)

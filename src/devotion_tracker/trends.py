"""
Trend Classifier for mood-tagged entries.

Positivity is a fixed classification of moods into positive, neutral and
negative, never a numeric average of mood values. The trend compares the
positivity rate of the earlier and later halves of the window, split by
entry count so sparse logging does not skew the split.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from typing import Dict, Iterable, List, Optional

from .models import Entry, Polarity
from .store import chronological_key

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD_POINTS = 10.0
DEFAULT_MIN_ENTRIES = 4


class MoodTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"

    @property
    def description(self) -> str:
        return {
            MoodTrend.IMPROVING: "Your mood has been lifting lately.",
            MoodTrend.STABLE: "Your mood has been steady.",
            MoodTrend.DECLINING: "Things have felt heavier lately. Be gentle with yourself.",
        }[self]


@dataclass(frozen=True)
class TrendReport:
    """Mood statistics for one window of entries."""

    trend: MoodTrend
    dominant_mood: Optional[Enum]
    positivity_rate: float
    earlier_rate: Optional[float]
    later_rate: Optional[float]
    entry_count: int
    low_confidence: bool
    mood_counts: Dict[Enum, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "trend": self.trend.value,
            "trend_description": self.trend.description,
            "dominant_mood": self.dominant_mood.value if self.dominant_mood else None,
            "positivity_rate": self.positivity_rate,
            "earlier_rate": self.earlier_rate,
            "later_rate": self.later_rate,
            "entry_count": self.entry_count,
            "low_confidence": self.low_confidence,
            "mood_counts": {m.value: c for m, c in self.mood_counts.items()},
        }


def polarity_of(category: Optional[Enum]) -> Optional[Polarity]:
    """Polarity of a mood category, or None for categories outside a mood taxonomy."""
    return getattr(category, "polarity", None)


def _positive_fraction(moods: List[Enum]) -> Fraction:
    if not moods:
        return Fraction(0)
    positive = sum(1 for m in moods if polarity_of(m) is Polarity.POSITIVE)
    return Fraction(positive, len(moods))


def _dominant(moods: List[Enum]) -> Optional[Enum]:
    if not moods:
        return None
    counts = Counter(moods)
    top = max(counts.values())
    # Ties go to the most recently logged of the tied moods
    for mood in reversed(moods):
        if counts[mood] == top:
            return mood
    return None


def classify_trend(
    entries: Iterable[Entry],
    threshold_points: float = DEFAULT_THRESHOLD_POINTS,
    min_entries: int = DEFAULT_MIN_ENTRIES,
) -> TrendReport:
    """
    Classify the mood trend over a window of entries.

    Args:
        entries: Mood-tagged entries in any order; entries without a mood are ignored
        threshold_points: Percentage-point band inside which the trend is stable
        min_entries: Below this many moods the result is stable and low-confidence

    Returns:
        TrendReport
    """
    ordered = sorted(
        (e for e in entries if polarity_of(e.category) is not None),
        key=chronological_key,
    )
    moods = [e.category for e in ordered]
    overall = _positive_fraction(moods)
    counts = dict(Counter(moods))

    if len(moods) < min_entries:
        return TrendReport(
            trend=MoodTrend.STABLE,
            dominant_mood=_dominant(moods),
            positivity_rate=float(overall),
            earlier_rate=None,
            later_rate=None,
            entry_count=len(moods),
            low_confidence=True,
            mood_counts=counts,
        )

    half = len(moods) // 2
    earlier = _positive_fraction(moods[:half])
    later = _positive_fraction(moods[half:])
    delta = later - earlier
    threshold = Fraction(threshold_points).limit_denominator(10_000) / 100

    if delta > threshold:
        trend = MoodTrend.IMPROVING
    elif delta < -threshold:
        trend = MoodTrend.DECLINING
    else:
        trend = MoodTrend.STABLE

    logger.debug(
        f"[TREND] n={len(moods)} earlier={float(earlier):.2f} "
        f"later={float(later):.2f} -> {trend.value}"
    )
    return TrendReport(
        trend=trend,
        dominant_mood=_dominant(moods),
        positivity_rate=float(overall),
        earlier_rate=float(earlier),
        later_rate=float(later),
        entry_count=len(moods),
        low_confidence=False,
        mood_counts=counts,
    )

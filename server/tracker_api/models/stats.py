"""Streak, summary and trend response models."""
from pydantic import BaseModel, Field, ConfigDict
from typing import Literal, Optional

TrendLabel = Literal["improving", "stable", "declining"]


class StreakOut(BaseModel):
    """Current and longest streak for one tracker."""

    model_config = ConfigDict(populate_by_name=True)

    current_streak: int = Field(alias="currentStreak")
    longest_streak: int = Field(alias="longestStreak")
    total_qualifying_days: int = Field(alias="totalQualifyingDays")
    is_active: bool = Field(alias="isActive")
    next_milestone: Optional[int] = Field(default=None, alias="nextMilestone")
    milestone_message: Optional[str] = Field(default=None, alias="milestoneMessage")


class CategoryCountOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    category: Optional[str] = None
    display_name: str = Field(alias="displayName")
    count: int


class SummaryOut(BaseModel):
    """Aggregated counts for one date range."""

    model_config = ConfigDict(populate_by_name=True)

    start: str
    end: str
    date_range_label: str = Field(alias="dateRangeLabel")
    total_items: int = Field(alias="totalItems")
    days_with_entries: int = Field(alias="daysWithEntries")
    complete_days: Optional[int] = Field(default=None, alias="completeDays")
    category_distribution: list[CategoryCountOut] = Field(
        alias="categoryDistribution"
    )
    entry_count: int = Field(alias="entryCount")
    word_count: int = Field(alias="wordCount")
    can_go_back: Optional[bool] = Field(default=None, alias="canGoBack")
    can_go_forward: Optional[bool] = Field(default=None, alias="canGoForward")


class TrendOut(BaseModel):
    """Mood trend over a trailing window."""

    model_config = ConfigDict(populate_by_name=True)

    trend: TrendLabel
    trend_description: str = Field(alias="trendDescription")
    dominant_mood: Optional[str] = Field(default=None, alias="dominantMood")
    positivity_rate: float = Field(alias="positivityRate")
    earlier_rate: Optional[float] = Field(default=None, alias="earlierRate")
    later_rate: Optional[float] = Field(default=None, alias="laterRate")
    entry_count: int = Field(alias="entryCount")
    low_confidence: bool = Field(alias="lowConfidence")
    mood_counts: dict[str, int] = Field(alias="moodCounts")


class RecentSearchesOut(BaseModel):
    terms: list[str]


class DayActivityOut(BaseModel):
    """One cell of the activity strip."""

    model_config = ConfigDict(populate_by_name=True)

    day: str
    has_entry: bool = Field(alias="hasEntry")
    is_complete: bool = Field(alias="isComplete")

"""Pydantic models for tracker API requests and responses."""
from .entries import EntryCreate, EntryUpdate, EntryItemIn, EntryOut, EntryItemOut, MonthGroup
from .stats import (
    StreakOut,
    SummaryOut,
    CategoryCountOut,
    TrendOut,
    RecentSearchesOut,
    DayActivityOut,
)

__all__ = [
    "EntryCreate",
    "EntryUpdate",
    "EntryItemIn",
    "EntryOut",
    "EntryItemOut",
    "MonthGroup",
    "StreakOut",
    "SummaryOut",
    "CategoryCountOut",
    "TrendOut",
    "RecentSearchesOut",
    "DayActivityOut",
]

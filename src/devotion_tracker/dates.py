"""
Calendar-day arithmetic shared by the store, aggregator and query modules.

Every computation in the engine keys on a normalized calendar day, never on
time of day.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterator, Union

from .errors import InvalidRangeError

DayLike = Union[date, datetime]


def normalize_day(value: DayLike) -> date:
    """
    Normalize a date or datetime to a local calendar day.

    Aware datetimes are converted to local time first; naive datetimes are
    taken as already local.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f"Expected date or datetime, got {type(value).__name__}")


def _short(day: date, with_year: bool = False) -> str:
    # Avoid %-d, it is not portable
    text = f"{day:%b} {day.day}"
    return f"{text}, {day.year}" if with_year else text


def range_label(start: date, end: date) -> str:
    """Human label for an inclusive day range, e.g. 'May 1 - May 7'."""
    if start == end:
        return _short(start, with_year=True)
    crosses_year = start.year != end.year
    return f"{_short(start, crosses_year)} - {_short(end, crosses_year)}"


def month_label(day: date) -> str:
    """Label of the month containing day, e.g. 'May 2024'."""
    return f"{day:%B} {day.year}"


@dataclass(frozen=True)
class DayRange:
    """Inclusive range of calendar days."""

    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise InvalidRangeError(self.start, self.end)

    @classmethod
    def of(cls, start: DayLike, end: DayLike) -> "DayRange":
        return cls(normalize_day(start), normalize_day(end))

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def __len__(self) -> int:
        return (self.end - self.start).days + 1

    @property
    def label(self) -> str:
        return range_label(self.start, self.end)


def week_range(today: date, offset: int = 0, first_weekday: int = 0) -> DayRange:
    """
    Week containing today, shifted by offset weeks.

    first_weekday follows date.weekday() numbering (0 = Monday, 6 = Sunday).
    """
    back = (today.weekday() - first_weekday) % 7
    start = today - timedelta(days=back) + timedelta(weeks=offset)
    return DayRange(start, start + timedelta(days=6))


def _add_months(year: int, month: int, offset: int) -> tuple:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def month_range(today: date, offset: int = 0) -> DayRange:
    """First through last day of the month containing today, shifted by offset months."""
    year, month = _add_months(today.year, today.month, offset)
    start = date(year, month, 1)
    next_year, next_month = _add_months(year, month, 1)
    end = date(next_year, next_month, 1) - timedelta(days=1)
    return DayRange(start, end)


def trailing_days(today: date, days: int) -> DayRange:
    """The last `days` days ending on today."""
    if days < 1:
        raise ValueError("days must be at least 1")
    return DayRange(today - timedelta(days=days - 1), today)

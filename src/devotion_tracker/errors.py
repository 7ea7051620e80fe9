"""
Error taxonomy for the tracking engine.

Usage errors (DuplicateDayError, NotFoundError, InvalidRangeError) are raised
synchronously and must be handled at the call site. PersistenceError is the
only transient failure and the only one the engine retries.
"""

from datetime import date
from typing import Optional


class TrackerError(Exception):
    """Base class for all engine errors."""


class DuplicateDayError(TrackerError):
    """An entry already exists for this day on a single-occurrence tracker."""

    def __init__(self, day: date, tracked: Optional[str] = None):
        self.day = day
        self.tracked = tracked
        target = f" for {tracked}" if tracked else ""
        super().__init__(
            f"An entry{target} already exists on {day.isoformat()}; use update instead"
        )


class NotFoundError(TrackerError):
    """No entry with the given id exists in the store."""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Entry {entry_id} not found")


class InvalidRangeError(TrackerError):
    """A date range was given with start after end."""

    def __init__(self, start: date, end: date):
        self.start = start
        self.end = end
        super().__init__(
            f"Invalid range: start {start.isoformat()} is after end {end.isoformat()}"
        )


class PersistenceError(TrackerError):
    """Wraps a storage failure that survived every retry attempt."""

    def __init__(
        self,
        operation: str,
        entry_id: str,
        attempts: int,
        cause: Optional[BaseException] = None,
    ):
        self.operation = operation
        self.entry_id = entry_id
        self.attempts = attempts
        self.cause = cause
        super().__init__(
            f"Failed to {operation} entry {entry_id} after {attempts} attempt(s): {cause}"
        )

"""
Pytest fixtures for Devotion Tracker tests.
"""
import sys
import pytest
from datetime import date, timedelta
from pathlib import Path
from dotenv import load_dotenv

# Ensure src/ is on sys.path so tests can import devotion_tracker.
ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Load environment variables
load_dotenv()

from devotion_tracker.config import TrackerSettings  # noqa: E402
from devotion_tracker.models import (  # noqa: E402
    GRATITUDE,
    JOURNAL,
    MOOD,
    SpiritualHabit,
    habit_profile,
)
from devotion_tracker.session import TrackerSession  # noqa: E402
from devotion_tracker.store import EntryStore  # noqa: E402

# A Wednesday; the week (Monday start) is May 13 - May 19, 2024
TODAY = date(2024, 5, 15)


def days_ago(n: int) -> date:
    """Day n days before TODAY."""
    return TODAY - timedelta(days=n)


# ============================================================================
# Persistence Backends
# ============================================================================


class MemoryBackend:
    """In-memory PersistenceBackend recording every call."""

    def __init__(self, rows=None):
        self.rows = {row["id"]: row for row in rows or []}
        self.calls = []

    def load_all(self):
        return list(self.rows.values())

    def persist(self, entry):
        self.calls.append(("persist", entry.id))
        self.rows[entry.id] = entry.to_dict()

    def remove(self, entry_id):
        self.calls.append(("remove", entry_id))
        self.rows.pop(entry_id, None)


class FlakyBackend(MemoryBackend):
    """Backend that fails its next `failures` write calls."""

    def __init__(self, failures: int = 0):
        super().__init__()
        self.failures = failures
        self.attempts = 0

    def _maybe_fail(self):
        self.attempts += 1
        if self.failures > 0:
            self.failures -= 1
            raise OSError("disk unavailable")

    def persist(self, entry):
        self._maybe_fail()
        super().persist(entry)

    def remove(self, entry_id):
        self._maybe_fail()
        super().remove(entry_id)


# ============================================================================
# Store and Session Fixtures
# ============================================================================


@pytest.fixture
def today():
    """Fixed reference day for streak and period calculations."""
    return TODAY


@pytest.fixture
def journal_store():
    return EntryStore(JOURNAL)


@pytest.fixture
def gratitude_store():
    return EntryStore(GRATITUDE)


@pytest.fixture
def mood_store():
    return EntryStore(MOOD)


@pytest.fixture
def prayer_store():
    return EntryStore(habit_profile(SpiritualHabit.PRAYER))


@pytest.fixture
def settings():
    """Settings with no retry backoff so persistence tests run instantly."""
    return TrackerSettings(persist_backoff_seconds=0, debounce_seconds=0.05)


@pytest.fixture
def session(settings):
    """In-memory session pinned to TODAY."""
    return TrackerSession(settings, clock=lambda: TODAY)

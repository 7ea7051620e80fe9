"""
Tracker session: the context object binding stores, settings and a clock.

One session serves one user. It opens a store per tracker key on first use,
loading history from the persistence backend when one is configured, and
hands the engine's pure functions the settings they need.
"""

import logging
import os
import threading
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional

from .aggregator import (
    DayActivity,
    Summary,
    can_go_back,
    compute_summary,
    day_activity,
    month_summary,
    week_summary,
)
from .config import TrackerSettings
from .debounce import ErrorHandler, QueryDebouncer, ResultHandler
from .errors import PersistenceError
from .models import profile_for_key
from .persistence import PersistenceBackend, PersistenceWriter, SqliteBackend
from .query import ExportSelection, QueryDescriptor, evaluate, export_selection
from .search_history import RecentSearches
from .store import EntryStore
from .streaks import Streak, streak_for
from .trends import TrendReport, classify_trend

logger = logging.getLogger(__name__)

BackendFactory = Callable[[str], PersistenceBackend]


class TrackerSession:
    """
    Owns every store of one user session.

    Without a backend_factory the session is purely in-memory.
    """

    def __init__(
        self,
        settings: Optional[TrackerSettings] = None,
        backend_factory: Optional[BackendFactory] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        self.settings = settings or TrackerSettings()
        self._backend_factory = backend_factory
        self._clock = clock or date.today
        self._stores: Dict[str, EntryStore] = {}
        self._lock = threading.Lock()
        self.recent_searches = RecentSearches(cap=self.settings.recent_search_cap)
        self.persistence_errors: List[PersistenceError] = []

    @classmethod
    def with_sqlite(cls, settings: TrackerSettings, clock=None) -> "TrackerSession":
        """Session persisting every tracker to settings.db_path."""
        os.makedirs(settings.data_path, exist_ok=True)
        db_path = settings.db_path
        logger.info(f"[SESSION] Using SQLite storage at {db_path}")
        return cls(
            settings,
            backend_factory=lambda key: SqliteBackend(db_path, key),
            clock=clock,
        )

    def today(self) -> date:
        return self._clock()

    # ------------------------------------------------------------------
    # Stores
    # ------------------------------------------------------------------

    def store(self, key: str) -> EntryStore:
        """
        Store for a tracker key, opened on first use.

        Raises:
            KeyError: unknown tracker key
        """
        with self._lock:
            store = self._stores.get(key)
            if store is None:
                store = self._open(key)
                self._stores[key] = store
            return store

    def _open(self, key: str) -> EntryStore:
        profile = profile_for_key(key)
        if self._backend_factory is None:
            logger.info(f"[SESSION] Opened in-memory {key} store")
            return EntryStore(profile)

        backend = self._backend_factory(key)
        writer = PersistenceWriter(
            backend,
            max_attempts=self.settings.persist_max_attempts,
            backoff_seconds=self.settings.persist_backoff_seconds,
            on_error=self._record_error,
        )
        return EntryStore.load(profile, backend, writer=writer)

    @property
    def open_trackers(self) -> List[str]:
        return sorted(self._stores)

    def _record_error(self, error: PersistenceError) -> None:
        self.persistence_errors.append(error)

    def retry_pending(self) -> int:
        """Replay failed writes on every open store. Returns the number that succeeded."""
        done = 0
        for store in list(self._stores.values()):
            done += store.retry_writes()
        return done

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def streak(self, key: str) -> Streak:
        return streak_for(self.store(key), self.today())

    def summary(self, key: str, start: date, end: date) -> Summary:
        return compute_summary(self.store(key), start, end)

    def week_summary(self, key: str, offset: int = 0) -> Summary:
        return week_summary(
            self.store(key), offset, self.today(), self.settings.first_weekday
        )

    def month_summary(self, key: str, offset: int = 0) -> Summary:
        return month_summary(self.store(key), offset, self.today())

    def can_go_back(self, key: str, offset: int, period: str = "week") -> bool:
        return can_go_back(
            self.store(key), offset, self.today(), period, self.settings.first_weekday
        )

    def activity(self, key: str, days: int = 7) -> List[DayActivity]:
        return day_activity(self.store(key), days, self.today())

    def trend(
        self,
        key: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> TrendReport:
        """
        Mood trend over [start, end].

        Defaults to the trailing trend_window_days ending today.
        """
        end = end or self.today()
        start = start or end - timedelta(days=self.settings.trend_window_days - 1)
        return classify_trend(
            self.store(key).entries_in_range(start, end),
            threshold_points=self.settings.trend_threshold_points,
            min_entries=self.settings.trend_min_entries,
        )

    def search(self, key: str, query: QueryDescriptor):
        return evaluate(self.store(key), query)

    def export(self, key: str, query: QueryDescriptor) -> ExportSelection:
        return export_selection(self.store(key), query)

    def debouncer(
        self,
        key: str,
        on_result: ResultHandler,
        on_error: Optional[ErrorHandler] = None,
    ) -> QueryDebouncer:
        """Debounced search over one tracker feeding this session's recent searches."""
        store = self.store(key)
        return QueryDebouncer(
            lambda query: evaluate(store, query),
            on_result,
            quiescence=self.settings.debounce_seconds,
            on_commit=self.recent_searches.commit,
            on_error=on_error,
        )

"""
Persistence backends and the retrying writer used by the Entry Store.

The in-memory store is authoritative. The writer forwards each committed
mutation to a backend, retries transient failures with exponential backoff,
and reports exhausted retries through an error callback while keeping the
failed operation queued for a later retry.
"""

import json
import logging
import sqlite3
import threading
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List, Optional, Protocol, Union

from .errors import PersistenceError
from .models import Entry

logger = logging.getLogger(__name__)


class PersistenceBackend(Protocol):
    """Storage interface consumed by the engine."""

    def load_all(self) -> List[Dict[str, Any]]:
        ...

    def persist(self, entry: Entry) -> None:
        ...

    def remove(self, entry_id: str) -> None:
        ...


class SqliteBackend:
    """
    SQLite storage for one tracker's entries.

    All trackers can share one database file; rows are keyed by
    (tracker, id) and hold the entry as a JSON document.
    """

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS entries (
            tracker TEXT NOT NULL,
            id TEXT NOT NULL,
            day TEXT NOT NULL,
            payload TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            PRIMARY KEY (tracker, id)
        )
    """

    def __init__(self, db_path: Union[str, Path], tracker_key: str):
        self.db_path = str(db_path)
        self.tracker_key = tracker_key
        with self._connect() as conn:
            conn.execute(self.SCHEMA)

    @contextmanager
    def _connect(self) -> Generator[sqlite3.Connection, None, None]:
        """Open a connection that commits on success and always closes."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def load_all(self) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT payload FROM entries WHERE tracker = ? ORDER BY day, id",
                (self.tracker_key,),
            ).fetchall()
        return [json.loads(row["payload"]) for row in rows]

    def persist(self, entry: Entry) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO entries (tracker, id, day, payload, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (tracker, id) DO UPDATE SET
                    day = excluded.day,
                    payload = excluded.payload,
                    updated_at = excluded.updated_at
                """,
                (
                    self.tracker_key,
                    entry.id,
                    entry.date.isoformat(),
                    json.dumps(entry.to_dict(), ensure_ascii=False),
                    datetime.now(timezone.utc).isoformat(),
                ),
            )

    def remove(self, entry_id: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "DELETE FROM entries WHERE tracker = ? AND id = ?",
                (self.tracker_key, entry_id),
            )


@dataclass
class PendingOperation:
    """A persistence call that exhausted its retries."""

    operation: str  # persist or remove
    entry_id: str
    entry: Optional[Entry] = None
    failed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class PersistenceWriter:
    """
    Fire-and-forget front end for a PersistenceBackend.

    Never raises into the caller. Failures are retried up to max_attempts
    with exponential backoff; the final failure is passed to on_error as a
    PersistenceError and the operation is kept for retry_pending().

    The newest operation on an entry wins: at most one operation per entry
    id is pending, and a later success drops the pending one, so a replay
    never writes an old snapshot over newer data or revives a deleted entry.
    """

    def __init__(
        self,
        backend: PersistenceBackend,
        max_attempts: int = 3,
        backoff_seconds: float = 0.05,
        on_error: Optional[Callable[[PersistenceError], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.backend = backend
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.on_error = on_error
        self._sleep = sleep
        self._pending: deque = deque()
        self._lock = threading.Lock()
        self._stats = {
            "persisted": 0,
            "removed": 0,
            "retries": 0,
            "failures": 0,
            "superseded": 0,
        }

    def persist(self, entry: Entry) -> bool:
        """Write an entry snapshot. Returns True if the backend accepted it."""
        snapshot = entry.clone()
        return self._run(
            PendingOperation("persist", snapshot.id, snapshot),
            lambda: self.backend.persist(snapshot),
        )

    def remove(self, entry_id: str) -> bool:
        """Delete an entry from the backend. Returns True on success."""
        return self._run(
            PendingOperation("remove", entry_id),
            lambda: self.backend.remove(entry_id),
        )

    def _drop_pending(self, entry_id: str) -> None:
        """Forget queued operations on entry_id. Caller holds the lock."""
        kept = deque(p for p in self._pending if p.entry_id != entry_id)
        dropped = len(self._pending) - len(kept)
        if dropped:
            self._stats["superseded"] += dropped
            self._pending = kept
            logger.debug(f"[PERSIST] {entry_id}: dropped {dropped} superseded pending operation(s)")

    def _run(self, op: PendingOperation, call: Callable[[], None]) -> bool:
        last_error: Optional[BaseException] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                call()
                with self._lock:
                    self._stats["persisted" if op.operation == "persist" else "removed"] += 1
                    self._drop_pending(op.entry_id)
                logger.debug(f"[PERSIST] {op.operation} {op.entry_id} ok (attempt {attempt})")
                return True
            except Exception as e:
                last_error = e
                if attempt < self.max_attempts:
                    delay = self.backoff_seconds * (2 ** (attempt - 1))
                    with self._lock:
                        self._stats["retries"] += 1
                    logger.warning(
                        f"[PERSIST] {op.operation} {op.entry_id} failed ({e}); "
                        f"retrying in {delay:.2f}s"
                    )
                    self._sleep(delay)

        error = PersistenceError(op.operation, op.entry_id, self.max_attempts, last_error)
        error.__cause__ = last_error
        with self._lock:
            self._stats["failures"] += 1
            self._drop_pending(op.entry_id)
            self._pending.append(op)
        logger.error(f"[PERSIST] {error}")
        if self.on_error:
            self.on_error(error)
        return False

    def retry_pending(self) -> int:
        """
        Replay failed operations in their original order.

        Stops at the first operation that fails again so later writes are
        never applied ahead of earlier ones.

        Returns:
            Number of operations that succeeded
        """
        with self._lock:
            queued = list(self._pending)
            self._pending.clear()

        done = 0
        for index, op in enumerate(queued):
            if op.operation == "persist":
                call = lambda op=op: self.backend.persist(op.entry)
            else:
                call = lambda op=op: self.backend.remove(op.entry_id)
            # _run re-queues the op itself on failure
            if not self._run(op, call):
                with self._lock:
                    newer = [p for p in self._pending if p is not op]
                    newer_ids = {p.entry_id for p in newer}
                    rest = [p for p in [op] + queued[index + 1:] if p.entry_id not in newer_ids]
                    self._pending = deque(rest + newer)
                break
            done += 1

        logger.info(f"[PERSIST] Replayed {done}/{len(queued)} pending operation(s)")
        return done

    @property
    def pending(self) -> List[PendingOperation]:
        with self._lock:
            return list(self._pending)

    def get_stats(self) -> dict:
        with self._lock:
            return {**self._stats, "pending": len(self._pending)}

"""Capped, de-duplicated list of recent search terms, most recent first."""

import logging
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


class RecentSearches:
    """In-memory recent-search list fed by the debouncer's commit events."""

    def __init__(self, cap: int = 5, terms: Optional[Iterable[str]] = None):
        if cap < 1:
            raise ValueError("cap must be at least 1")
        self.cap = cap
        self._terms: List[str] = []
        # Replay oldest first so the given order (most recent first) is kept
        for term in reversed(list(terms or [])):
            self.commit(term)

    def commit(self, term: str) -> None:
        term = term.strip()
        if not term:
            return
        key = term.casefold()
        self._terms = [t for t in self._terms if t.casefold() != key]
        self._terms.insert(0, term)
        del self._terms[self.cap:]
        logger.debug(f"[SEARCH] committed {term!r}")

    @property
    def terms(self) -> List[str]:
        return list(self._terms)

    def clear(self) -> None:
        self._terms.clear()

    def __len__(self) -> int:
        return len(self._terms)

"""Shared route dependencies: the session, tracker resolution and error mapping."""
import logging
from enum import Enum
from functools import lru_cache
from typing import Optional, Type

from fastapi import Depends, HTTPException

from devotion_tracker.config import get_settings
from devotion_tracker.errors import (
    DuplicateDayError,
    InvalidRangeError,
    NotFoundError,
    TrackerError,
)
from devotion_tracker.session import TrackerSession
from devotion_tracker.store import EntryStore

from .config import get_api_settings

log = logging.getLogger(__name__)


@lru_cache
def get_session() -> TrackerSession:
    """Process-wide session. Tests replace it through app.dependency_overrides."""
    settings = get_settings()
    if get_api_settings().in_memory:
        log.info("[SESSION] Starting in-memory session")
        return TrackerSession(settings)
    return TrackerSession.with_sqlite(settings)


def get_store(tracker: str, session: TrackerSession = Depends(get_session)) -> EntryStore:
    """Resolve the {tracker} path segment to its store."""
    try:
        return session.store(tracker)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown tracker '{tracker}'")


def http_error(error: TrackerError) -> HTTPException:
    """Translate an engine error into an HTTP error."""
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, DuplicateDayError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, InvalidRangeError):
        return HTTPException(status_code=400, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


def parse_category(raw: Optional[str], *enum_types: Optional[Type[Enum]]) -> Optional[Enum]:
    """
    Resolve a category value against the first taxonomy that knows it.

    Raises:
        HTTPException: 422 if no taxonomy accepts the value
    """
    if raw is None:
        return None
    for enum_type in enum_types:
        if enum_type is None:
            continue
        try:
            return enum_type(raw)
        except ValueError:
            continue
    valid = [m.value for t in enum_types if t is not None for m in t]
    raise HTTPException(
        status_code=422,
        detail=f"Invalid category '{raw}'. Must be one of: {valid}",
    )

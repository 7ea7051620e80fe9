"""Streak, summary, activity and trend API routes."""
import datetime as dt
import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from devotion_tracker.aggregator import Summary
from devotion_tracker.errors import TrackerError
from devotion_tracker.session import TrackerSession
from devotion_tracker.store import EntryStore
from devotion_tracker.streaks import milestone_message, next_milestone

from ..dependencies import get_session, get_store, http_error
from ..models.stats import DayActivityOut, StreakOut, SummaryOut, TrendOut

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trackers", tags=["Statistics"])

# Plain functions: reads share the store lock with threadpool writes


def _summary_to_out(summary: Summary, **navigation) -> SummaryOut:
    return SummaryOut(**summary.to_dict(), **navigation)


@router.get("/{tracker}/streak", response_model=StreakOut)
def get_streak(
    store: EntryStore = Depends(get_store),
    session: TrackerSession = Depends(get_session),
):
    """Current and longest streak, recomputed from the stored entries."""
    streak = session.streak(store.profile.key)
    return StreakOut(
        **streak.to_dict(),
        next_milestone=next_milestone(streak.current_streak),
        milestone_message=milestone_message(streak.current_streak),
    )


@router.get("/{tracker}/summary", response_model=SummaryOut)
def get_summary(
    start: Optional[dt.date] = Query(None, description="First day (inclusive)"),
    end: Optional[dt.date] = Query(None, description="Last day (inclusive)"),
    period: Literal["week", "month"] = Query("week", description="Used when no range is given"),
    offset: int = Query(0, description="0 = current period, -1 = previous; future periods are empty"),
    store: EntryStore = Depends(get_store),
    session: TrackerSession = Depends(get_session),
):
    """
    Summary over an explicit range, or over a week/month relative to today.

    Args:
        start: Range start; requires end
        end: Range end; requires start
        period: 'week' or 'month' when no explicit range is given
        offset: Periods back from the current one
    """
    key = store.profile.key
    if (start is None) != (end is None):
        raise HTTPException(status_code=400, detail="start and end must be given together")

    try:
        if start is not None:
            return _summary_to_out(session.summary(key, start, end))

        if period == "week":
            summary = session.week_summary(key, offset)
        else:
            summary = session.month_summary(key, offset)
    except TrackerError as e:
        raise http_error(e) from e

    return _summary_to_out(
        summary,
        can_go_back=session.can_go_back(key, offset, period),
        can_go_forward=offset < 0,
    )


@router.get("/{tracker}/activity", response_model=list[DayActivityOut])
def get_activity(
    days: int = Query(7, ge=1, le=366, description="Number of days ending today"),
    store: EntryStore = Depends(get_store),
    session: TrackerSession = Depends(get_session),
):
    """Per-day presence and completeness, oldest first."""
    return [
        DayActivityOut(day=a.day.isoformat(), has_entry=a.has_entry, is_complete=a.is_complete)
        for a in session.activity(store.profile.key, days)
    ]


@router.get("/{tracker}/trend", response_model=TrendOut)
def get_trend(
    days: Optional[int] = Query(None, ge=1, le=366, description="Trailing window; defaults to the configured window"),
    store: EntryStore = Depends(get_store),
    session: TrackerSession = Depends(get_session),
):
    """Mood trend of the trailing window ending today."""
    end = session.today()
    start = end - dt.timedelta(days=days - 1) if days else None
    report = session.trend(store.profile.key, start, end)
    return TrendOut(**report.to_dict())


@router.post("/persistence/retry")
def retry_persistence(session: TrackerSession = Depends(get_session)):
    """Replay writes that failed after every retry."""
    replayed = session.retry_pending()
    log.info(f"[API] Replayed {replayed} pending write(s)")
    return {"replayed": replayed, "errors": len(session.persistence_errors)}

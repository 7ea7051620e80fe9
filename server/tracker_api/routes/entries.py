"""Entry API routes: log, edit, delete and search entries of one tracker."""
import datetime as dt
import logging
from typing import Literal, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query

from devotion_tracker.errors import TrackerError
from devotion_tracker.models import Entry, EntryItem
from devotion_tracker.query import QueryDescriptor, SortOrder, evaluate, group_by_month
from devotion_tracker.session import TrackerSession
from devotion_tracker.store import EntryStore

from ..dependencies import get_session, get_store, http_error, parse_category
from ..models.entries import EntryCreate, EntryItemIn, EntryOut, EntryUpdate, MonthGroup
from ..models.stats import RecentSearchesOut

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trackers", tags=["Entries"])

# Handlers are plain functions so FastAPI runs them in its threadpool;
# persistence retries back off with time.sleep


def _entry_to_out(entry: Entry) -> EntryOut:
    """Convert an engine Entry to its response model."""
    return EntryOut.model_validate(entry.to_dict())


def _build_items(store: EntryStore, items: list[EntryItemIn]) -> list[EntryItem]:
    item_type = store.profile.item_category_type
    return [
        EntryItem(text=item.text, category=parse_category(item.category, item_type))
        for item in items
    ]


# ============================================================================
# Recent searches
# ============================================================================


@router.get("/searches/recent", response_model=RecentSearchesOut)
def get_recent_searches(session: TrackerSession = Depends(get_session)):
    """Recently committed search terms, most recent first."""
    return RecentSearchesOut(terms=session.recent_searches.terms)


@router.delete("/searches/recent", response_model=RecentSearchesOut)
def clear_recent_searches(session: TrackerSession = Depends(get_session)):
    """Forget every recent search term."""
    session.recent_searches.clear()
    return RecentSearchesOut(terms=[])


# ============================================================================
# Entries
# ============================================================================


@router.get("/{tracker}/entries", response_model=Union[list[EntryOut], list[MonthGroup]])
def list_entries(
    q: str = Query("", description="Text matched against items, title, note, categories and verse refs"),
    category: Optional[str] = Query(None, description="Entry or item category value"),
    favorites_only: bool = Query(False),
    has_photos_only: bool = Query(False),
    start: Optional[dt.date] = Query(None, description="First day (inclusive)"),
    end: Optional[dt.date] = Query(None, description="Last day (inclusive)"),
    sort: SortOrder = Query(SortOrder.NEWEST),
    group: Optional[Literal["month"]] = Query(None, description="Group results under month headers"),
    store: EntryStore = Depends(get_store),
    session: TrackerSession = Depends(get_session),
):
    """
    Filter and sort a tracker's entries.

    Searches arrive already debounced by the client, so a non-empty `q`
    is committed to the recent searches list.
    """
    query = QueryDescriptor(
        text=q,
        category=parse_category(
            category, store.profile.category_type, store.profile.item_category_type
        ),
        favorites_only=favorites_only,
        has_photos_only=has_photos_only,
        start=start,
        end=end,
        sort=sort,
    )
    try:
        results = evaluate(store, query)
    except TrackerError as e:
        raise http_error(e) from e

    if query.search_text:
        session.recent_searches.commit(query.search_text)

    if group == "month":
        return [
            MonthGroup(label=label, entries=[_entry_to_out(e) for e in entries])
            for label, entries in group_by_month(results)
        ]
    return [_entry_to_out(e) for e in results]


@router.post("/{tracker}/entries", response_model=EntryOut, status_code=201)
def create_entry(body: EntryCreate, store: EntryStore = Depends(get_store)):
    """
    Log a new entry.

    On journal and gratitude trackers a second entry for the same day is
    merged into the existing one; mood and habit trackers answer 409.
    """
    entry = Entry.create(
        body.date,
        items=_build_items(store, body.items),
        category=parse_category(body.category, store.profile.category_type),
        title=body.title,
        note=body.note,
        favorite=body.favorite,
        completed=body.completed,
        linked_refs=body.linked_refs,
        photo_names=body.photo_names,
    )
    try:
        entry_id = store.insert(entry)
    except TrackerError as e:
        raise http_error(e) from e
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return _entry_to_out(store.get(entry_id))


@router.patch("/{tracker}/entries/{entry_id}", response_model=EntryOut)
def update_entry(entry_id: str, body: EntryUpdate, store: EntryStore = Depends(get_store)):
    """Apply a partial update. Nothing changes if the update is rejected."""
    # Only note and category may be cleared with an explicit null
    changes = {
        name: value
        for name, value in body.model_dump(exclude_unset=True).items()
        if value is not None or name in ("note", "category")
    }
    if "category" in changes:
        changes["category"] = parse_category(changes["category"], store.profile.category_type)
    if "items" in changes:
        changes["items"] = _build_items(store, body.items or [])

    def apply(entry: Entry) -> None:
        for name, value in changes.items():
            setattr(entry, name, value)

    try:
        updated = store.update(entry_id, apply)
    except TrackerError as e:
        raise http_error(e) from e
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return _entry_to_out(updated)


@router.delete("/{tracker}/entries/{entry_id}")
def delete_entry(entry_id: str, store: EntryStore = Depends(get_store)):
    """Delete an entry."""
    try:
        store.delete(entry_id)
    except TrackerError as e:
        raise http_error(e) from e
    log.info(f"[API] Deleted {store.profile.key} entry {entry_id}")
    return {"status": "deleted", "id": entry_id}

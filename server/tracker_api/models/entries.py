"""Entry request and response models."""
import datetime as dt
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional


class EntryItemIn(BaseModel):
    """One item of a new or updated entry."""

    text: str = Field(min_length=1)
    category: Optional[str] = None


class EntryCreate(BaseModel):
    """Payload for logging a new entry."""

    date: dt.date
    items: list[EntryItemIn] = Field(default_factory=list)
    category: Optional[str] = None
    title: str = ""
    note: Optional[str] = None
    favorite: bool = False
    completed: bool = True
    linked_refs: list[str] = Field(default_factory=list)
    photo_names: list[str] = Field(default_factory=list)


class EntryUpdate(BaseModel):
    """Partial update; omitted fields keep their current value."""

    date: Optional[dt.date] = None
    items: Optional[list[EntryItemIn]] = None
    category: Optional[str] = None
    title: Optional[str] = None
    note: Optional[str] = None
    favorite: Optional[bool] = None
    completed: Optional[bool] = None
    linked_refs: Optional[list[str]] = None
    photo_names: Optional[list[str]] = None


class EntryItemOut(BaseModel):
    id: str
    text: str
    category: Optional[str] = None
    created_at: str


class EntryOut(BaseModel):
    """Stored entry as returned by the API."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    date: str
    items: list[EntryItemOut]
    category: Optional[str] = None
    title: str
    note: Optional[str] = None
    favorite: bool
    completed: bool
    tracked: Optional[str] = None
    linked_refs: list[str]
    photo_names: list[str]
    created_at: str
    modified_at: str


class MonthGroup(BaseModel):
    """Entries of one month, as shown under a month header."""

    label: str
    entries: list[EntryOut]

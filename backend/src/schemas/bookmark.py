"""Pydantic schemas for bookmark records and requests."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Bookmark(BaseModel):
    """A bookmark row as stored by the hosted data endpoint."""

    # Row ids may be bigint or uuid depending on the table definition
    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)

    id: str
    url: str
    title: str
    user_id: str  # Owner - set at creation, never changed
    created_at: datetime


class BookmarkPage(BaseModel):
    """One page of bookmarks plus the total number of rows matching the query."""

    items: list[Bookmark]
    total: int


class BookmarkFormInput(BaseModel):
    """
    Raw add/edit form submission.

    Fields are plain strings on purpose: trimming and URL checks happen in the form
    controller so that the user gets the same messages on every surface.
    """

    url: str = ""
    title: str = ""

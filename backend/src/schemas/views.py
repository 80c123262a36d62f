"""Response schemas for the landing, list and form views."""
from datetime import datetime

from pydantic import BaseModel

from schemas.bookmark import Bookmark
from services.bookmark_form import BookmarkFormController
from services.display import display_domain, format_added
from services.list_sync import ListViewState

NO_BOOKMARKS_MESSAGE = "No bookmarks yet. Add your first bookmark to get started."
NO_MATCHES_MESSAGE = "No bookmarks match your search. Try a different query."


class LandingView(BaseModel):
    """Schema for the landing page."""

    title: str
    description: str
    authenticated: bool
    email: str | None = None
    login_url: str = "/login"
    bookmarks_url: str = "/bookmarks"


class BookmarkView(BaseModel):
    """Schema for one row of the bookmark table."""

    id: str
    url: str
    title: str
    domain: str
    added: str
    created_at: datetime

    @classmethod
    def from_bookmark(cls, bookmark: Bookmark) -> "BookmarkView":
        """Build the row shown for `bookmark`."""
        return cls(
            id=bookmark.id,
            url=bookmark.url,
            title=bookmark.title,
            domain=display_domain(bookmark.url),
            added=format_added(bookmark.created_at),
            created_at=bookmark.created_at,
        )


class BookmarkListView(BaseModel):
    """Schema for the bookmark list view (one page plus pagination metadata)."""

    items: list[BookmarkView]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_previous: bool
    has_next: bool
    search: str
    refresh_counter: int
    empty_message: str | None = None
    error: str | None = None

    @classmethod
    def from_state(cls, state: ListViewState, error: str | None = None) -> "BookmarkListView":
        """Render a `ListViewState` snapshot."""
        empty_message = None
        if state.total == 0 and not state.search_term.strip():
            empty_message = NO_BOOKMARKS_MESSAGE
        elif not state.items and state.search_term.strip():
            empty_message = NO_MATCHES_MESSAGE
        return cls(
            items=[BookmarkView.from_bookmark(b) for b in state.items],
            total=state.total,
            page=state.page,
            page_size=state.page_size,
            total_pages=state.total_pages,
            has_previous=state.has_previous,
            has_next=state.has_next,
            search=state.search_text,
            refresh_counter=state.refresh_counter,
            empty_message=empty_message,
            error=error,
        )


class FormResultView(BaseModel):
    """Schema for the outcome of an add/edit submission."""

    ok: bool
    editing_id: str | None = None
    error: str | None = None
    error_kind: str | None = None

    @classmethod
    def from_form(cls, form: BookmarkFormController, ok: bool) -> "FormResultView":
        """Summarize the form after `submit()`."""
        return cls(
            ok=ok,
            editing_id=form.editing_id,
            error=form.error,
            error_kind=form.error_kind,
        )

"""
Bookmark list synchronization.

`ListSyncController` owns the visible page of bookmarks for one open view and
reconciles every refetch trigger (page navigation, settled search input, refresh
after a mutation, change notifications from other sessions) into fetches against
the bookmark client, the single source of truth.
"""
import asyncio
import inspect
import logging
import math
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass, replace
from types import TracebackType
from typing import Any, Protocol, Self

from core.change_feed import ChangeCallback, Subscription
from core.debounce import Debouncer
from schemas.bookmark import Bookmark, BookmarkPage
from schemas.change import ChangeEvent
from schemas.session import Session, SessionEvent
from services.auth_state import AuthState
from services.exceptions import AuthError, BackendError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
DEFAULT_DEBOUNCE_SECONDS = 0.5

FETCH_ERROR_MESSAGE = "Could not load bookmarks. Please try again."
DELETE_ERROR_MESSAGE = "Failed to delete bookmark. Please try again."
REAUTHENTICATE_MESSAGE = "Your session has expired. Please log in again."

StateListener = Callable[["ListViewState"], Awaitable[None] | None]
ErrorListener = Callable[[str], Awaitable[None] | None]


class BookmarkSource(Protocol):
    """What the controller needs from a bookmark client."""

    async def list(
        self, owner_id: str, page: int, page_size: int, search_term: str = "",
    ) -> BookmarkPage: ...

    async def delete(self, bookmark_id: str) -> None: ...

    async def subscribe_to_changes(
        self, owner_id: str, callback: ChangeCallback,
    ) -> Subscription: ...


def total_pages(total: int, page_size: int) -> int:
    """Number of pages needed for `total` rows."""
    return math.ceil(total / page_size)


def clamp_page(page: int, pages: int) -> int:
    """Clamp a requested page into `[1, pages]` (page 1 always exists)."""
    return max(1, min(page, max(pages, 1)))


@dataclass(frozen=True)
class ListViewState:
    """Immutable snapshot of one list view; replaced wholesale on every change."""

    page_size: int = DEFAULT_PAGE_SIZE
    page: int = 1
    search_text: str = ""  # raw input
    search_term: str = ""  # settled (debounced) input
    total: int = 0
    items: tuple[Bookmark, ...] = ()
    refresh_counter: int = 0

    @property
    def total_pages(self) -> int:
        """Pages available for the current total."""
        return total_pages(self.total, self.page_size)

    @property
    def has_previous(self) -> bool:
        """True when a previous page exists."""
        return self.page > 1

    @property
    def has_next(self) -> bool:
        """True when a next page exists."""
        return self.page < self.total_pages


async def _notify(listener: Callable[..., Awaitable[None] | None] | None, *args: Any) -> None:
    if listener is None:
        return
    result = listener(*args)
    if inspect.isawaitable(result):
        await result


class ListSyncController:
    """
    Keeps one view's page of bookmarks in step with the remote table.

    Use as an async context manager (or call `start()`/`close()`) so the change
    subscription, the debounce timer and scheduled fetches are torn down on every
    exit path.
    """

    def __init__(
        self,
        client: BookmarkSource,
        owner_id: str,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        on_state: StateListener | None = None,
        on_error: ErrorListener | None = None,
    ) -> None:
        self._client = client
        self._owner_id = owner_id
        self._state = ListViewState(page_size=page_size)
        self._on_state = on_state
        self._on_error = on_error
        self._debouncer: Debouncer[str] = Debouncer(debounce_seconds, self._on_search_settled)
        self._subscription: Subscription | None = None
        self._tasks: set[asyncio.Task] = set()
        self._last_request: tuple[int, str] | None = None
        self._session_tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> ListViewState:
        """Current snapshot."""
        return self._state

    @property
    def owner_id(self) -> str:
        """User whose bookmarks are shown."""
        return self._owner_id

    @property
    def subscribed(self) -> bool:
        """True while a change subscription is open."""
        return self._subscription is not None and not self._subscription.closed

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def start(self) -> None:
        """Subscribe to the owner's changes and load the first page."""
        await self._subscribe()
        await self.fetch(self._state.page, self._state.search_term)

    async def load(self, page: int = 1, search_term: str = "") -> bool:
        """
        One-shot load of `page` for `search_term`, without a subscription.

        Page 1 is fetched first so that the requested page can be clamped against
        the real total before it is requested.
        """
        self._state = replace(
            self._state, page=1, search_text=search_term, search_term=search_term,
        )
        if not await self.fetch(1, search_term):
            return False
        target = clamp_page(page, self._state.total_pages)
        if target == 1:
            return True
        return await self.fetch(target, search_term)

    async def close(self) -> None:
        """Tear down the subscription, the debounce timer and scheduled fetches."""
        self._debouncer.cancel()
        await self._close_subscription()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    async def set_owner(self, owner_id: str) -> None:
        """Switch to another user: resubscribe and reload from a fresh state."""
        if owner_id == self._owner_id:
            return
        await self.close()
        self._owner_id = owner_id
        self._state = ListViewState(page_size=self._state.page_size)
        self._last_request = None
        await self.start()

    def follow(self, auth_state: AuthState) -> Callable[[], None]:
        """
        Track the signed-in user of `auth_state`.

        Signing out closes the subscription; a different user switches the owner
        (closing the old subscription first). Returns the unsubscribe function.
        """

        def on_session_change(_event: SessionEvent, session: Session | None) -> None:
            if session is None:
                work = self.close()
            elif session.user.id != self._owner_id:
                work = self.set_owner(session.user.id)
            else:
                return
            task = asyncio.create_task(work)
            self._session_tasks.add(task)
            task.add_done_callback(self._session_tasks.discard)

        return auth_state.on_session_change(on_session_change)

    async def fetch(self, page: int, search_term: str) -> bool:
        """
        Fetch one page and swap it into the state.

        The page number, items and total are replaced together on success. On
        failure the previous state is kept and a single error message is reported;
        nothing is retried.
        """
        self._last_request = (page, search_term)
        try:
            result = await self._client.list(
                self._owner_id, page, self._state.page_size, search_term,
            )
        except AuthError:
            logger.warning("Bookmark fetch rejected for user %s", self._owner_id)
            await _notify(self._on_error, REAUTHENTICATE_MESSAGE)
            return False
        except BackendError:
            logger.exception("Error fetching bookmarks")
            await _notify(self._on_error, FETCH_ERROR_MESSAGE)
            return False

        self._state = replace(
            self._state, page=page, items=tuple(result.items), total=result.total,
        )
        await _notify(self._on_state, self._state)
        return True

    async def go_to_page(self, page: int) -> None:
        """Navigate to `page`, clamped to the available pages."""
        target = clamp_page(page, self._state.total_pages)
        if target == self._state.page:
            return
        await self.fetch(target, self._state.search_term)

    async def next_page(self) -> None:
        """Go forward one page; no-op on the last page."""
        await self.go_to_page(self._state.page + 1)

    async def previous_page(self) -> None:
        """Go back one page; no-op on the first page."""
        await self.go_to_page(self._state.page - 1)

    def set_search_text(self, text: str) -> None:
        """
        Record a keystroke in the search box.

        The page goes back to 1 immediately; the fetch waits for the input to
        settle for the debounce window.
        """
        self._state = replace(self._state, search_text=text, page=1)
        self._debouncer.trigger(text)

    async def refresh(self) -> None:
        """Bump the refresh counter and refetch (after an add, edit or delete)."""
        self._state = replace(self._state, refresh_counter=self._state.refresh_counter + 1)
        await self.fetch(self._state.page, self._state.search_term)

    async def delete(self, bookmark_id: str) -> bool:
        """
        Delete a bookmark, then refetch the current page.

        The row is never removed locally so that rows shifting in from the next page
        and the total stay consistent with the server.
        """
        try:
            await self._client.delete(bookmark_id)
        except BackendError:
            logger.exception("Error deleting bookmark %s", bookmark_id)
            await _notify(self._on_error, DELETE_ERROR_MESSAGE)
            return False
        await self.refresh()
        return True

    async def wait_idle(self) -> None:
        """Wait for a pending search to settle and for scheduled fetches to finish."""
        while self._session_tasks:
            await asyncio.gather(*list(self._session_tasks), return_exceptions=True)
        await self._debouncer.wait()
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_search_settled(self, text: str) -> None:
        self._state = replace(self._state, search_term=text)
        if self._last_request == (self._state.page, text):
            return
        self._schedule(self.fetch(self._state.page, text))

    def _on_change(self, event: ChangeEvent) -> None:
        if event.owner_id != self._owner_id:
            return
        logger.debug(
            "Bookmark %s %s, refetching page %d", event.bookmark_id, event.kind, self._state.page,
        )
        self._schedule(self.fetch(self._state.page, self._state.search_term))

    def _schedule(self, coro: Coroutine[Any, Any, bool]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _subscribe(self) -> None:
        if self.subscribed:
            return
        self._subscription = await self._client.subscribe_to_changes(
            self._owner_id, self._on_change,
        )

    async def _close_subscription(self) -> None:
        if self._subscription is not None:
            await self._subscription.close()
            self._subscription = None

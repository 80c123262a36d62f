"""In-memory stand-ins for the hosted backend used across tests."""
from datetime import UTC, datetime, timedelta

from core.change_feed import ChangeCallback, ChangeFeed, Subscription
from schemas.bookmark import Bookmark, BookmarkPage
from schemas.change import ChangeEvent, ChangeKind
from services.exceptions import BackendError

EPOCH = datetime(2025, 1, 5, 9, 30, tzinfo=UTC)

BACKEND_URL = "https://backend.test"
AUTH_URL = f"{BACKEND_URL}/auth/v1"
REST_URL = f"{BACKEND_URL}/rest/v1"


def bookmark_row(
    bookmark_id: str = "b1",
    url: str = "https://example.com",
    title: str = "Example",
    user_id: str = "user-1",
    created_at: datetime = EPOCH,
) -> dict:
    """A bookmark row as returned by the hosted data endpoint."""
    return {
        "id": bookmark_id,
        "url": url,
        "title": title,
        "user_id": user_id,
        "created_at": created_at.isoformat(),
    }


def session_body(
    access_token: str = "access-1",
    refresh_token: str = "refresh-1",
    user_id: str = "user-1",
) -> dict:
    """A token response as returned by the hosted auth endpoint."""
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": 3600,
        "refresh_token": refresh_token,
        "user": {"id": user_id, "email": f"{user_id}@example.com", "aud": "authenticated"},
    }


class InMemoryBookmarkClient:
    """
    Bookmark client backed by a list, with the same filtering and ordering rules as
    the hosted table (owner filter, case-insensitive title/url search, newest first).

    Set `list_error`/`delete_error`/`save_error` to make the next calls fail.
    """

    def __init__(self, change_feed: ChangeFeed | None = None) -> None:
        self.change_feed = change_feed or ChangeFeed()
        self.rows: list[Bookmark] = []
        self.list_calls: list[tuple[str, int, int, str]] = []
        self.list_error: BackendError | None = None
        self.delete_error: BackendError | None = None
        self.save_error: BackendError | None = None
        self._next_id = 1

    def seed(self, url: str, title: str, owner_id: str = "user-1") -> Bookmark:
        """Add a row without publishing a change (rows added later are newer)."""
        bookmark = Bookmark(
            id=f"b{self._next_id}",
            url=url,
            title=title,
            user_id=owner_id,
            created_at=EPOCH + timedelta(minutes=self._next_id),
        )
        self._next_id += 1
        self.rows.append(bookmark)
        return bookmark

    def seed_many(self, count: int, owner_id: str = "user-1") -> list[Bookmark]:
        return [
            self.seed(f"https://example.com/{i}", f"Bookmark {i}", owner_id)
            for i in range(count)
        ]

    async def list(
        self, owner_id: str, page: int, page_size: int, search_term: str = "",
    ) -> BookmarkPage:
        self.list_calls.append((owner_id, page, page_size, search_term))
        if self.list_error is not None:
            raise self.list_error
        term = search_term.strip().lower()
        matching = [
            b for b in self.rows
            if b.user_id == owner_id
            and (not term or term in b.title.lower() or term in b.url.lower())
        ]
        matching.sort(key=lambda b: b.created_at, reverse=True)
        start = (page - 1) * page_size
        return BookmarkPage(items=matching[start:start + page_size], total=len(matching))

    async def insert(self, url: str, title: str, owner_id: str) -> Bookmark:
        if self.save_error is not None:
            raise self.save_error
        bookmark = self.seed(url, title, owner_id)
        await self._publish(ChangeKind.INSERT, bookmark)
        return bookmark

    async def update(self, bookmark_id: str, url: str, title: str) -> Bookmark:
        if self.save_error is not None:
            raise self.save_error
        for i, row in enumerate(self.rows):
            if row.id == bookmark_id:
                updated = row.model_copy(update={"url": url, "title": title})
                self.rows[i] = updated
                await self._publish(ChangeKind.UPDATE, updated)
                return updated
        raise BackendError("Bookmark not found", status_code=404)

    async def delete(self, bookmark_id: str) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        for row in list(self.rows):
            if row.id == bookmark_id:
                self.rows.remove(row)
                await self._publish(ChangeKind.DELETE, row)

    async def subscribe_to_changes(
        self, owner_id: str, callback: ChangeCallback,
    ) -> Subscription:
        return await self.change_feed.subscribe(owner_id, callback)

    async def _publish(self, kind: ChangeKind, bookmark: Bookmark) -> None:
        await self.change_feed.publish(
            ChangeEvent(kind=kind, owner_id=bookmark.user_id, bookmark_id=bookmark.id),
        )

"""Client for the hosted bookmarks table."""
import logging

import httpx

from clients.http import decoding, send
from core.change_feed import ChangeCallback, ChangeFeed, Subscription
from schemas.bookmark import Bookmark, BookmarkPage
from schemas.change import ChangeEvent, ChangeKind
from services.exceptions import BackendError

logger = logging.getLogger(__name__)

TABLE_PATH = "/bookmarks"


def escape_ilike(value: str) -> str:
    r"""
    Escape special ILIKE characters for safe use in LIKE/ILIKE patterns.

    PostgreSQL LIKE/ILIKE treats these characters specially:
    - % matches any sequence of characters
    - _ matches any single character
    - \\ is the escape character

    This function escapes them so they match literally.
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def quote_filter_value(value: str) -> str:
    """Double-quote a filter value so commas and parentheses are taken literally."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_search_filter(search_term: str) -> str | None:
    """
    Build the `or=` filter matching title OR url, case-insensitively.

    Returns None for a blank term, meaning "no filter".
    """
    term = search_term.strip()
    if not term:
        return None
    pattern = quote_filter_value(f"*{escape_ilike(term)}*")
    return f"(title.ilike.{pattern},url.ilike.{pattern})"


def parse_total(content_range: str | None, fallback: int) -> int:
    """Read the exact count from a `Content-Range` header such as `0-9/42`."""
    if not content_range or "/" not in content_range:
        return fallback
    total = content_range.rsplit("/", 1)[1]
    if not total.isdigit():
        return fallback
    return int(total)


class BookmarkClient:
    """
    Thin wrapper over the hosted data endpoint for one user's bookmarks.

    Each operation performs exactly one remote call; errors surface as
    `BackendError`/`AuthError` carrying the backend's message. Mutations publish a
    `ChangeEvent` so other open views of the same owner can refetch.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        change_feed: ChangeFeed,
        access_token: str | None = None,
    ) -> None:
        self._http = http
        self._change_feed = change_feed
        self._access_token = access_token

    async def list(
        self,
        owner_id: str,
        page: int,
        page_size: int,
        search_term: str = "",
    ) -> BookmarkPage:
        """
        Fetch one page of the owner's bookmarks, newest first.

        Args:
            owner_id: Only this user's rows are requested.
            page: 1-based page number.
            page_size: Rows per page; exactly this many are requested.
            search_term: Case-insensitive substring of title or url; blank means all.

        Returns:
            The page's bookmarks and the total number of matching rows.
        """
        params = {
            "select": "*",
            "user_id": f"eq.{owner_id}",
            "order": "created_at.desc",
            "offset": str((page - 1) * page_size),
            "limit": str(page_size),
        }
        search_filter = build_search_filter(search_term)
        if search_filter is not None:
            params["or"] = search_filter

        response = await send(
            self._http, "GET", TABLE_PATH,
            access_token=self._access_token,
            params=params,
            headers={"Prefer": "count=exact"},
        )
        with decoding(response):
            items = [Bookmark.model_validate(row) for row in response.json() or []]
        total = parse_total(response.headers.get("content-range"), fallback=len(items))
        return BookmarkPage(items=items, total=total)

    async def insert(self, url: str, title: str, owner_id: str) -> Bookmark:
        """Create a bookmark owned by `owner_id`."""
        response = await send(
            self._http, "POST", TABLE_PATH,
            access_token=self._access_token,
            json={"url": url.strip(), "title": title.strip(), "user_id": owner_id},
            headers={"Prefer": "return=representation"},
        )
        bookmark = self._single_row(response)
        await self._publish(ChangeKind.INSERT, bookmark)
        return bookmark

    async def update(self, bookmark_id: str, url: str, title: str) -> Bookmark:
        """Change a bookmark's url and title; the owner is left untouched."""
        response = await send(
            self._http, "PATCH", TABLE_PATH,
            access_token=self._access_token,
            params={"id": f"eq.{bookmark_id}"},
            json={"url": url.strip(), "title": title.strip()},
            headers={"Prefer": "return=representation"},
        )
        bookmark = self._single_row(response)
        await self._publish(ChangeKind.UPDATE, bookmark)
        return bookmark

    async def delete(self, bookmark_id: str) -> None:
        """Delete a bookmark by id."""
        response = await send(
            self._http, "DELETE", TABLE_PATH,
            access_token=self._access_token,
            params={"id": f"eq.{bookmark_id}"},
            headers={"Prefer": "return=representation"},
        )
        # Rows hidden by row-level security come back as an empty list
        with decoding(response):
            deleted = [Bookmark.model_validate(row) for row in response.json() or []]
        for bookmark in deleted:
            await self._publish(ChangeKind.DELETE, bookmark)

    async def subscribe_to_changes(
        self, owner_id: str, callback: ChangeCallback,
    ) -> Subscription:
        """Receive insert/update/delete events for `owner_id`'s bookmarks."""
        return await self._change_feed.subscribe(owner_id, callback)

    @staticmethod
    def _single_row(response: httpx.Response) -> Bookmark:
        with decoding(response):
            rows = response.json() or []
            if not rows:
                raise BackendError("Bookmark not found", status_code=404)
            return Bookmark.model_validate(rows[0])

    async def _publish(self, kind: ChangeKind, bookmark: Bookmark) -> None:
        logger.debug("Publishing %s for bookmark %s", kind, bookmark.id)
        await self._change_feed.publish(
            ChangeEvent(kind=kind, owner_id=bookmark.user_id, bookmark_id=bookmark.id),
        )

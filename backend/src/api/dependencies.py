"""FastAPI dependencies for injection."""
from fastapi import Depends, HTTPException, status
from starlette.requests import HTTPConnection

from clients.auth_client import AuthClient
from clients.bookmark_client import BookmarkClient
from core.change_feed import ChangeFeed
from core.config import Settings, get_settings
from schemas.session import Session
from services.auth_state import AuthState

ACCESS_TOKEN_COOKIE = "sb-access-token"
REFRESH_TOKEN_COOKIE = "sb-refresh-token"
CODE_VERIFIER_COOKIE = "sb-code-verifier"


def get_auth_client(connection: HTTPConnection) -> AuthClient:
    """Auth client over the app's pooled connection to the auth endpoint."""
    return AuthClient(connection.app.state.auth_http)


def get_change_feed(connection: HTTPConnection) -> ChangeFeed:
    """The app-wide change feed."""
    return connection.app.state.change_feed


async def get_auth_state(
    connection: HTTPConnection,
    auth_client: AuthClient = Depends(get_auth_client),
) -> AuthState:
    """
    Restore the caller's session from cookies.

    When the access token had to be refreshed, the new session is stored in
    connection state so `SessionCookieMiddleware` can reissue the cookies.
    """
    auth_state = AuthState(auth_client)
    access_token = connection.cookies.get(ACCESS_TOKEN_COOKIE)
    refresh_token = connection.cookies.get(REFRESH_TOKEN_COOKIE)
    if not access_token and not refresh_token:
        return auth_state

    session = await auth_state.restore(access_token, refresh_token)
    if session is not None and session.access_token != access_token:
        connection.state.refreshed_session = session
    return auth_state


async def require_session(auth_state: AuthState = Depends(get_auth_state)) -> Session:
    """Dependency for endpoints that need a signed-in user."""
    session = auth_state.session
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="You must be logged in to manage bookmarks.",
        )
    return session


def get_bookmark_client(
    connection: HTTPConnection,
    auth_state: AuthState = Depends(get_auth_state),
    change_feed: ChangeFeed = Depends(get_change_feed),
) -> BookmarkClient:
    """Bookmark client acting with the caller's access token."""
    session = auth_state.session
    return BookmarkClient(
        connection.app.state.rest_http,
        change_feed,
        access_token=session.access_token if session else None,
    )


__all__ = [
    "ACCESS_TOKEN_COOKIE",
    "CODE_VERIFIER_COOKIE",
    "REFRESH_TOKEN_COOKIE",
    "Settings",
    "get_auth_client",
    "get_auth_state",
    "get_bookmark_client",
    "get_change_feed",
    "get_settings",
    "require_session",
]

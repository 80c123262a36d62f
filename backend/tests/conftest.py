"""
Shared test fixtures.

The hosted backend is never contacted: HTTP-level tests mock it with respx, and
controller tests use the in-memory client from `fakes`.
"""
import os

# Settings are read once at import time by the app, so configure them first
os.environ["SUPABASE_URL"] = "https://backend.test"
os.environ["SUPABASE_ANON_KEY"] = "anon-key"
os.environ["SITE_URL"] = "http://test"
os.environ["REDIS_ENABLED"] = "false"
os.environ["SESSION_COOKIE_SECURE"] = "false"

from collections.abc import AsyncGenerator, Iterator  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402
import respx  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from api.main import app  # noqa: E402
from clients.auth_client import AuthClient  # noqa: E402
from clients.http import create_http_client  # noqa: E402
from core.change_feed import ChangeFeed  # noqa: E402
from core.config import get_settings  # noqa: E402
from core.redis import RedisClient  # noqa: E402
from fakes import BACKEND_URL, InMemoryBookmarkClient  # noqa: E402
from schemas.session import Session, User  # noqa: E402
from services.auth_state import AuthState  # noqa: E402


@pytest.fixture
def user() -> User:
    return User(id="user-1", email="user-1@example.com")


@pytest.fixture
def session(user: User) -> Session:
    return Session(access_token="access-1", refresh_token="refresh-1", user=user)


@pytest.fixture
def auth_client_mock() -> MagicMock:
    """AuthClient double; async methods are AsyncMocks."""
    return MagicMock(spec=AuthClient)


@pytest.fixture
def auth_state(auth_client_mock: MagicMock, session: Session) -> AuthState:
    """A signed-in auth state."""
    return AuthState(auth_client_mock, session=session)


@pytest.fixture
def change_feed() -> ChangeFeed:
    """In-process change feed (no Redis)."""
    return ChangeFeed()


@pytest.fixture
def bookmark_store(change_feed: ChangeFeed) -> InMemoryBookmarkClient:
    return InMemoryBookmarkClient(change_feed)


@pytest.fixture
def backend_mock() -> Iterator[respx.MockRouter]:
    """Mock every call to the hosted backend."""
    with respx.mock(base_url=BACKEND_URL, assert_all_called=False) as mock:
        yield mock


@pytest.fixture
async def client(backend_mock: respx.MockRouter) -> AsyncGenerator[AsyncClient]:  # noqa: ARG001
    """HTTP client against the app, with app state set up as the lifespan would."""
    settings = get_settings()
    redis_client = RedisClient(settings.redis_url, enabled=False)
    app.state.redis = redis_client
    app.state.change_feed = ChangeFeed(redis_client)
    app.state.auth_http = create_http_client(
        settings.auth_url, settings.supabase_anon_key, settings.http_timeout,
    )
    app.state.rest_http = create_http_client(
        settings.rest_url, settings.supabase_anon_key, settings.http_timeout,
    )

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    await app.state.auth_http.aclose()
    await app.state.rest_http.aclose()
    app.dependency_overrides.clear()

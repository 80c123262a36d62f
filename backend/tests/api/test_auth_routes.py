"""Tests for landing, login, sign-in callback and logout."""
from urllib.parse import parse_qs, urlsplit

import respx
from httpx import AsyncClient

from clients.auth_client import code_challenge
from fakes import AUTH_URL, session_body


def cookie_header(**cookies: str) -> dict[str, str]:
    return {"Cookie": "; ".join(f"{name}={value}" for name, value in cookies.items())}


def set_cookies(response) -> dict[str, str]:  # noqa: ANN001
    """Map cookie name to its full Set-Cookie header."""
    return {
        header.split("=", 1)[0]: header for header in response.headers.get_list("set-cookie")
    }


SIGNED_IN = cookie_header(**{"sb-access-token": "access-1", "sb-refresh-token": "refresh-1"})


class TestLanding:
    """Tests for the landing page."""

    async def test__anonymous(self, client: AsyncClient) -> None:
        response = await client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["authenticated"] is False
        assert data["login_url"] == "/login"

    async def test__signed_in(self, client: AsyncClient, backend_mock: respx.MockRouter) -> None:
        backend_mock.get("/auth/v1/user").respond(
            200, json={"id": "user-1", "email": "user-1@example.com"},
        )

        response = await client.get("/", headers=SIGNED_IN)

        assert response.json()["authenticated"] is True
        assert response.json()["email"] == "user-1@example.com"
        assert "sb-access-token" not in set_cookies(response)

    async def test__expired_token__refreshed_and_cookies_reissued(
        self, client: AsyncClient, backend_mock: respx.MockRouter,
    ) -> None:
        backend_mock.get("/auth/v1/user").respond(401, json={"msg": "invalid JWT"})
        backend_mock.post("/auth/v1/token").respond(
            200, json=session_body(access_token="access-2", refresh_token="refresh-2"),
        )

        response = await client.get("/", headers=SIGNED_IN)

        assert response.json()["authenticated"] is True
        cookies = set_cookies(response)
        assert cookies["sb-access-token"].startswith("sb-access-token=access-2;")
        assert cookies["sb-refresh-token"].startswith("sb-refresh-token=refresh-2;")
        assert "HttpOnly" in cookies["sb-access-token"]


class TestLogin:
    """Tests for starting sign-in."""

    async def test__redirects_to_provider_with_verifier_cookie(self, client: AsyncClient) -> None:
        response = await client.get("/login")

        assert response.status_code == 303
        location = urlsplit(response.headers["location"])
        assert f"{location.scheme}://{location.netloc}{location.path}" == f"{AUTH_URL}/authorize"
        query = parse_qs(location.query)
        assert query["provider"] == ["google"]
        assert query["redirect_to"] == ["http://test/auth/callback"]

        verifier_cookie = set_cookies(response)["sb-code-verifier"]
        verifier = verifier_cookie.split(";", 1)[0].split("=", 1)[1]
        assert query["code_challenge"] == [code_challenge(verifier)]

    async def test__signed_in_user__goes_to_bookmarks(
        self, client: AsyncClient, backend_mock: respx.MockRouter,
    ) -> None:
        backend_mock.get("/auth/v1/user").respond(200, json={"id": "user-1"})

        response = await client.get("/login", headers=SIGNED_IN)

        assert response.status_code == 303
        assert response.headers["location"] == "/bookmarks"


class TestCallback:
    """Tests for finishing sign-in."""

    async def test__code_exchanged_for_session_cookies(
        self, client: AsyncClient, backend_mock: respx.MockRouter,
    ) -> None:
        route = backend_mock.post("/auth/v1/token").respond(200, json=session_body())

        response = await client.get(
            "/auth/callback",
            params={"code": "code-1"},
            headers=cookie_header(**{"sb-code-verifier": "verifier-1"}),
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/bookmarks"
        assert route.calls.last.request.url.params["grant_type"] == "pkce"
        cookies = set_cookies(response)
        assert cookies["sb-access-token"].startswith("sb-access-token=access-1;")
        assert "Max-Age=0" in cookies["sb-code-verifier"]

    async def test__missing_verifier__back_to_landing(
        self, client: AsyncClient, backend_mock: respx.MockRouter,
    ) -> None:
        route = backend_mock.post("/auth/v1/token").respond(200, json=session_body())

        response = await client.get("/auth/callback", params={"code": "code-1"})

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        assert not route.called

    async def test__provider_error__back_to_landing(self, client: AsyncClient) -> None:
        response = await client.get(
            "/auth/callback",
            params={"error": "access_denied", "error_description": "User cancelled"},
            headers=cookie_header(**{"sb-code-verifier": "verifier-1"}),
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/"

    async def test__rejected_code__back_to_landing(
        self, client: AsyncClient, backend_mock: respx.MockRouter,
    ) -> None:
        backend_mock.post("/auth/v1/token").respond(
            400, json={"error": "invalid_grant", "error_description": "invalid flow state"},
        )

        response = await client.get(
            "/auth/callback",
            params={"code": "stale"},
            headers=cookie_header(**{"sb-code-verifier": "verifier-1"}),
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        assert "Max-Age=0" in set_cookies(response)["sb-access-token"]


class TestLogout:
    """Tests for signing out."""

    async def test__revokes_and_clears_cookies(
        self, client: AsyncClient, backend_mock: respx.MockRouter,
    ) -> None:
        backend_mock.get("/auth/v1/user").respond(200, json={"id": "user-1"})
        route = backend_mock.post("/auth/v1/logout").respond(204)

        response = await client.post("/logout", headers=SIGNED_IN)

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        assert route.calls.last.request.headers["Authorization"] == "Bearer access-1"
        cookies = set_cookies(response)
        assert "Max-Age=0" in cookies["sb-access-token"]
        assert "Max-Age=0" in cookies["sb-refresh-token"]

    async def test__provider_failure__still_signs_out_locally(
        self, client: AsyncClient, backend_mock: respx.MockRouter,
    ) -> None:
        backend_mock.get("/auth/v1/user").respond(200, json={"id": "user-1"})
        backend_mock.post("/auth/v1/logout").respond(500, json={"msg": "unexpected failure"})

        response = await client.post("/logout", headers=SIGNED_IN)

        assert response.status_code == 303
        assert "Max-Age=0" in set_cookies(response)["sb-access-token"]

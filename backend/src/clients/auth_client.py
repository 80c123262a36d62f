"""Client for the hosted identity provider (OAuth sign-in with PKCE)."""
import base64
import hashlib
import secrets
from urllib.parse import urlencode, urlsplit

import httpx

from clients.http import decoding, send
from schemas.session import Session, SignInRedirect, User
from services.exceptions import AuthError

DEFAULT_PROVIDER = "google"


def generate_code_verifier() -> str:
    """Random PKCE code verifier (RFC 7636 allows 43-128 characters)."""
    return secrets.token_urlsafe(64)


def code_challenge(verifier: str) -> str:
    """S256 PKCE challenge: base64url(sha256(verifier)) without padding."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


class AuthClient:
    """
    Wrapper over the hosted auth endpoint.

    Each operation performs exactly one remote call (sign-in start performs none:
    it only builds the provider URL) and raises `AuthError`/`BackendError` with
    the provider's message on failure.
    """

    def __init__(self, http: httpx.AsyncClient, provider: str = DEFAULT_PROVIDER) -> None:
        self._http = http
        self._provider = provider

    def begin_external_sign_in(self, redirect_to: str) -> SignInRedirect:
        """
        Build the URL that starts sign-in with the external provider.

        Args:
            redirect_to: Absolute URL the provider redirects back to after sign-in.

        Raises:
            AuthError: If `redirect_to` is not an absolute URL.
        """
        parts = urlsplit(redirect_to)
        if not parts.scheme or not parts.netloc:
            raise AuthError(f"Invalid redirect URL: {redirect_to}")
        verifier = generate_code_verifier()
        query = urlencode({
            "provider": self._provider,
            "redirect_to": redirect_to,
            "code_challenge": code_challenge(verifier),
            "code_challenge_method": "s256",
        })
        url = self._http.base_url.join(f"authorize?{query}")
        return SignInRedirect(url=str(url), code_verifier=verifier)

    async def exchange_code(self, auth_code: str, code_verifier: str) -> Session:
        """Trade the code from the sign-in callback for a session."""
        response = await send(
            self._http, "POST", "/token",
            params={"grant_type": "pkce"},
            json={"auth_code": auth_code, "code_verifier": code_verifier},
        )
        with decoding(response):
            return Session.model_validate(response.json())

    async def refresh_session(self, refresh_token: str) -> Session:
        """Obtain a fresh session from a previously issued refresh token."""
        response = await send(
            self._http, "POST", "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        with decoding(response):
            return Session.model_validate(response.json())

    async def get_user(self, access_token: str) -> User:
        """Return the user an access token belongs to."""
        response = await send(self._http, "GET", "/user", access_token=access_token)
        with decoding(response):
            return User.model_validate(response.json())

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind `access_token`."""
        await send(self._http, "POST", "/logout", access_token=access_token)

"""Session cookie handling for the browser-facing routes."""
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from api.dependencies import ACCESS_TOKEN_COOKIE, CODE_VERIFIER_COOKIE, REFRESH_TOKEN_COOKIE
from core.config import get_settings
from schemas.session import Session

# Refresh tokens outlive access tokens; the provider decides when they expire
REFRESH_TOKEN_MAX_AGE = 60 * 60 * 24 * 30
CODE_VERIFIER_MAX_AGE = 60 * 10


def set_session_cookies(response: Response, session: Session, secure: bool) -> None:
    """Store the session's tokens in HTTP-only cookies."""
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        session.access_token,
        max_age=session.expires_in,
        httponly=True,
        secure=secure,
        samesite="lax",
    )
    if session.refresh_token:
        response.set_cookie(
            REFRESH_TOKEN_COOKIE,
            session.refresh_token,
            max_age=REFRESH_TOKEN_MAX_AGE,
            httponly=True,
            secure=secure,
            samesite="lax",
        )


def clear_session_cookies(response: Response) -> None:
    """Remove every cookie this app sets for authentication."""
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, CODE_VERIFIER_COOKIE):
        response.delete_cookie(name)


def set_code_verifier_cookie(response: Response, verifier: str, secure: bool) -> None:
    """Keep the PKCE verifier until the provider redirects back."""
    response.set_cookie(
        CODE_VERIFIER_COOKIE,
        verifier,
        max_age=CODE_VERIFIER_MAX_AGE,
        httponly=True,
        secure=secure,
        samesite="lax",
    )


class SessionCookieMiddleware(BaseHTTPMiddleware):
    """Reissue session cookies when a request had to refresh its access token."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request and add refreshed session cookies to the response."""
        response = await call_next(request)

        # Set by the auth dependency (see api.dependencies.get_auth_state)
        session = getattr(request.state, "refreshed_session", None)
        if session is not None:
            set_session_cookies(response, session, secure=get_settings().session_cookie_secure)

        return response

"""Landing, login, sign-in callback and logout endpoints."""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from api.dependencies import (
    CODE_VERIFIER_COOKIE,
    get_auth_client,
    get_auth_state,
    get_settings,
)
from api.session_cookies import (
    clear_session_cookies,
    set_code_verifier_cookie,
    set_session_cookies,
)
from clients.auth_client import AuthClient
from core.config import Settings
from schemas.views import LandingView
from services.auth_state import AuthState
from services.exceptions import BackendError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

BOOKMARKS_PATH = "/bookmarks"
LANDING_PATH = "/"


@router.get("/", response_model=LandingView)
async def landing(auth_state: AuthState = Depends(get_auth_state)) -> LandingView:
    """Landing page: what the app is and where to sign in."""
    user = auth_state.current_user
    return LandingView(
        title="Bookmarks",
        description="Save, search and organize your links. Sign in with Google to start.",
        authenticated=user is not None,
        email=user.email if user else None,
    )


@router.get("/login")
async def login(
    auth_state: AuthState = Depends(get_auth_state),
    auth_client: AuthClient = Depends(get_auth_client),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """
    Start external sign-in.

    Signed-in users go straight to their bookmarks; everyone else is sent to the
    identity provider, which redirects back to `/auth/callback`.
    """
    if auth_state.is_authenticated:
        return RedirectResponse(BOOKMARKS_PATH, status_code=303)

    redirect = auth_client.begin_external_sign_in(settings.auth_callback_url)
    response = RedirectResponse(redirect.url, status_code=303)
    set_code_verifier_cookie(
        response, redirect.code_verifier, secure=settings.session_cookie_secure,
    )
    return response


@router.get("/auth/callback")
async def auth_callback(
    request: Request,
    code: str | None = None,
    error_description: str | None = None,
    auth_state: AuthState = Depends(get_auth_state),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """Finish sign-in: exchange the provider's code for a session cookie."""
    verifier = request.cookies.get(CODE_VERIFIER_COOKIE)
    if error_description or not code or not verifier:
        logger.warning("Sign-in callback rejected: %s", error_description or "missing code")
        response = RedirectResponse(LANDING_PATH, status_code=303)
        clear_session_cookies(response)
        return response

    try:
        session = await auth_state.complete_sign_in(code, verifier)
    except BackendError as e:
        logger.warning("Sign-in code exchange failed: %s", e.message)
        response = RedirectResponse(LANDING_PATH, status_code=303)
        clear_session_cookies(response)
        return response

    response = RedirectResponse(BOOKMARKS_PATH, status_code=303)
    set_session_cookies(response, session, secure=settings.session_cookie_secure)
    response.delete_cookie(CODE_VERIFIER_COOKIE)
    return response


@router.post("/logout")
async def logout(auth_state: AuthState = Depends(get_auth_state)) -> RedirectResponse:
    """Sign out and return to the landing page."""
    try:
        await auth_state.sign_out()
    except BackendError:
        # The local session is gone either way; the cookies are cleared below
        logger.warning("Provider sign-out failed; clearing local session anyway")
    response = RedirectResponse(LANDING_PATH, status_code=303)
    clear_session_cookies(response)
    return response

"""Session state for one browser view, with change listeners."""
import logging
from collections.abc import Callable

from clients.auth_client import AuthClient
from schemas.session import Session, SessionEvent, User
from services.exceptions import AuthError, BackendError

logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionEvent, Session | None], None]


class AuthState:
    """
    Holds the current session (or None) and reports transitions.

    Listeners registered with `on_session_change` are called on sign-in, sign-out
    and token refresh; the returned function unsubscribes.
    """

    def __init__(self, client: AuthClient, session: Session | None = None) -> None:
        self._client = client
        self._session = session
        self._listeners: list[SessionListener] = []

    @property
    def session(self) -> Session | None:
        """The current session, or None when signed out."""
        return self._session

    @property
    def current_user(self) -> User | None:
        """The signed-in user, or None."""
        return self._session.user if self._session else None

    @property
    def is_authenticated(self) -> bool:
        """True when a session is held."""
        return self._session is not None

    def get_current_session(self) -> Session | None:
        """Return the current session, or None when signed out."""
        return self._session

    def get_current_user(self) -> User | None:
        """Return the signed-in user, or None."""
        return self.current_user

    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; call the returned function to unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def restore(
        self, access_token: str | None, refresh_token: str | None = None,
    ) -> Session | None:
        """
        Re-establish a session from previously issued tokens (cold load).

        The access token is checked with the provider; if it is no longer valid and
        a refresh token is available, one refresh is attempted. Returns None (and
        leaves the state signed out) when neither works.
        """
        if access_token:
            try:
                user = await self._client.get_user(access_token)
            except AuthError:
                logger.info("Stored access token rejected by identity provider")
            else:
                session = Session(access_token=access_token, refresh_token=refresh_token, user=user)
                self._set(SessionEvent.SIGNED_IN, session)
                return session

        if refresh_token:
            try:
                session = await self._client.refresh_session(refresh_token)
            except AuthError:
                logger.info("Stored refresh token rejected by identity provider")
            else:
                self._set(SessionEvent.TOKEN_REFRESHED, session)
                return session

        return None

    async def complete_sign_in(self, auth_code: str, code_verifier: str) -> Session:
        """Finish external sign-in from the provider's callback."""
        session = await self._client.exchange_code(auth_code, code_verifier)
        self._set(SessionEvent.SIGNED_IN, session)
        return session

    async def sign_out(self) -> None:
        """
        Sign out of the provider and drop the local session.

        The local session is dropped even if the provider call fails; the failure
        is then re-raised.
        """
        session = self._session
        try:
            if session is not None:
                await self._client.sign_out(session.access_token)
        except BackendError:
            logger.warning("Sign-out request failed", exc_info=True)
            raise
        finally:
            self._set(SessionEvent.SIGNED_OUT, None)

    def _set(self, event: SessionEvent, session: Session | None) -> None:
        self._session = session
        for listener in list(self._listeners):
            listener(event, session)

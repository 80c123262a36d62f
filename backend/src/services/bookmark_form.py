"""Add/edit bookmark form: validation, submission and error mapping."""
import inspect
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Protocol

from pydantic import AnyUrl, TypeAdapter, ValidationError

from schemas.bookmark import Bookmark
from schemas.session import User
from services.exceptions import AuthError, BackendError, FormValidationError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Both URL and title are required"
INVALID_URL_MESSAGE = "Please enter a valid URL"
LOGIN_REQUIRED_MESSAGE = "You must be logged in to save bookmarks."
SESSION_EXPIRED_MESSAGE = "You must be logged in to add bookmarks. Please log in again."
SAVE_FAILED_MESSAGE = "Failed to save bookmark. Please try again."

_absolute_url = TypeAdapter(AnyUrl)


class ErrorKind(StrEnum):
    """Category of the last submission failure."""

    VALIDATION = "validation"
    AUTH = "auth"
    REMOTE = "remote"


class BookmarkWriter(Protocol):
    """What the form needs from a bookmark client."""

    async def insert(self, url: str, title: str, owner_id: str) -> Bookmark: ...

    async def update(self, bookmark_id: str, url: str, title: str) -> Bookmark: ...


class UserSource(Protocol):
    """Anything that knows the signed-in user (e.g., `AuthState`)."""

    @property
    def current_user(self) -> User | None: ...


def is_absolute_url(value: str) -> bool:
    """True when `value` parses as an absolute URL (any scheme, host optional)."""
    try:
        _absolute_url.validate_python(value)
    except ValidationError:
        return False
    return True


def validate_bookmark_input(url: str, title: str) -> tuple[str, str]:
    """
    Validate form input, stopping at the first failure.

    Returns:
        The trimmed (url, title).

    Raises:
        FormValidationError: With the message to show next to the form.
    """
    url, title = url.strip(), title.strip()
    if not url or not title:
        raise FormValidationError(REQUIRED_FIELDS_MESSAGE)
    if not is_absolute_url(url):
        raise FormValidationError(INVALID_URL_MESSAGE)
    return url, title


def map_save_error(error: BackendError) -> str:
    """Turn a backend failure into the message shown on the form."""
    message = error.message or ""
    lowered = message.lower()
    if (
        isinstance(error, AuthError)
        or "row-level security" in lowered
        or "permission denied" in lowered
    ):
        return SESSION_EXPIRED_MESSAGE
    if "invalid url" in lowered:
        return INVALID_URL_MESSAGE
    return message or SAVE_FAILED_MESSAGE


class BookmarkFormController:
    """
    State and submission of the add/edit bookmark form.

    The form never touches the list; on success it clears its fields and calls
    `on_success`, and the caller decides how to refresh.
    """

    def __init__(
        self,
        client: BookmarkWriter,
        auth: UserSource,
        on_success: Callable[[], Awaitable[None] | None] | None = None,
    ) -> None:
        self._client = client
        self._auth = auth
        self._on_success = on_success
        self.url = ""
        self.title = ""
        self.editing_id: str | None = None
        self.error: str | None = None
        self.error_kind: ErrorKind | None = None
        self.submitting = False

    @property
    def is_editing(self) -> bool:
        """True in update mode, False in create mode."""
        return self.editing_id is not None

    def open_for_create(self) -> None:
        """Reset to an empty form in create mode."""
        self._reset(editing_id=None, url="", title="")

    def open_for_edit(self, bookmark_id: str, url: str = "", title: str = "") -> None:
        """Populate the form for editing an existing bookmark."""
        self._reset(editing_id=bookmark_id, url=url, title=title)

    async def submit(self) -> bool:
        """
        Validate and save the form.

        Returns:
            True on success. On failure `error`/`error_kind` are set and the fields
            are kept so the user can correct and resubmit.
        """
        self._set_error(None, None)
        try:
            url, title = validate_bookmark_input(self.url, self.title)
        except FormValidationError as e:
            self._set_error(str(e), ErrorKind.VALIDATION)
            return False

        user = self._auth.current_user
        if user is None:
            self._set_error(LOGIN_REQUIRED_MESSAGE, ErrorKind.AUTH)
            return False

        self.submitting = True
        try:
            if self.editing_id is not None:
                await self._client.update(self.editing_id, url, title)
            else:
                await self._client.insert(url, title, user.id)
        except BackendError as e:
            logger.exception("Error saving bookmark")
            message = map_save_error(e)
            kind = ErrorKind.AUTH if message == SESSION_EXPIRED_MESSAGE else ErrorKind.REMOTE
            self._set_error(message, kind)
            return False
        finally:
            self.submitting = False

        self.url = ""
        self.title = ""
        if self._on_success is not None:
            result = self._on_success()
            if inspect.isawaitable(result):
                await result
        return True

    def _reset(self, editing_id: str | None, url: str, title: str) -> None:
        self.editing_id = editing_id
        self.url = url
        self.title = title
        self.submitting = False
        self._set_error(None, None)

    def _set_error(self, message: str | None, kind: ErrorKind | None) -> None:
        self.error = message
        self.error_kind = kind

"""Shared exceptions for client and controller operations."""


class BackendError(Exception):
    """
    Raised when the hosted backend reports an error for a remote call.

    Carries the provider's own message so callers can map known failures to
    user-facing text.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


class AuthError(BackendError):
    """Raised when the caller is not (or no longer) authorized."""


class FormValidationError(Exception):
    """Raised when bookmark form input fails validation before any remote call."""

    def __init__(self, message: str) -> None:
        super().__init__(message)

"""Schemas for identity provider sessions."""
from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    """Authenticated user as reported by the identity provider."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    email: str | None = None


class Session(BaseModel):
    """Tokens issued by the identity provider for one signed-in user."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    user: User


class SessionEvent(StrEnum):
    """Session transitions reported to `AuthState` listeners."""

    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"
    TOKEN_REFRESHED = "token_refreshed"


@dataclass
class SignInRedirect:
    """
    Where to send the browser to start external sign-in.

    `code_verifier` must be kept (e.g., in a short-lived cookie) until the provider
    redirects back, because it is required to exchange the returned code.
    """

    url: str
    code_verifier: str

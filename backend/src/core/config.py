"""Application configuration using pydantic-settings."""
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Hosted backend (auth + data endpoints share one project URL and anon key)
    supabase_url: str
    supabase_anon_key: str

    # Public URL of this app - used to build the post-login redirect target
    site_url: str = Field(default="http://localhost:8000", validation_alias="SITE_URL")

    # Bookmark list behavior
    page_size: int = Field(default=10, ge=1, le=100, validation_alias="PAGE_SIZE")
    search_debounce_seconds: float = Field(
        default=0.5, ge=0, validation_alias="SEARCH_DEBOUNCE_SECONDS",
    )

    # Timeout applied to every call against the hosted backend
    http_timeout: float = Field(default=10.0, gt=0, validation_alias="HTTP_TIMEOUT")

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        validation_alias="CORS_ORIGINS",
    )

    # Redis - carries change notifications between app instances
    redis_url: str = Field(default="redis://localhost:6379", validation_alias="REDIS_URL")
    redis_enabled: bool = Field(default=True, validation_alias="REDIS_ENABLED")

    # Session cookies are marked Secure unless explicitly disabled for local http
    session_cookie_secure: bool = Field(default=True, validation_alias="SESSION_COOKIE_SECURE")

    @field_validator("supabase_url", "site_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Store base URLs without a trailing slash so paths can be appended."""
        return v.rstrip("/")

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @property
    def auth_url(self) -> str:
        """Base URL of the hosted auth endpoint."""
        return f"{self.supabase_url}/auth/v1"

    @property
    def rest_url(self) -> str:
        """Base URL of the hosted data endpoint."""
        return f"{self.supabase_url}/rest/v1"

    @property
    def auth_callback_url(self) -> str:
        """Where the identity provider sends the browser after sign-in."""
        return f"{self.site_url}/auth/callback"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

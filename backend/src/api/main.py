"""FastAPI application entry point."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from api.routers import auth, bookmarks, health, live
from api.session_cookies import SessionCookieMiddleware
from clients.http import create_http_client
from core.change_feed import ChangeFeed
from core.config import get_settings
from core.redis import RedisClient
from services.exceptions import AuthError, BackendError

logger = logging.getLogger(__name__)

REMOTE_ERROR_MESSAGE = "The bookmark service is unavailable. Please try again."
AUTH_ERROR_MESSAGE = "You must be logged in. Please log in again."


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan - startup and shutdown."""
    app_settings = get_settings()

    # Startup: Connect to Redis (change notifications degrade to in-process without it)
    redis_client = RedisClient(url=app_settings.redis_url, enabled=app_settings.redis_enabled)
    await redis_client.connect()
    app.state.redis = redis_client
    app.state.change_feed = ChangeFeed(redis_client)

    # Startup: Pooled HTTP clients for the hosted auth and data endpoints
    app.state.auth_http = create_http_client(
        app_settings.auth_url, app_settings.supabase_anon_key, app_settings.http_timeout,
    )
    app.state.rest_http = create_http_client(
        app_settings.rest_url, app_settings.supabase_anon_key, app_settings.http_timeout,
    )

    yield

    # Shutdown: Close HTTP clients and Redis
    await app.state.auth_http.aclose()
    await app.state.rest_http.aclose()
    await redis_client.close()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request and add security headers to response."""
        response = await call_next(request)
        # HSTS: enforce HTTPS for 1 year, including subdomains
        response.headers["Strict-Transport-Security"] = (
            "max-age=31536000; includeSubDomains"
        )
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        return response


app_settings = get_settings()

app = FastAPI(
    title="Bookmarks",
    description="A personal bookmark manager with search and live updates.",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(AuthError)
async def auth_exception_handler(_request: Request, exc: AuthError) -> JSONResponse:
    """Ask the user to sign in again."""
    logger.info("Request rejected by identity provider: %s", exc.message)
    return JSONResponse(status_code=401, content={"detail": AUTH_ERROR_MESSAGE})


@app.exception_handler(BackendError)
async def backend_exception_handler(_request: Request, exc: BackendError) -> JSONResponse:
    """Report a hosted backend failure without retrying."""
    logger.error("Hosted backend call failed: %s", exc.message)
    return JSONResponse(status_code=502, content={"detail": REMOTE_ERROR_MESSAGE})


# Session cookie middleware (reissues cookies after a token refresh)
app.add_middleware(SessionCookieMiddleware)

# Security headers middleware (runs after CORS, adds headers to responses)
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(bookmarks.router)
app.include_router(live.router)

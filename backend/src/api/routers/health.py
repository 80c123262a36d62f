"""Health check endpoints."""
import logging

import httpx
from fastapi import APIRouter, Request
from pydantic import BaseModel

from core.redis import RedisClient


logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    backend: str
    redis: str


async def check_redis_health(redis_client: RedisClient | None) -> str:
    """Check Redis connectivity. Returns 'connected' or 'unavailable'."""
    if redis_client is None:
        return "unavailable"
    if await redis_client.ping():
        return "connected"
    return "unavailable"


async def check_backend_health(auth_http: httpx.AsyncClient) -> str:
    """Check the hosted backend's auth endpoint. Returns 'healthy' or 'unhealthy'."""
    try:
        response = await auth_http.get("/health")
    except httpx.HTTPError:
        logger.exception("Backend health check failed")
        return "unhealthy"
    if not response.is_success:
        logger.warning("Backend health check returned %d", response.status_code)
        return "unhealthy"
    return "healthy"


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Check application and hosted backend health.

    Note: App returns 'healthy' even if Redis is unavailable (degraded mode).
    Redis unavailability means change notifications only reach views served by
    the same instance, but the app is fully functional.
    """
    backend_status = await check_backend_health(request.app.state.auth_http)
    redis_status = await check_redis_health(getattr(request.app.state, "redis", None))

    # App is healthy if the backend is healthy (Redis unavailability = degraded, not unhealthy)
    return HealthResponse(
        status="healthy" if backend_status == "healthy" else "degraded",
        backend=backend_status,
        redis=redis_status,
    )

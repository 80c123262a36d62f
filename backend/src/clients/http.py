"""HTTP helpers shared by the hosted backend clients."""
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httpx

from services.exceptions import AuthError, BackendError

REQUEST_SOURCE = "bookmarks-web"
UNEXPECTED_RESPONSE_MESSAGE = "Unexpected response from the bookmark service"


def create_http_client(base_url: str, api_key: str, timeout: float) -> httpx.AsyncClient:
    """Create the pooled client used for every call to one hosted endpoint."""
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=timeout,
        headers={
            "apikey": api_key,
            "X-Client-Info": REQUEST_SOURCE,
        },
    )


def bearer_headers(access_token: str | None) -> dict[str, str]:
    """Authorization header for a user's access token (none when anonymous)."""
    if not access_token:
        return {}
    return {"Authorization": f"Bearer {access_token}"}


def _error_message(response: httpx.Response) -> tuple[str, str | None]:
    """
    Extract (message, code) from a hosted backend error body.

    The data endpoint returns `{"message", "code", ...}`; the auth endpoint returns
    either `{"msg", "error_code"}` or OAuth-style `{"error", "error_description"}`.
    """
    try:
        body: Any = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = (
            body.get("message")
            or body.get("msg")
            or body.get("error_description")
            or body.get("error")
        )
        code = body.get("code") or body.get("error_code")
        if message:
            return str(message), str(code) if code is not None else None
    return response.text or response.reason_phrase or "Request failed", None


def raise_for_backend_error(response: httpx.Response) -> None:
    """
    Convert a non-2xx response into `BackendError` (or `AuthError` for 401/403).

    Raises:
        AuthError: The caller is not authorized for the request.
        BackendError: Any other error reported by the backend.
    """
    if response.is_success:
        return
    message, code = _error_message(response)
    if response.status_code in (401, 403):
        raise AuthError(message, code=code, status_code=response.status_code)
    raise BackendError(message, code=code, status_code=response.status_code)


async def send(
    client: httpx.AsyncClient,
    method: str,
    path: str,
    *,
    access_token: str | None = None,
    params: dict[str, Any] | None = None,
    json: Any = None,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """Perform exactly one request and raise on any error indicator."""
    try:
        response = await client.request(
            method,
            path,
            params=params,
            json=json,
            headers={**bearer_headers(access_token), **(headers or {})},
        )
    except httpx.HTTPError as e:
        raise BackendError(f"Could not reach the bookmark service: {e}") from e
    raise_for_backend_error(response)
    return response


@contextmanager
def decoding(response: httpx.Response) -> Iterator[None]:
    """
    Report an undecodable success body as `BackendError`.

    Covers bodies that are not JSON and rows that fail model validation (pydantic's
    `ValidationError` is a `ValueError`).
    """
    try:
        yield
    except (KeyError, TypeError, ValueError) as e:
        raise BackendError(
            UNEXPECTED_RESPONSE_MESSAGE, status_code=response.status_code,
        ) from e

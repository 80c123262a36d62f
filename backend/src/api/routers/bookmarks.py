"""Bookmark list and add/edit/delete endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse, RedirectResponse

from api.dependencies import get_auth_state, get_bookmark_client, get_settings, require_session
from clients.bookmark_client import BookmarkClient
from core.config import Settings
from schemas.bookmark import BookmarkFormInput
from schemas.session import Session
from schemas.views import BookmarkListView, FormResultView
from services.auth_state import AuthState
from services.bookmark_form import BookmarkFormController, ErrorKind
from services.list_sync import ListSyncController

router = APIRouter(prefix="/bookmarks", tags=["bookmarks"])

FORM_ERROR_STATUS = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.AUTH: 401,
    ErrorKind.REMOTE: 502,
}


async def _submit(form: BookmarkFormController, success_status: int) -> JSONResponse:
    ok = await form.submit()
    result = FormResultView.from_form(form, ok)
    status_code = success_status if ok else FORM_ERROR_STATUS[form.error_kind]
    return JSONResponse(result.model_dump(mode="json"), status_code=status_code)


@router.get("", response_model=BookmarkListView)
async def list_bookmarks(
    page: int = Query(default=1, description="1-based page number (clamped)"),
    q: str = Query(default="", description="Case-insensitive search over title and url"),
    auth_state: AuthState = Depends(get_auth_state),
    client: BookmarkClient = Depends(get_bookmark_client),
    settings: Settings = Depends(get_settings),
) -> BookmarkListView | RedirectResponse:
    """
    List the signed-in user's bookmarks, newest first.

    Visitors without a session are redirected to the landing page.
    """
    user = auth_state.current_user
    if user is None:
        return RedirectResponse("/", status_code=303)

    errors: list[str] = []
    controller = ListSyncController(
        client, user.id, page_size=settings.page_size, on_error=errors.append,
    )
    await controller.load(page, q)
    return BookmarkListView.from_state(controller.state, error=errors[-1] if errors else None)


@router.post("", response_model=FormResultView, status_code=201)
async def create_bookmark(
    data: BookmarkFormInput,
    _session: Session = Depends(require_session),
    auth_state: AuthState = Depends(get_auth_state),
    client: BookmarkClient = Depends(get_bookmark_client),
) -> JSONResponse:
    """Add a bookmark for the signed-in user."""
    form = BookmarkFormController(client, auth_state)
    form.open_for_create()
    form.url, form.title = data.url, data.title
    return await _submit(form, success_status=201)


@router.patch("/{bookmark_id}", response_model=FormResultView)
async def update_bookmark(
    bookmark_id: str,
    data: BookmarkFormInput,
    _session: Session = Depends(require_session),
    auth_state: AuthState = Depends(get_auth_state),
    client: BookmarkClient = Depends(get_bookmark_client),
) -> JSONResponse:
    """Change a bookmark's url and title."""
    form = BookmarkFormController(client, auth_state)
    form.open_for_edit(bookmark_id, data.url, data.title)
    return await _submit(form, success_status=200)


@router.delete("/{bookmark_id}", status_code=204)
async def delete_bookmark(
    bookmark_id: str,
    confirm: bool = Query(default=False, description="Must be true; the user confirmed"),
    _session: Session = Depends(require_session),
    client: BookmarkClient = Depends(get_bookmark_client),
) -> None:
    """Delete a bookmark after the user confirmed."""
    if not confirm:
        raise HTTPException(status_code=400, detail="Deletion must be confirmed")
    await client.delete(bookmark_id)

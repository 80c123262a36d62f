"""
Live bookmark view over a WebSocket.

Each connection is one open list view: it owns a `ListSyncController` (and so a
change subscription) for as long as the socket stays open, and receives a fresh
snapshot after every fetch, including fetches caused by other sessions' changes.
"""
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from api.dependencies import get_auth_state, get_bookmark_client, get_settings
from clients.bookmark_client import BookmarkClient
from core.config import Settings
from schemas.live import (
    DeleteCommand,
    LiveCommand,
    NextPageCommand,
    PageCommand,
    PreviousPageCommand,
    RefreshCommand,
    SaveCommand,
    SearchCommand,
    live_command_adapter,
)
from schemas.views import BookmarkListView, FormResultView
from services.auth_state import AuthState
from services.bookmark_form import BookmarkFormController
from services.list_sync import ListSyncController, ListViewState

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookmarks"])

UNKNOWN_COMMAND_MESSAGE = "Unrecognized command"


async def _dispatch(
    command: LiveCommand,
    controller: ListSyncController,
    form: BookmarkFormController,
    websocket: WebSocket,
) -> None:
    match command:
        case SearchCommand(text=text):
            controller.set_search_text(text)
        case PageCommand(page=page):
            await controller.go_to_page(page)
        case NextPageCommand():
            await controller.next_page()
        case PreviousPageCommand():
            await controller.previous_page()
        case RefreshCommand():
            await controller.refresh()
        case DeleteCommand(id=bookmark_id):
            await controller.delete(bookmark_id)
        case SaveCommand(id=bookmark_id, url=url, title=title):
            if bookmark_id is None:
                form.open_for_create()
            else:
                form.open_for_edit(bookmark_id)
            form.url, form.title = url, title
            ok = await form.submit()
            await websocket.send_json(
                {
                    "type": "form",
                    "result": FormResultView.from_form(form, ok).model_dump(mode="json"),
                },
            )


@router.websocket("/bookmarks/live")
async def live_bookmarks(
    websocket: WebSocket,
    auth_state: AuthState = Depends(get_auth_state),
    client: BookmarkClient = Depends(get_bookmark_client),
    settings: Settings = Depends(get_settings),
) -> None:
    """Serve one live list view until the client disconnects."""
    user = auth_state.current_user
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    await websocket.accept()

    async def send_state(state: ListViewState) -> None:
        view = BookmarkListView.from_state(state)
        await websocket.send_json({"type": "state", "view": view.model_dump(mode="json")})

    async def send_error(message: str) -> None:
        await websocket.send_json({"type": "error", "message": message})

    async with ListSyncController(
        client,
        user.id,
        page_size=settings.page_size,
        debounce_seconds=settings.search_debounce_seconds,
        on_state=send_state,
        on_error=send_error,
    ) as controller:
        form = BookmarkFormController(client, auth_state, on_success=controller.refresh)

        try:
            await controller.start()
            while True:
                payload = await websocket.receive_json()
                try:
                    command = live_command_adapter.validate_python(payload)
                except ValidationError:
                    await send_error(UNKNOWN_COMMAND_MESSAGE)
                    continue
                await _dispatch(command, controller, form, websocket)
        except WebSocketDisconnect:
            logger.info("Live view closed for user %s", controller.owner_id)

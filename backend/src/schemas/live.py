"""Commands accepted by the live bookmark view (WebSocket)."""
from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter


class SearchCommand(BaseModel):
    """A keystroke in the search box (raw text)."""

    action: Literal["search"]
    text: str = ""


class PageCommand(BaseModel):
    """Jump to a page (clamped by the controller)."""

    action: Literal["page"]
    page: int


class NextPageCommand(BaseModel):
    """Go forward one page."""

    action: Literal["next"]


class PreviousPageCommand(BaseModel):
    """Go back one page."""

    action: Literal["previous"]


class RefreshCommand(BaseModel):
    """Refetch the current page."""

    action: Literal["refresh"]


class SaveCommand(BaseModel):
    """Submit the add (no id) or edit (with id) form."""

    action: Literal["save"]
    id: str | None = None
    url: str = ""
    title: str = ""


class DeleteCommand(BaseModel):
    """Delete a bookmark (sent after the user confirmed)."""

    action: Literal["delete"]
    id: str


LiveCommand = Annotated[
    SearchCommand
    | PageCommand
    | NextPageCommand
    | PreviousPageCommand
    | RefreshCommand
    | SaveCommand
    | DeleteCommand,
    Field(discriminator="action"),
]

live_command_adapter: TypeAdapter[LiveCommand] = TypeAdapter(LiveCommand)

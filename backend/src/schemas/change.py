"""Schemas for bookmark change notifications."""
from enum import StrEnum

from pydantic import BaseModel


class ChangeKind(StrEnum):
    """Kind of row change delivered by the change feed."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class ChangeEvent(BaseModel):
    """A single insert, update or delete of one owner's bookmark."""

    kind: ChangeKind
    owner_id: str
    bookmark_id: str

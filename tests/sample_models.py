"""Models shared by the test modules (names avoid pytest collection)."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from mongo_repository import DocumentModel, PersistedModel


class Widget(PersistedModel):
    """Document with every lifecycle field."""

    collection_name = "widgets"

    name: str
    qty: int = 0
    tags: list[str] = Field(default_factory=list)
    meta: dict[str, str] = Field(default_factory=dict)
    owner: str | None = Field(default=None, alias="ownerId")


class Note(DocumentModel):
    """Document without lifecycle fields."""

    collection_name = "notes"
    connector_name = "archive"

    text: str
    created: datetime | None = None


class Ticket(DocumentModel):
    """Document whose ``deleted`` field may hold legacy placeholder values."""

    collection_name = "tickets"

    title: str
    deleted: bool | str | None = None

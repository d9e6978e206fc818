"""Base models for persisted documents and their lifecycle fields."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, ClassVar

from pydantic import BaseModel, ConfigDict, PlainSerializer

DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def format_mongo_date(value: datetime) -> str:
    """Render a datetime as ``2006-01-02T15:04:05.000Z`` (UTC, milliseconds).

    Naive datetimes are taken to be UTC, which is what PyMongo returns.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return f"{value.strftime(DATE_FORMAT)}.{value.microsecond // 1000:03d}Z"


MongoDate = Annotated[
    datetime,
    PlainSerializer(format_mongo_date, return_type=str, when_used="json"),
]


class DocumentModel(BaseModel):
    """
    Base for documents stored by a repository.

    ``collection_name`` defaults to the class name and ``connector_name``
    selects the datasource connector.
    """

    collection_name: ClassVar[str | None] = None
    connector_name: ClassVar[str] = "default"

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None


class TimestampedModel(BaseModel):
    created: MongoDate | None = None
    modified: MongoDate | None = None


class SoftDeleteModel(BaseModel):
    deleted: MongoDate | None = None


class PersistedModel(DocumentModel, TimestampedModel, SoftDeleteModel):
    """Document with an id and all three lifecycle fields."""


def resolve_collection_name(model_cls: type[BaseModel]) -> str:
    return getattr(model_cls, "collection_name", None) or model_cls.__name__


def resolve_connector_name(model_cls: type[BaseModel]) -> str:
    return getattr(model_cls, "connector_name", None) or "default"

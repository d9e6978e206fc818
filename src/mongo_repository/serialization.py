"""Pydantic model <-> BSON document conversion (ids, Decimal, ObjectId)."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any, TypeVar

from bson import Decimal128, ObjectId
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .exceptions import InvalidUpdateError, MongoRepositoryError
from .schema import ID_STORAGE_NAME

TModel = TypeVar("TModel", bound=BaseModel)


def _serialize_value(value: Any) -> Any:
    """Convert Python types to BSON-safe types."""
    if isinstance(value, Decimal):
        return Decimal128(value)
    if isinstance(value, dict):
        return {k: _serialize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize_value(v) for v in value]
    return value


def _deserialize_value(value: Any) -> Any:
    """Convert BSON types back to Python types."""
    if isinstance(value, Decimal128):
        return value.to_decimal()
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: _deserialize_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_deserialize_value(v) for v in value]
    return value


def model_to_doc(model: BaseModel, *, id_field: str = "id") -> dict[str, Any]:
    """Convert a Pydantic model to a BSON-ready document.

    Unset (``None``) fields are left out, aliases are used as keys and
    ``id_field`` becomes ``_id``.
    """
    data = model.model_dump(mode="python", by_alias=True, exclude_none=True)
    if id_field in data:
        data[ID_STORAGE_NAME] = data.pop(id_field)
    return _serialize_value(data)


def model_from_doc(cls: type[TModel], doc: Mapping[str, Any], *, id_field: str = "id") -> TModel:
    """Convert a BSON document to a Pydantic model instance."""
    if not isinstance(doc, Mapping):
        raise MongoRepositoryError("Document must be a mapping")
    data = dict(doc)
    if ID_STORAGE_NAME in data:
        data[id_field] = data.pop(ID_STORAGE_NAME)
    data = _deserialize_value(data)
    try:
        return cls.model_validate(data)
    except PydanticValidationError as e:
        raise MongoRepositoryError(f"Cannot load {cls.__name__}: {e}") from e


def to_document(value: Any, *, id_field: str = "id") -> dict[str, Any]:
    """Accept a Pydantic model or a mapping and return a fresh document dict."""
    if isinstance(value, BaseModel):
        return model_to_doc(value, id_field=id_field)
    if isinstance(value, Mapping):
        return dict(value)
    raise InvalidUpdateError(
        f"Expected a mapping or a Pydantic model, got {type(value).__name__}"
    )

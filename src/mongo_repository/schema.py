"""SchemaIndex: top-level field names of an entity and their storage names."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .exceptions import NestedFieldError, SchemaError, UnknownFieldError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from pydantic import BaseModel

PATH_SEPARATOR = "."
ID_STORAGE_NAME = "_id"


@dataclass(frozen=True)
class FieldDetails:
    """One indexed field: logical name, BSON name and declared type."""

    name: str
    storage_name: str
    declared_type: str


def _type_name(annotation: Any) -> str:
    if annotation is None:
        return "Any"
    if isinstance(annotation, type):
        return annotation.__name__
    return str(annotation).replace("typing.", "")


class SchemaIndex:
    """
    Immutable index of an entity's top-level fields.

    Built once per entity type and shared read-only by every compilation.
    Embedded document paths are never indexed: a dotted reference is
    rejected instead of being resolved.
    """

    __slots__ = ("_by_name", "_by_storage", "model_name")

    def __init__(self, fields: Iterable[FieldDetails], *, model_name: str = "") -> None:
        by_name: dict[str, FieldDetails] = {}
        for details in fields:
            if details.name in by_name:
                raise SchemaError(
                    f"Duplicate field {details.name!r} in schema {model_name!r}"
                )
            by_name[details.name] = details
        if not by_name:
            raise SchemaError(f"No fields discoverable for {model_name or 'model'!r}")
        self.model_name = model_name
        self._by_name: Mapping[str, FieldDetails] = MappingProxyType(by_name)
        self._by_storage: Mapping[str, FieldDetails] = MappingProxyType(
            {d.storage_name: d for d in by_name.values()}
        )

    @classmethod
    def from_model(cls, model_cls: type[BaseModel], *, id_field: str = "id") -> SchemaIndex:
        """Index a Pydantic model's fields in declaration order.

        The ``id_field`` is stored as ``_id``; otherwise the field alias, when
        set, is the storage name.
        """
        model_fields = getattr(model_cls, "model_fields", None)
        if not isinstance(model_fields, dict):
            raise SchemaError(f"{model_cls!r} is not a Pydantic model")
        fields = []
        for name, info in model_fields.items():
            if name == id_field:
                storage_name = ID_STORAGE_NAME
            else:
                storage_name = info.alias or name
            fields.append(FieldDetails(name, storage_name, _type_name(info.annotation)))
        return cls(fields, model_name=model_cls.__name__)

    def resolve(self, name: str) -> str:
        """Return the storage name of a top-level field."""
        if PATH_SEPARATOR in name:
            raise NestedFieldError(name)
        details = self._by_name.get(name)
        if details is None:
            details = self._by_storage.get(name)
        if details is None:
            raise UnknownFieldError(name)
        return details.storage_name

    def get(self, name: str) -> FieldDetails | None:
        return self._by_name.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[FieldDetails]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)

    def __repr__(self) -> str:
        return f"SchemaIndex({self.model_name!r}, fields={list(self._by_name)})"

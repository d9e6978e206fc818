"""Unit tests for SchemaIndex."""

from __future__ import annotations

import pytest
from pydantic import BaseModel

from mongo_repository.exceptions import (
    NestedFieldError,
    SchemaError,
    SchemaResolutionError,
    UnknownFieldError,
)
from mongo_repository.schema import FieldDetails, SchemaIndex

from sample_models import Widget


class TestSchemaFromModel:
    """Tests for building a SchemaIndex from a Pydantic model."""

    def test_indexes_every_top_level_field(self, widget_schema):
        names = {details.name for details in widget_schema}
        assert names == {
            "id", "name", "qty", "tags", "meta", "owner", "created", "modified", "deleted"
        }
        assert len(widget_schema) == 9

    def test_id_field_is_stored_as_underscore_id(self, widget_schema):
        assert widget_schema.resolve("id") == "_id"

    def test_alias_is_storage_name(self, widget_schema):
        assert widget_schema.resolve("owner") == "ownerId"

    def test_storage_name_resolves_to_itself(self, widget_schema):
        """Storage names are accepted as references too."""
        assert widget_schema.resolve("_id") == "_id"
        assert widget_schema.resolve("ownerId") == "ownerId"

    def test_custom_id_field(self):
        class Keyed(BaseModel):
            key: str
            value: int

        schema = SchemaIndex.from_model(Keyed, id_field="key")
        assert schema.resolve("key") == "_id"
        assert schema.resolve("value") == "value"

    def test_non_model_rejected(self):
        with pytest.raises(SchemaError):
            SchemaIndex.from_model(dict)  # type: ignore[arg-type]

    def test_repr_mentions_model(self, widget_schema):
        assert "Widget" in repr(widget_schema)


class TestSchemaResolve:
    """Tests for field resolution."""

    def test_unknown_field(self, widget_schema):
        with pytest.raises(UnknownFieldError) as exc_info:
            widget_schema.resolve("colour")
        assert exc_info.value.field == "colour"

    def test_nested_field_rejected(self, widget_schema):
        """Dotted paths are rejected even when the root is a known field."""
        with pytest.raises(NestedFieldError, match="can not query on nested fields"):
            widget_schema.resolve("meta.color")

    def test_resolution_errors_share_a_base(self, widget_schema):
        for name in ("nope", "meta.color"):
            with pytest.raises(SchemaResolutionError):
                widget_schema.resolve(name)

    def test_get_and_contains(self, widget_schema):
        assert "qty" in widget_schema
        assert "ownerId" not in widget_schema
        details = widget_schema.get("qty")
        assert details is not None
        assert details.storage_name == "qty"
        assert details.declared_type == "int"
        assert widget_schema.get("missing") is None


class TestSchemaConstruction:
    """Tests for explicit construction."""

    def test_duplicate_field_rejected(self):
        fields = [FieldDetails("a", "a", "int"), FieldDetails("a", "b", "int")]
        with pytest.raises(SchemaError, match="Duplicate"):
            SchemaIndex(fields, model_name="Dup")

    def test_empty_schema_rejected(self):
        with pytest.raises(SchemaError):
            SchemaIndex([], model_name="Empty")

    def test_built_once_and_shared(self):
        """Two indexes of the same model resolve identically."""
        assert SchemaIndex.from_model(Widget).resolve("owner") == SchemaIndex.from_model(
            Widget
        ).resolve("owner")

"""Unit tests for model <-> document conversion and MongoDate."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from bson import Decimal128, ObjectId
from pydantic import BaseModel
from sample_models import Note, Widget

from mongo_repository.exceptions import InvalidUpdateError, MongoRepositoryError
from mongo_repository.models import (
    format_mongo_date,
    resolve_collection_name,
    resolve_connector_name,
)
from mongo_repository.serialization import model_from_doc, model_to_doc, to_document


class Priced(BaseModel):
    id: str | None = None
    price: Decimal


class TestModelToDoc:
    """Tests for model_to_doc()."""

    def test_id_becomes_underscore_id(self):
        doc = model_to_doc(Widget(id="w1", name="a"))
        assert doc["_id"] == "w1"
        assert "id" not in doc

    def test_none_fields_left_out(self):
        doc = model_to_doc(Widget(name="a"))
        assert "_id" not in doc
        assert "deleted" not in doc
        assert "ownerId" not in doc

    def test_alias_is_used(self):
        assert model_to_doc(Widget(name="a", owner="bob"))["ownerId"] == "bob"

    def test_decimal_to_decimal128(self):
        doc = model_to_doc(Priced(price=Decimal("9.99")))
        assert doc["price"] == Decimal128("9.99")


class TestModelFromDoc:
    """Tests for model_from_doc()."""

    def test_round_trip_types(self):
        oid = ObjectId()
        model = model_from_doc(Priced, {"_id": oid, "price": Decimal128("1.50")})
        assert model.id == str(oid)
        assert model.price == Decimal("1.50")

    def test_alias_is_read(self):
        widget = model_from_doc(Widget, {"_id": "w1", "name": "a", "ownerId": "bob"})
        assert widget.owner == "bob"

    def test_invalid_document(self):
        with pytest.raises(MongoRepositoryError, match="Cannot load Widget"):
            model_from_doc(Widget, {"_id": "w1"})

    def test_non_mapping(self):
        with pytest.raises(MongoRepositoryError):
            model_from_doc(Widget, ["name"])  # type: ignore[arg-type]


class TestToDocument:
    """Tests for to_document()."""

    def test_mapping_is_copied(self):
        source = {"name": "a"}
        doc = to_document(source)
        assert doc == source
        assert doc is not source

    def test_other_types_rejected(self):
        with pytest.raises(InvalidUpdateError):
            to_document("name=a")


class TestMongoDate:
    """Tests for the JSON date format and model metadata."""

    def test_format_utc(self):
        value = datetime(2006, 1, 2, 15, 4, 5, 123456, tzinfo=timezone.utc)
        assert format_mongo_date(value) == "2006-01-02T15:04:05.123Z"

    def test_format_converts_to_utc(self):
        value = datetime(2006, 1, 2, 17, 4, 5, tzinfo=timezone(timedelta(hours=2)))
        assert format_mongo_date(value) == "2006-01-02T15:04:05.000Z"

    def test_naive_is_utc(self):
        assert format_mongo_date(datetime(2006, 1, 2, 15, 4, 5)) == "2006-01-02T15:04:05.000Z"

    def test_json_dump(self):
        widget = Widget(name="a", created=datetime(2006, 1, 2, 15, 4, 5, tzinfo=timezone.utc))
        data = widget.model_dump(mode="json")
        assert data["created"] == "2006-01-02T15:04:05.000Z"
        assert data["deleted"] is None

    def test_python_dump_keeps_datetime(self):
        created = datetime(2006, 1, 2, tzinfo=timezone.utc)
        assert Widget(name="a", created=created).model_dump()["created"] == created

    def test_collection_and_connector_names(self):
        assert resolve_collection_name(Widget) == "widgets"
        assert resolve_connector_name(Widget) == "default"
        assert resolve_connector_name(Note) == "archive"
        assert resolve_collection_name(Priced) == "Priced"

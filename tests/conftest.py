"""Shared fixtures for mongo-repository tests."""

from __future__ import annotations

import pytest
from sample_models import Widget

from mongo_repository import LifecyclePolicy, MongoConnector
from mongo_repository.schema import SchemaIndex


@pytest.fixture
def widget_schema() -> SchemaIndex:
    return SchemaIndex.from_model(Widget)


@pytest.fixture
def mock_client():
    """Create a mock Motor client."""
    mongomock_motor = pytest.importorskip("mongomock_motor")
    return mongomock_motor.AsyncMongoMockClient()


@pytest.fixture
def connector(mock_client) -> MongoConnector:
    """Connector bound to the mock client."""
    return MongoConnector.from_client(mock_client, "test_db")


@pytest.fixture
def full_policy() -> LifecyclePolicy:
    return LifecyclePolicy.all()

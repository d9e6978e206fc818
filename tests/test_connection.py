"""Unit tests for MongoConnector and MongoDatasource."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import ServerSelectionTimeoutError
from sample_models import Note, Widget

from mongo_repository.connection import MongoConnector
from mongo_repository.datasource import MongoDatasource
from mongo_repository.exceptions import ConfigurationError, ConnectionError


class TestMongoConnector:
    """Tests for MongoConnector."""

    def test_database_is_required(self):
        with pytest.raises(ConfigurationError, match="database name is required"):
            MongoConnector("main", "mongodb://localhost:27017")

    def test_client_before_connect(self):
        connector = MongoConnector("main", database="app")
        with pytest.raises(ConnectionError, match="not initialized"):
            _ = connector.client

    def test_from_client(self, connector, mock_client):
        assert connector.client is mock_client
        assert connector.name == "default"
        assert connector.database_name == "test_db"

    def test_close_drops_client(self):
        client = MagicMock()
        connector = MongoConnector.from_client(client, "app")
        connector.close()
        client.close.assert_called_once()
        with pytest.raises(ConnectionError):
            _ = connector.client

    @pytest.mark.asyncio
    async def test_connect_is_idempotent(self):
        client = MagicMock()
        connector = MongoConnector.from_client(client, "app")
        assert await connector.connect() is client

    @pytest.mark.asyncio
    async def test_ping_failure(self):
        client = MagicMock()
        client.admin.command = AsyncMock(side_effect=ServerSelectionTimeoutError("down"))
        connector = MongoConnector.from_client(client, "app", name="main")
        with pytest.raises(ConnectionError, match="ping failed"):
            await connector.ping()

    @pytest.mark.asyncio
    async def test_health_check(self):
        client = MagicMock()
        client.admin.command = AsyncMock(return_value={"ok": 1})
        connector = MongoConnector.from_client(client, "app")
        assert await connector.health_check() is True

        client.admin.command = AsyncMock(side_effect=ServerSelectionTimeoutError("down"))
        assert await connector.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check_when_not_connected(self):
        assert await MongoConnector("main", database="app").health_check() is False


class TestMongoDatasource:
    """Tests for MongoDatasource."""

    def test_unknown_connector(self):
        with pytest.raises(ConfigurationError, match="connector with name 'nope' does not exist"):
            MongoDatasource().get_connector("nope")

    def test_register_model_uses_connector_name(self, connector):
        datasource = MongoDatasource()
        datasource.register_connector(connector)
        assert datasource.register_model(Widget) is connector
        assert datasource.get_model_connector(Widget) is connector

    def test_register_model_without_its_connector(self, connector):
        datasource = MongoDatasource()
        datasource.register_connector(connector)
        with pytest.raises(ConfigurationError):
            datasource.register_model(Note)

    def test_unregistered_model(self):
        with pytest.raises(ConfigurationError, match="the model Widget is not registered"):
            MongoDatasource().get_model_connector(Widget)

    def test_close_closes_every_connector(self):
        clients = [MagicMock(), MagicMock()]
        datasource = MongoDatasource()
        datasource.register_connector(MongoConnector.from_client(clients[0], "a", name="a"))
        datasource.register_connector(MongoConnector.from_client(clients[1], "b", name="b"))
        datasource.close()
        for client in clients:
            client.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_add_connector_connects(self, monkeypatch):
        connect = AsyncMock()
        monkeypatch.setattr(MongoConnector, "connect", connect)
        datasource = MongoDatasource()
        connector = await datasource.add_connector("archive", database="archive_db")
        connect.assert_awaited_once()
        assert datasource.get_connector("archive") is connector
        assert datasource.register_model(Note) is connector

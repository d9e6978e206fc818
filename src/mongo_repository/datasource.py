"""MongoDatasource: named connectors and the models bound to them."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .connection import MongoConnector
from .exceptions import ConfigurationError
from .models import resolve_connector_name

if TYPE_CHECKING:
    from pydantic import BaseModel

logger = logging.getLogger("mongo_repository.datasource")


class MongoDatasource:
    """Registry of connectors by name and of models by connector."""

    def __init__(self) -> None:
        self._connectors: dict[str, MongoConnector] = {}
        self._connector_by_model: dict[type[BaseModel], MongoConnector] = {}

    async def add_connector(
        self,
        name: str,
        url: str = "mongodb://localhost:27017",
        database: str | None = None,
        **kwargs: Any,
    ) -> MongoConnector:
        """Create, connect and register a connector under ``name``."""
        connector = MongoConnector(name, url, database, **kwargs)
        await connector.connect()
        self._connectors[name] = connector
        return connector

    def register_connector(self, connector: MongoConnector) -> MongoConnector:
        """Register an already built connector under its own name."""
        self._connectors[connector.name] = connector
        return connector

    def get_connector(self, name: str) -> MongoConnector:
        connector = self._connectors.get(name)
        if connector is None:
            raise ConfigurationError(f"connector with name {name!r} does not exist")
        return connector

    def register_model(self, model_cls: type[BaseModel]) -> MongoConnector:
        """Bind ``model_cls`` to the connector named by its ``connector_name``."""
        connector = self.get_connector(resolve_connector_name(model_cls))
        self._connector_by_model[model_cls] = connector
        logger.debug("Model %s registered on connector %s", model_cls.__name__, connector.name)
        return connector

    def get_model_connector(self, model_cls: type[BaseModel]) -> MongoConnector:
        connector = self._connector_by_model.get(model_cls)
        if connector is None:
            raise ConfigurationError(f"the model {model_cls.__name__} is not registered")
        return connector

    def close(self) -> None:
        """Close every connector."""
        for connector in self._connectors.values():
            connector.close()

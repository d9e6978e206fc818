"""MongoConnector: Motor client lifecycle, ping and health check."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pymongo.errors import PyMongoError

from .exceptions import ConfigurationError, ConnectionError

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

logger = logging.getLogger("mongo_repository.connection")


class MongoConnector:
    """Wrap a Motor client bound to one database."""

    def __init__(
        self,
        name: str = "default",
        url: str = "mongodb://localhost:27017",
        database: str | None = None,
        *,
        server_selection_timeout_ms: int = 5000,
        connect_timeout_ms: int = 10000,
        **kwargs: Any,
    ) -> None:
        if not database:
            raise ConfigurationError(f"Connector {name!r}: database name is required")
        self.name = name
        self._url = url
        self._database = database
        self._server_selection_timeout_ms = server_selection_timeout_ms
        self._connect_timeout_ms = connect_timeout_ms
        self._kwargs = kwargs
        self._client: AsyncIOMotorClient[Any] | None = None

    @classmethod
    def from_client(
        cls, client: AsyncIOMotorClient[Any], database: str, *, name: str = "default"
    ) -> MongoConnector:
        """Wrap an existing client (e.g. a test double) without connecting."""
        connector = cls(name, database=database)
        connector._client = client
        return connector

    async def connect(self, *, ping: bool = True) -> AsyncIOMotorClient[Any]:
        """Create and cache the Motor client, then ping it. Idempotent."""
        if self._client is not None:
            return self._client
        try:
            from motor.motor_asyncio import AsyncIOMotorClient
        except ImportError as e:
            raise ConnectionError("motor is required; install with motor>=3.3.0") from e
        try:
            self._client = AsyncIOMotorClient(
                self._url,
                serverSelectionTimeoutMS=self._server_selection_timeout_ms,
                connectTimeoutMS=self._connect_timeout_ms,
                **self._kwargs,
            )
        except (PyMongoError, TypeError, ValueError) as e:
            raise ConnectionError(str(e)) from e
        if ping:
            await self.ping()
        logger.debug("Connector %s connected to database %s", self.name, self._database)
        return self._client

    async def ping(self) -> None:
        """Ping the server; raises ConnectionError when unreachable."""
        try:
            await self.client.admin.command("ping")
        except PyMongoError as e:
            raise ConnectionError(f"Connector {self.name!r}: ping failed: {e}") from e

    @property
    def client(self) -> AsyncIOMotorClient[Any]:
        """Return the Motor client; raises if not connected."""
        if self._client is None:
            raise ConnectionError(f"Connector {self.name!r} not initialized; call connect() first")
        return self._client

    @property
    def database_name(self) -> str:
        return self._database

    @property
    def database(self) -> AsyncIOMotorDatabase[Any]:
        return self.client.get_database(self._database)

    def close(self) -> None:
        """Close the client (synchronous; Motor client.close() is sync)."""
        if self._client is not None:
            self._client.close()
            self._client = None

    async def health_check(self) -> bool:
        """Ping the server; return True if reachable."""
        if self._client is None:
            return False
        try:
            await self.ping()
        except ConnectionError:
            return False
        return True

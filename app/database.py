"""
MongoDB connection handle.

The Motor client is owned by a MongoConnection created once at startup
(see app.main lifespan) and injected into MongoUserStore. The connection may
drop silently between requests, so the store calls ensure_connected()
before every operation; a failed reconnect surfaces as
StoreConnectivityError instead of crashing the request.
"""

import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from app.config import Settings
from app.errors import StoreConnectivityError

logger = logging.getLogger(__name__)

ClientFactory = Callable[..., Any]


class MongoConnection:
    """Lifecycle-managed Motor client with a health check and reconnect."""

    def __init__(
        self,
        url: str,
        database: str,
        server_selection_timeout_ms: int = 5000,
        client_factory: Optional[ClientFactory] = None,
        unique_indexes: Sequence[Tuple[str, str]] = (),
    ) -> None:
        self._url = url
        self._database_name = database
        self._timeout_ms = server_selection_timeout_ms
        self._client_factory = client_factory or AsyncIOMotorClient
        # (collection, key) pairs still to be created; retried after every reconnect
        self._pending_indexes: List[Tuple[str, str]] = list(unique_indexes)
        self._client: Optional[Any] = None
        self._healthy = False

    @property
    def is_healthy(self) -> bool:
        return self._client is not None and self._healthy

    async def connect(self) -> None:
        """Create the client (if needed) and verify it with a ping."""
        if self._client is None:
            self._client = self._client_factory(
                self._url, serverSelectionTimeoutMS=self._timeout_ms
            )
        await self._client.admin.command("ping")
        self._healthy = True
        logger.info("Pinged MongoDB deployment; connected to database %s.", self._database_name)
        await self._ensure_indexes()

    async def _ensure_indexes(self) -> None:
        for collection_name, key in list(self._pending_indexes):
            try:
                await self._client[self._database_name][collection_name].create_index(key, unique=True)
            except PyMongoError as e:
                logger.error("Could not create unique index on %s.%s: %s", collection_name, key, e)
                continue
            self._pending_indexes.remove((collection_name, key))
            logger.info("Ensured unique index on %s.%s", collection_name, key)

    async def ping(self) -> bool:
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
        except PyMongoError as e:
            logger.warning("MongoDB ping failed: %s", e)
            self._healthy = False
            return False
        self._healthy = True
        return True

    async def ensure_connected(self) -> None:
        """
        Make sure there is a usable client before issuing a call.
        An existing client gets one ping; if that fails it is replaced.
        """
        if self.is_healthy:
            if self._pending_indexes:
                await self._ensure_indexes()
            return
        if await self.ping():
            await self._ensure_indexes()
            return
        if self._client is not None:
            self._client.close()
            self._client = None
        try:
            await self.connect()
        except PyMongoError as e:
            logger.error("MongoDB reconnection error: %s", e)
            self._healthy = False
            raise StoreConnectivityError("Database unavailable") from e
        logger.info("Reconnected to MongoDB")

    def mark_disconnected(self) -> None:
        """Called when an operation failed at the connection level."""
        self._healthy = False

    def collection(self, name: str) -> AsyncIOMotorCollection:
        if self._client is None:
            raise StoreConnectivityError("Database unavailable")
        return self._client[self._database_name][name]

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
        self._healthy = False


async def connect_to_mongo(settings: Settings) -> MongoConnection:
    """
    Build the connection handle. Called once at application startup.
    A failure here is logged; the handle reconnects lazily on the first
    request and creates the unique uid index then.
    """
    connection = MongoConnection(
        settings.mongodb_url,
        settings.mongodb_database,
        server_selection_timeout_ms=settings.mongodb_server_selection_timeout_ms,
        unique_indexes=[(settings.users_collection, "uid")],
    )
    try:
        await connection.connect()
        logger.info("MongoDB connection established.")
    except PyMongoError as e:
        connection.mark_disconnected()
        logger.error("MongoDB connection error: %s", e)
    return connection


async def close_mongo_connection(connection: Optional[MongoConnection]) -> None:
    """Close MongoDB connection on application shutdown."""
    logger.info("Closing MongoDB connection.")
    if connection is not None:
        connection.close()

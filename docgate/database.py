"""
DocGate — Document Store Connection
=====================================

What:  The MongoDB connection (DocumentStore) and the FastAPI dependencies
       that resolve a collection name from the URL into a collection handle.
How:   One AsyncIOMotorClient per process. Bootstrap (the app lifespan)
       constructs the store, connects it, and places it on ``app.state.store``;
       route handlers only ever read it through the dependencies below.
Who:   main.py owns the lifecycle; routes depend on get_collection.

Lifecycle:
    absent ──connect()──▶ connected ──close()──▶ absent

    connect() pings the server before flipping to "connected", so a wrong
    host or bad credentials are reported at startup instead of on the first
    request. The client keeps its own connection pool; no locking is done here.
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo.errors import InvalidName, PyMongoError
from pymongo.server_api import ServerApi

from docgate.config import Settings, redact_uri, settings as default_settings
from docgate.exceptions import DatabaseError, StoreUnavailableError, ValidationError

logger = logging.getLogger(__name__)

ORDERS_COLLECTION = "orders"


class DocumentStore:
    """
    Owns the Motor client and hands out collection handles by name.

    Example:
        >>> store = DocumentStore("mongodb://localhost:27017/", "school")
        >>> await store.connect()
        >>> lessons = store.collection("lessons")
    """

    def __init__(
        self,
        uri: str,
        database_name: str,
        server_selection_timeout_ms: int = 5000,
    ) -> None:
        self._uri = uri
        self._database_name = database_name
        self._server_selection_timeout_ms = server_selection_timeout_ms
        self._client: Optional[AsyncIOMotorClient] = None
        self._database: Optional[AsyncIOMotorDatabase] = None

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "DocumentStore":
        config = config or default_settings
        return cls(
            uri=config.connection_uri,
            database_name=config.db_name,
            server_selection_timeout_ms=config.db_server_selection_timeout_ms,
        )

    @property
    def database_name(self) -> str:
        return self._database_name

    @property
    def is_connected(self) -> bool:
        return self._database is not None

    async def connect(self) -> None:
        """
        Open the client and verify the server answers a ping.

        Raises:
            DatabaseError: the server could not be reached or refused us.
        """
        logger.info("Connecting to MongoDB at %s", redact_uri(self._uri))
        client: Optional[AsyncIOMotorClient] = None
        try:
            # A malformed URI raises ConfigurationError from the constructor
            client = AsyncIOMotorClient(
                self._uri,
                server_api=ServerApi("1"),
                serverSelectionTimeoutMS=self._server_selection_timeout_ms,
            )
            await client.admin.command("ping")
        except PyMongoError as e:
            if client is not None:
                client.close()
            raise DatabaseError(
                message="Could not connect to MongoDB",
                context={"original_error": str(e), "uri": redact_uri(self._uri)},
            ) from e

        self._client = client
        self._database = client[self._database_name]
        logger.info("Connected to MongoDB database '%s'", self._database_name)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            logger.info("MongoDB connection closed")
        self._client = None
        self._database = None

    async def ping(self) -> bool:
        """True when the server answers a ping; used by the health check."""
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning("MongoDB ping failed: %s", e)
            return False

    def collection(self, name: str) -> AsyncIOMotorCollection:
        """
        Return the handle for collection ``name``.

        Collections are created by MongoDB on first write, so any name the
        driver accepts is valid here.

        Raises:
            StoreUnavailableError: connect() has not succeeded yet.
            ValidationError: the driver rejects the name (empty, contains "$", ...).
        """
        if self._database is None:
            raise StoreUnavailableError()
        try:
            return self._database[name]
        except InvalidName as e:
            raise ValidationError(
                message=f"Invalid collection name '{name}'",
                field="name",
                context={"reason": str(e)},
            ) from e


# ── Dependencies ──────────────────────────────────────────────────────────

def get_store(request: Request) -> DocumentStore:
    """The DocumentStore installed on the application by create_app()."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise StoreUnavailableError()
    return store


def get_collection(
    name: str,
    store: DocumentStore = Depends(get_store),
) -> AsyncIOMotorCollection:
    """
    Collection resolver for ``/collections/{name}/...`` routes.

    Runs before the route handler; a disconnected store fails the request
    with 500 and the handler never executes.
    """
    if not store.is_connected:
        logger.error("Request for collection '%s' while database is not connected", name)
        raise StoreUnavailableError()
    return store.collection(name)


def get_orders_collection(
    store: DocumentStore = Depends(get_store),
) -> AsyncIOMotorCollection:
    """Collection resolver for the fixed ``/collections/orders`` routes."""
    return get_collection(ORDERS_COLLECTION, store)

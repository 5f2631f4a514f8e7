"""
Connection management for MONGO_UOW.

This module handles MongoDB client creation, connection verification and
shutdown. One ConnectionManager owns one motor client and its pool; units
of work created from it share the pool but never share sessions.
"""

import asyncio
import logging
import time

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from ..config import MongoConfig
from ..constants import APP_NAME
from ..exceptions import DatabaseConnectionError
from ..observability import get_logger as get_contextual_logger
from ..observability import record_operation

logger = logging.getLogger(__name__)
contextual_logger = get_contextual_logger(__name__)


def create_client(config: MongoConfig) -> AsyncIOMotorClient:
    """
    Build a motor client from a validated configuration.

    The client connects lazily; call ``ping`` to verify the deployment is
    reachable.
    """
    timeout_ms = int(config.timeout * 1000)
    return AsyncIOMotorClient(
        config.connection_string(),
        tz_aware=True,
        appname=APP_NAME,
        serverSelectionTimeoutMS=timeout_ms,
        connectTimeoutMS=timeout_ms,
        maxIdleTimeMS=int(config.max_idle_time * 1000),
    )


async def ping(client: AsyncIOMotorClient) -> None:
    """Round-trip a ping to the admin database."""
    await client.admin.command("ping")


async def connect(config: MongoConfig) -> AsyncIOMotorClient:
    """
    Create a client and verify it with a ping.

    Raises:
        DatabaseConnectionError: If the client cannot be created or the ping fails
    """
    start_time = time.time()
    client = None
    try:
        client = create_client(config)
        await ping(client)
    except PyMongoError as e:
        duration_ms = (time.time() - start_time) * 1000
        record_operation("connection.initialize", duration_ms, success=False)
        contextual_logger.critical(
            "MongoDB connection failed",
            extra={
                "error_type": type(e).__name__,
                "error": str(e),
                "duration_ms": round(duration_ms, 2),
            },
            exc_info=True,
        )
        if client is not None:
            client.close()
        raise DatabaseConnectionError(
            f"failed to connect to MongoDB: {e}",
            mongo_uri=config.redacted_connection_string(),
            db_name=config.database,
            context={"error_type": type(e).__name__},
        ) from e

    duration_ms = (time.time() - start_time) * 1000
    record_operation("connection.initialize", duration_ms, success=True)
    contextual_logger.info(
        "MongoDB connection initialized",
        extra={
            "db_name": config.database,
            "pool_size": f"{config.min_pool_size}-{config.max_pool_size}",
            "duration_ms": round(duration_ms, 2),
        },
    )
    return client


class ConnectionManager:
    """
    Manages one MongoDB client for a configuration.

    ``initialize()`` is idempotent and safe to call concurrently from
    several tasks; only the first call connects.
    """

    def __init__(self, config: MongoConfig) -> None:
        self.config = config
        self._client: AsyncIOMotorClient | None = None
        self._lock = asyncio.Lock()

    async def initialize(self) -> AsyncIOMotorClient:
        """
        Connect and ping once, returning the shared client.

        Raises:
            DatabaseConnectionError: If the connection cannot be established
        """
        if self._client is not None:
            return self._client

        async with self._lock:
            if self._client is None:
                contextual_logger.info(
                    "Initializing MongoDB connection",
                    extra={
                        "mongo_uri": self.config.redacted_connection_string(),
                        "db_name": self.config.database,
                    },
                )
                self._client = await connect(self.config)
        return self._client

    async def shutdown(self) -> None:
        """Close the client. Safe to call multiple times."""
        if self._client is None:
            return
        self._client.close()
        self._client = None
        contextual_logger.info("MongoDB connection closed")

    @property
    def client(self) -> AsyncIOMotorClient:
        """
        The MongoDB client.

        Raises:
            RuntimeError: If the connection is not initialized
        """
        if self._client is None:
            raise RuntimeError("ConnectionManager not initialized. Call initialize() first.")
        return self._client

    @property
    def database(self) -> AsyncIOMotorDatabase:
        """The configured database on the MongoDB client."""
        return self.client[self.config.database]

    @property
    def initialized(self) -> bool:
        return self._client is not None

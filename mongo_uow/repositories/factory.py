"""
Unit of Work factory.

Validates connection configuration once and hands out a fresh UnitOfWork
per call. Units of work from one factory share the factory's client and
connection pool; sessions and transaction state are never shared.
"""

import logging
from typing import Generic, TypeVar

from ..config import MongoConfig
from ..database.connection import ConnectionManager
from ..domain.base import BaseEntity
from .unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseEntity)


class UnitOfWorkFactory(Generic[T]):
    """
    Creates UnitOfWork instances for one entity type.

    Example:
        factory = UnitOfWorkFactory(User, MongoConfig(database="shop"))
        uow = await factory.create()
        users = await uow.find_all()

        uow = await factory.create_with_transaction()
        try:
            await uow.insert(user)
            await uow.commit_transaction()
        except UnitOfWorkError:
            await uow.rollback_transaction()
            raise
    """

    def __init__(
        self,
        entity_type: type[T],
        config: MongoConfig | None = None,
        connection: ConnectionManager | None = None,
    ):
        """
        Initialize the factory.

        Args:
            entity_type: BaseEntity subclass the units of work manage
            config: Connection configuration (defaults to the connection's
                configuration, or to environment variables)
            connection: Connection manager to share with other factories

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        if config is None:
            config = connection.config if connection is not None else MongoConfig()
        config.validate()

        self._entity_type = entity_type
        self._config = config
        self._connection = connection or ConnectionManager(config)

    @property
    def entity_type(self) -> type[T]:
        return self._entity_type

    @property
    def config(self) -> MongoConfig:
        return self._config

    @property
    def connection(self) -> ConnectionManager:
        return self._connection

    async def create(self) -> UnitOfWork[T]:
        """
        Create a new unit of work, connecting on first use.

        Raises:
            DatabaseConnectionError: If the server cannot be reached
        """
        client = await self._connection.initialize()
        uow = UnitOfWork(client, self._connection.database, self._entity_type)
        logger.debug(f"Created unit of work for '{uow.collection_name}'")
        return uow

    async def create_with_transaction(self) -> UnitOfWork[T]:
        """
        Create a unit of work with a transaction already started.

        The transaction is not rolled back automatically; callers must call
        ``rollback_transaction()`` on their failure path.
        """
        uow = await self.create()
        await uow.begin_transaction()
        return uow

    async def close(self) -> None:
        """Shut down the shared connection."""
        await self._connection.shutdown()

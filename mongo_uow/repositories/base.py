"""
Repository Pattern

Defines the repository interface domain services depend on, and
BaseRepository, which implements it by delegating every call to a fresh
UnitOfWork from a factory.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Generic, TypeVar

from bson import ObjectId

from ..domain.base import BaseEntity, QueryParams
from ..identifier import Identifier
from .factory import UnitOfWorkFactory
from .unit_of_work import UnitOfWork

T = TypeVar("T", bound=BaseEntity)


class Repository(ABC, Generic[T]):
    """
    Abstract repository interface for data access.

    Type parameter T should be a BaseEntity subclass.

    Example:
        class UserRepository(BaseRepository[User]):
            async def find_by_email(self, email: str) -> User:
                return await self.find_one(Identifier().equal("email", email))
    """

    @abstractmethod
    async def insert(self, entity: T) -> T:
        """
        Add a new entity.

        Args:
            entity: Entity to add

        Returns:
            The entity with id and timestamps populated
        """

    @abstractmethod
    async def update(self, identifier: Identifier, entity: T) -> T:
        """
        Update an existing, non-deleted entity.

        Args:
            identifier: Conditions selecting the entity
            entity: Updated entity data

        Returns:
            The entity as stored after the update
        """

    @abstractmethod
    async def delete(self, identifier: Identifier) -> None:
        """Physically delete the matched entity."""

    @abstractmethod
    async def find_one_by_id(self, id: ObjectId | str) -> T:
        """Get a single non-deleted entity by id."""

    @abstractmethod
    async def find_one(self, identifier: Identifier) -> T:
        """Get the first non-deleted entity matching ``identifier``."""

    @abstractmethod
    async def find_all(self, identifier: Identifier | None = None) -> list[T]:
        """
        Find non-deleted entities.

        Args:
            identifier: Optional conditions; all entities when omitted

        Returns:
            List of matching entities (empty when nothing matches)
        """

    @abstractmethod
    async def find_all_with_pagination(self, query: QueryParams[T]) -> tuple[list[T], int]:
        """
        Find one page of non-deleted entities.

        Returns:
            Tuple of (page of entities, total matching count)
        """

    @abstractmethod
    async def count(self, identifier: Identifier | None = None) -> int:
        """Count non-deleted entities."""

    @abstractmethod
    async def bulk_insert(self, entities: Sequence[T]) -> list[T]:
        """Add multiple entities in one batch."""

    @abstractmethod
    async def bulk_update(self, entities: Sequence[T]) -> list[T]:
        """Update multiple entities, matched by id, in one batch."""

    @abstractmethod
    async def bulk_delete(self, identifiers: Sequence[Identifier]) -> int:
        """Physically delete one entity per identifier; returns the count."""

    @abstractmethod
    async def soft_delete(self, identifier: Identifier) -> T:
        """Mark the matched entity as deleted."""

    @abstractmethod
    async def bulk_soft_delete(self, identifiers: Sequence[Identifier]) -> int:
        """Mark one entity per identifier as deleted; returns the count."""

    @abstractmethod
    async def hard_delete(self, identifier: Identifier) -> T:
        """Remove the matched entity, deleted or not, and return it."""

    @abstractmethod
    async def restore(self, identifier: Identifier) -> T:
        """Recover a soft-deleted entity."""

    @abstractmethod
    async def restore_all(self) -> int:
        """Recover every soft-deleted entity; returns the count."""

    @abstractmethod
    async def get_trashed(self) -> list[T]:
        """All soft-deleted entities."""

    @abstractmethod
    async def get_trashed_with_pagination(self, query: QueryParams[T]) -> tuple[list[T], int]:
        """One page of soft-deleted entities plus the total trashed count."""


class BaseRepository(Repository[T]):
    """
    Repository backed by a UnitOfWorkFactory.

    Each call creates its own unit of work, so separate calls never share
    a session: two repository calls are never part of one transaction.
    Use ``transaction()`` for multi-step transactional work.
    """

    def __init__(self, factory: UnitOfWorkFactory[T]):
        self._factory = factory

    @property
    def factory(self) -> UnitOfWorkFactory[T]:
        return self._factory

    @asynccontextmanager
    async def _unit_of_work(self) -> AsyncIterator[UnitOfWork[T]]:
        uow = await self._factory.create()
        try:
            yield uow
        finally:
            await uow.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[UnitOfWork[T]]:
        """
        A unit of work with an open transaction.

        Commits when the block exits normally, rolls back when it raises.

        Example:
            async with users.transaction() as uow:
                await uow.insert(alice)
                await uow.soft_delete(by_id(bob_id))
        """
        uow = await self._factory.create_with_transaction()
        try:
            yield uow
        except BaseException:
            await uow.rollback_transaction()
            raise
        else:
            await uow.commit_transaction()
        finally:
            await uow.close()

    async def insert(self, entity: T) -> T:
        async with self._unit_of_work() as uow:
            return await uow.insert(entity)

    async def update(self, identifier: Identifier, entity: T) -> T:
        async with self._unit_of_work() as uow:
            return await uow.update(identifier, entity)

    async def delete(self, identifier: Identifier) -> None:
        async with self._unit_of_work() as uow:
            await uow.delete(identifier)

    async def find_one_by_id(self, id: ObjectId | str) -> T:
        async with self._unit_of_work() as uow:
            return await uow.find_one_by_id(id)

    async def find_one(self, identifier: Identifier) -> T:
        async with self._unit_of_work() as uow:
            return await uow.find_one_by_identifier(identifier)

    async def find_all(self, identifier: Identifier | None = None) -> list[T]:
        async with self._unit_of_work() as uow:
            return await uow.find_all(identifier)

    async def find_all_with_pagination(self, query: QueryParams[T]) -> tuple[list[T], int]:
        async with self._unit_of_work() as uow:
            return await uow.find_all_with_pagination(query)

    async def count(self, identifier: Identifier | None = None) -> int:
        async with self._unit_of_work() as uow:
            return await uow.count(identifier)

    async def bulk_insert(self, entities: Sequence[T]) -> list[T]:
        async with self._unit_of_work() as uow:
            return await uow.bulk_insert(entities)

    async def bulk_update(self, entities: Sequence[T]) -> list[T]:
        async with self._unit_of_work() as uow:
            return await uow.bulk_update(entities)

    async def bulk_delete(self, identifiers: Sequence[Identifier]) -> int:
        async with self._unit_of_work() as uow:
            return await uow.bulk_hard_delete(identifiers)

    async def soft_delete(self, identifier: Identifier) -> T:
        async with self._unit_of_work() as uow:
            return await uow.soft_delete(identifier)

    async def bulk_soft_delete(self, identifiers: Sequence[Identifier]) -> int:
        async with self._unit_of_work() as uow:
            return await uow.bulk_soft_delete(identifiers)

    async def hard_delete(self, identifier: Identifier) -> T:
        async with self._unit_of_work() as uow:
            return await uow.hard_delete(identifier)

    async def restore(self, identifier: Identifier) -> T:
        async with self._unit_of_work() as uow:
            return await uow.restore(identifier)

    async def restore_all(self) -> int:
        async with self._unit_of_work() as uow:
            return await uow.restore_all()

    async def get_trashed(self) -> list[T]:
        async with self._unit_of_work() as uow:
            return await uow.get_trashed()

    async def get_trashed_with_pagination(self, query: QueryParams[T]) -> tuple[list[T], int]:
        async with self._unit_of_work() as uow:
            return await uow.get_trashed_with_pagination(query)

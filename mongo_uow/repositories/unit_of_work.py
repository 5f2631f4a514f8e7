"""
Unit of Work

Binds one entity type to one MongoDB collection and provides transaction
bracketing, CRUD, soft-delete/restore, trash queries, pagination and bulk
writes for it.

While a transaction is open every operation runs inside the transaction's
session; otherwise operations run without a session. Contextual log records
written during the transaction carry ``collection`` and ``in_transaction``.

Usage:
    uow = await UnitOfWork.connect(config, User)
    await uow.begin_transaction()
    try:
        user = await uow.insert(User(email="a@example.com", age=30))
        await uow.soft_delete(by_id(user.id))
        await uow.commit_transaction()
    except UnitOfWorkError:
        await uow.rollback_transaction()
        raise
    finally:
        await uow.close()
"""

import asyncio
import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

from bson import ObjectId
from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorClientSession,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo import DeleteOne, ReturnDocument, UpdateOne
from pymongo.errors import BulkWriteError, DuplicateKeyError, PyMongoError

from ..config import MongoConfig
from ..constants import DELETED_AT_FIELD, DUPLICATE_KEY_ERROR_CODE, ID_FIELD, UPDATED_AT_FIELD
from ..database.connection import connect
from ..domain.base import BaseEntity, QueryParams
from ..exceptions import (
    BulkWriteMismatchError,
    DuplicateEntityError,
    EntityNotFoundError,
    NoTransactionInProgressError,
    NotFoundInTrashError,
    ObjectIdCoercionError,
    OperationError,
    TransactionAlreadyInProgressError,
)
from ..identifier import Identifier
from ..observability import get_logger as get_contextual_logger
from ..observability import (
    get_uow_context,
    restore_uow_context,
    set_uow_context,
    timed_operation,
)
from ..utils.mongo import coerce_object_id, utcnow

logger = logging.getLogger(__name__)
contextual_logger = get_contextual_logger(__name__)

T = TypeVar("T", bound=BaseEntity)

NOT_DELETED = {"$exists": False}
IS_DELETED = {"$exists": True}


class UnitOfWork(Generic[T]):
    """
    Unit of Work over a single entity collection.

    The collection name is derived from the entity type
    (``User`` -> ``users``). Reads exclude soft-deleted documents unless the
    supplied identifier references ``deletedAt`` itself.

    A unit of work holds at most one session. Transaction transitions are
    serialized by a lock; CRUD calls made while a transaction is open are
    expected to come from a single logical caller, one after another.
    """

    def __init__(
        self,
        client: AsyncIOMotorClient,
        database: AsyncIOMotorDatabase,
        entity_type: type[T],
        owns_client: bool = False,
    ):
        """
        Initialize the Unit of Work.

        Args:
            client: Motor client used to start sessions
            database: Database holding the entity collection
            entity_type: BaseEntity subclass managed by this unit of work
            owns_client: Close the client in ``close()``
        """
        self._client = client
        self._database = database
        self._entity_type = entity_type
        self._collection_name = entity_type.collection_name()
        self._owns_client = owns_client
        self._session: AsyncIOMotorClientSession | None = None
        self._outer_context: dict[str, Any] | None = None
        self._lock = asyncio.Lock()

    @classmethod
    async def connect(cls, config: MongoConfig, entity_type: type[T]) -> "UnitOfWork[T]":
        """
        Validate ``config``, open a dedicated client and return a unit of work owning it.

        Raises:
            ConfigurationError: If the configuration is invalid
            DatabaseConnectionError: If the server cannot be reached
        """
        config.validate()
        client = await connect(config)
        return cls(client, client[config.database], entity_type, owns_client=True)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def entity_type(self) -> type[T]:
        return self._entity_type

    @property
    def collection_name(self) -> str:
        return self._collection_name

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._database[self._collection_name]

    @property
    def in_transaction(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> AsyncIOMotorClientSession | None:
        """Active transaction session, or None when idle."""
        return self._session

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def begin_transaction(self) -> None:
        """
        Start a session and a transaction.

        Raises:
            TransactionAlreadyInProgressError: If a transaction is already open
            OperationError: If the session or transaction cannot be started
        """
        async with self._lock:
            if self._session is not None:
                raise TransactionAlreadyInProgressError(
                    context={"collection": self._collection_name}
                )

            try:
                session = await self._client.start_session()
            except PyMongoError as e:
                raise OperationError("start session", e) from e

            try:
                session.start_transaction()
            except PyMongoError as e:
                await session.end_session()
                raise OperationError("start transaction", e) from e

            self._session = session
            self._enter_transaction_context()
            contextual_logger.info(
                "Transaction started", extra={"collection": self._collection_name}
            )

    async def commit_transaction(self) -> None:
        """
        Commit the open transaction and end its session.

        When the commit itself fails the transaction stays open so the
        caller can roll it back.

        Raises:
            NoTransactionInProgressError: If no transaction is open
            OperationError: If the server rejects the commit
        """
        async with self._lock:
            if self._session is None:
                raise NoTransactionInProgressError(context={"collection": self._collection_name})

            try:
                await self._session.commit_transaction()
            except PyMongoError as e:
                raise OperationError("commit transaction", e) from e

            session, self._session = self._session, None
            await session.end_session()
            self._leave_transaction_context()
            contextual_logger.info(
                "Transaction committed", extra={"collection": self._collection_name}
            )

    async def rollback_transaction(self) -> None:
        """
        Abort the open transaction and end its session.

        Does nothing when idle. Abort failures are logged, never raised.
        """
        async with self._lock:
            if self._session is None:
                return

            session, self._session = self._session, None
            try:
                await session.abort_transaction()
            except PyMongoError as e:
                contextual_logger.warning(
                    "Transaction abort failed",
                    extra={"collection": self._collection_name, "error": str(e)},
                    exc_info=True,
                )
            finally:
                try:
                    await session.end_session()
                except PyMongoError as e:
                    logger.warning(f"Failed to end session for '{self._collection_name}': {e}")
                self._leave_transaction_context()
            contextual_logger.info(
                "Transaction rolled back", extra={"collection": self._collection_name}
            )

    def _enter_transaction_context(self) -> None:
        """Expose the collection and transaction state to contextual log records."""
        self._outer_context = get_uow_context()
        context = {
            **(self._outer_context or {}),
            "collection": self._collection_name,
            "in_transaction": True,
        }
        set_uow_context(**context)

    def _leave_transaction_context(self) -> None:
        restore_uow_context(self._outer_context)
        self._outer_context = None

    def _effective_session(self) -> AsyncIOMotorClientSession | None:
        """Session that operations must run in: the transaction's, or none."""
        return self._session

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _storage_errors(self, operation: str) -> Iterator[None]:
        """Translate driver errors into the package's error kinds."""
        context = {"collection": self._collection_name}
        try:
            yield
        except DuplicateKeyError as e:
            key_value = (e.details or {}).get("keyValue") or {}
            field = next(iter(key_value), None)
            raise DuplicateEntityError(
                f"failed to {operation}: duplicate key",
                field=field,
                value=key_value.get(field) if field else None,
                context=context,
            ) from e
        except BulkWriteError as e:
            write_errors = (e.details or {}).get("writeErrors", [])
            if write_errors and all(
                err.get("code") == DUPLICATE_KEY_ERROR_CODE for err in write_errors
            ):
                raise DuplicateEntityError(
                    f"failed to {operation}: duplicate key",
                    context={**context, "duplicates": len(write_errors)},
                ) from e
            raise OperationError(operation, e, context=context) from e
        except PyMongoError as e:
            raise OperationError(operation, e, context=context) from e

    def _not_found(self, error_type: type[EntityNotFoundError] = EntityNotFoundError, **extra: Any):
        return error_type(context={"collection": self._collection_name, **extra})

    @staticmethod
    def _exclusion_filter(identifier: Identifier | None, deleted: bool = False) -> dict[str, Any]:
        """
        Filter from ``identifier`` plus the soft-delete condition.

        The condition is skipped when the identifier already references
        ``deletedAt``.
        """
        query = identifier.to_filter() if identifier is not None else {}
        if identifier is None or not identifier.references(DELETED_AT_FIELD):
            query[DELETED_AT_FIELD] = IS_DELETED if deleted else NOT_DELETED
        return query

    def _to_entity(self, doc: dict[str, Any]) -> T:
        return self._entity_type.from_document(doc)

    def _to_entities(self, docs: Sequence[dict[str, Any]]) -> list[T]:
        return [self._to_entity(doc) for doc in docs]

    @staticmethod
    def _update_document(entity: T) -> dict[str, Any]:
        """``$set`` payload for an entity: no identity, no soft-delete state."""
        doc = entity.to_document(include_id=False)
        doc.pop(DELETED_AT_FIELD, None)
        return doc

    async def _find(self, query: dict[str, Any], operation: str) -> list[T]:
        with self._storage_errors(operation):
            cursor = self.collection.find(query, session=self._effective_session())
            docs = await cursor.to_list(length=None)
        return self._to_entities(docs)

    async def _find_one(self, query: dict[str, Any], operation: str) -> T:
        with self._storage_errors(operation):
            doc = await self.collection.find_one(query, session=self._effective_session())
        if doc is None:
            raise self._not_found()
        return self._to_entity(doc)

    async def _paginate(
        self, query: dict[str, Any], params: QueryParams[T], operation: str
    ) -> tuple[list[T], int]:
        params.validate()
        session = self._effective_session()
        with self._storage_errors(operation):
            total = await self.collection.count_documents(query, session=session)
            cursor = self.collection.find(
                query,
                skip=params.offset,
                limit=params.limit,
                sort=params.sort_spec() or None,
                session=session,
            )
            docs = await cursor.to_list(length=None)
        return self._to_entities(docs), total

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @timed_operation("uow.find_all")
    async def find_all(self, identifier: Identifier | None = None) -> list[T]:
        """All non-deleted entities, optionally narrowed by ``identifier``."""
        return await self._find(self._exclusion_filter(identifier), "find all")

    @timed_operation("uow.find_all_with_pagination")
    async def find_all_with_pagination(self, query: QueryParams[T]) -> tuple[list[T], int]:
        """
        One page of non-deleted entities plus the total match count.

        The count and the page come from two separate queries and may
        disagree under concurrent writes.
        """
        criteria: dict[str, Any] = {DELETED_AT_FIELD: NOT_DELETED}
        if query.filter is not None:
            criteria.update(query.filter.to_filter())
        return await self._paginate(criteria, query, "find with pagination")

    @timed_operation("uow.find_one")
    async def find_one(self, filter: T) -> T:
        """
        First non-deleted entity matching the non-default fields of ``filter``.

        Raises:
            EntityNotFoundError: If nothing matches
        """
        criteria = filter.to_filter()
        criteria[DELETED_AT_FIELD] = NOT_DELETED
        return await self._find_one(criteria, "find one")

    @timed_operation("uow.find_one_by_id")
    async def find_one_by_id(self, id: ObjectId | str) -> T:
        """
        Raises:
            EntityNotFoundError: If no non-deleted entity has this id
            ObjectIdCoercionError: If ``id`` is not a valid ObjectId
        """
        criteria = {ID_FIELD: coerce_object_id(id), DELETED_AT_FIELD: NOT_DELETED}
        return await self._find_one(criteria, "find by id")

    @timed_operation("uow.find_one_by_identifier")
    async def find_one_by_identifier(self, identifier: Identifier) -> T:
        """
        Raises:
            EntityNotFoundError: If nothing matches
        """
        return await self._find_one(self._exclusion_filter(identifier), "find by identifier")

    @timed_operation("uow.resolve_id_by_unique_field")
    async def resolve_id_by_unique_field(self, field: str, value: Any) -> ObjectId:
        """
        Id of the non-deleted entity whose ``field`` equals ``value``.

        Raises:
            EntityNotFoundError: If nothing matches
            ObjectIdCoercionError: If the stored id is not an ObjectId
        """
        with self._storage_errors("resolve id"):
            doc = await self.collection.find_one(
                {field: value, DELETED_AT_FIELD: NOT_DELETED},
                projection={ID_FIELD: 1},
                session=self._effective_session(),
            )
        if doc is None:
            raise self._not_found(field=field)

        found = doc.get(ID_FIELD)
        if not isinstance(found, ObjectId):
            raise ObjectIdCoercionError(
                "invalid ObjectId type", context={"collection": self._collection_name}
            )
        return found

    @timed_operation("uow.count")
    async def count(self, identifier: Identifier | None = None) -> int:
        """Number of non-deleted entities, optionally narrowed by ``identifier``."""
        with self._storage_errors("count documents"):
            return await self.collection.count_documents(
                self._exclusion_filter(identifier), session=self._effective_session()
            )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @timed_operation("uow.insert")
    async def insert(self, entity: T) -> T:
        """
        Insert one entity, stamping timestamps and assigning an id when missing.

        Raises:
            DuplicateEntityError: If a unique index rejects the document
            OperationError: On any other storage failure
        """
        entity.stamp_created(utcnow())
        if entity.id is None:
            entity.id = ObjectId()

        with self._storage_errors("insert"):
            await self.collection.insert_one(
                entity.to_document(), session=self._effective_session()
            )

        logger.debug(f"Inserted {self._entity_type.__name__} with id={entity.id}")
        return entity

    @timed_operation("uow.update")
    async def update(self, identifier: Identifier, entity: T) -> T:
        """
        Replace the fields of the non-deleted entity matched by ``identifier``.

        Returns the document as stored after the update.

        Raises:
            EntityNotFoundError: If nothing matches, including soft-deleted targets
        """
        criteria = identifier.to_filter()
        criteria[DELETED_AT_FIELD] = NOT_DELETED
        entity.touch(utcnow())

        with self._storage_errors("update"):
            updated = await self.collection.find_one_and_update(
                criteria,
                {"$set": self._update_document(entity)},
                return_document=ReturnDocument.AFTER,
                session=self._effective_session(),
            )
        if updated is None:
            raise self._not_found()
        return self._to_entity(updated)

    @timed_operation("uow.delete")
    async def delete(self, identifier: Identifier) -> None:
        """
        Physically remove the document matched by ``identifier``, deleted or not.

        Raises:
            EntityNotFoundError: If nothing was removed
        """
        with self._storage_errors("delete"):
            result = await self.collection.delete_one(
                identifier.to_filter(), session=self._effective_session()
            )
        if result.deleted_count == 0:
            raise self._not_found()

    @timed_operation("uow.soft_delete")
    async def soft_delete(self, identifier: Identifier) -> T:
        """
        Mark the matched non-deleted entity as deleted.

        Raises:
            EntityNotFoundError: If nothing matches or it is already deleted
        """
        criteria = identifier.to_filter()
        criteria[DELETED_AT_FIELD] = NOT_DELETED
        now = utcnow()

        with self._storage_errors("soft delete"):
            updated = await self.collection.find_one_and_update(
                criteria,
                {"$set": {DELETED_AT_FIELD: now, UPDATED_AT_FIELD: now}},
                return_document=ReturnDocument.AFTER,
                session=self._effective_session(),
            )
        if updated is None:
            raise self._not_found()
        return self._to_entity(updated)

    @timed_operation("uow.hard_delete")
    async def hard_delete(self, identifier: Identifier) -> T:
        """
        Remove the matched document regardless of soft-delete state and return it.

        Raises:
            EntityNotFoundError: If nothing matches
        """
        with self._storage_errors("hard delete"):
            removed = await self.collection.find_one_and_delete(
                identifier.to_filter(), session=self._effective_session()
            )
        if removed is None:
            raise self._not_found()
        return self._to_entity(removed)

    # ------------------------------------------------------------------
    # Trash
    # ------------------------------------------------------------------

    @timed_operation("uow.get_trashed")
    async def get_trashed(self) -> list[T]:
        return await self._find({DELETED_AT_FIELD: IS_DELETED}, "get trashed")

    @timed_operation("uow.get_trashed_with_pagination")
    async def get_trashed_with_pagination(self, query: QueryParams[T]) -> tuple[list[T], int]:
        """One page of soft-deleted entities plus the total trashed count."""
        criteria: dict[str, Any] = {}
        if query.filter is not None:
            criteria.update(query.filter.to_filter())
        criteria[DELETED_AT_FIELD] = IS_DELETED
        return await self._paginate(criteria, query, "find trashed with pagination")

    @timed_operation("uow.restore")
    async def restore(self, identifier: Identifier) -> T:
        """
        Clear the deletion mark of the matched soft-deleted entity.

        Raises:
            NotFoundInTrashError: If nothing matches or it is not deleted
        """
        criteria = identifier.to_filter()
        criteria[DELETED_AT_FIELD] = IS_DELETED

        with self._storage_errors("restore"):
            restored = await self.collection.find_one_and_update(
                criteria,
                {"$unset": {DELETED_AT_FIELD: ""}, "$set": {UPDATED_AT_FIELD: utcnow()}},
                return_document=ReturnDocument.AFTER,
                session=self._effective_session(),
            )
        if restored is None:
            raise self._not_found(NotFoundInTrashError)
        return self._to_entity(restored)

    @timed_operation("uow.restore_all")
    async def restore_all(self) -> int:
        """Restore every soft-deleted entity; returns how many were restored."""
        with self._storage_errors("restore all"):
            result = await self.collection.update_many(
                {DELETED_AT_FIELD: IS_DELETED},
                {"$unset": {DELETED_AT_FIELD: ""}, "$set": {UPDATED_AT_FIELD: utcnow()}},
                session=self._effective_session(),
            )
        logger.debug(f"Restored {result.modified_count} '{self._collection_name}' documents")
        return result.modified_count

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    @timed_operation("uow.bulk_insert")
    async def bulk_insert(self, entities: Sequence[T]) -> list[T]:
        """
        Insert many entities in one unordered batch.

        Raises:
            DuplicateEntityError: If every rejected document hit a unique index
            OperationError: On any other storage failure
        """
        if not entities:
            return []

        now = utcnow()
        for entity in entities:
            entity.stamp_created(now)
            if entity.id is None:
                entity.id = ObjectId()

        with self._storage_errors("bulk insert"):
            await self.collection.insert_many(
                [entity.to_document() for entity in entities],
                ordered=False,
                session=self._effective_session(),
            )

        logger.debug(f"Inserted {len(entities)} {self._entity_type.__name__} entities")
        return list(entities)

    @timed_operation("uow.bulk_update")
    async def bulk_update(self, entities: Sequence[T]) -> list[T]:
        """
        Update many non-deleted entities, matched by id, in one unordered batch.

        Updates that did apply stay applied when others fail.

        Raises:
            BulkWriteMismatchError: If fewer documents were modified than requested
        """
        if not entities:
            return []

        now = utcnow()
        requests = []
        for entity in entities:
            entity.touch(now)
            requests.append(
                UpdateOne(
                    {ID_FIELD: entity.id, DELETED_AT_FIELD: NOT_DELETED},
                    {"$set": self._update_document(entity)},
                )
            )

        try:
            result = await self.collection.bulk_write(
                requests, ordered=False, session=self._effective_session()
            )
            modified = result.modified_count
        except BulkWriteError as e:
            # Unordered batch: the failed writes are reported, the rest applied.
            modified = (e.details or {}).get("nModified", 0)
        except PyMongoError as e:
            raise OperationError(
                "bulk update", e, context={"collection": self._collection_name}
            ) from e

        if modified != len(entities):
            contextual_logger.warning(
                "Bulk update modified fewer documents than requested",
                extra={
                    "collection": self._collection_name,
                    "modified": modified,
                    "requested": len(entities),
                },
            )
            raise BulkWriteMismatchError(
                modified,
                len(entities),
                entities=list(entities),
                context={"collection": self._collection_name},
            )
        return list(entities)

    @timed_operation("uow.bulk_soft_delete")
    async def bulk_soft_delete(self, identifiers: Sequence[Identifier]) -> int:
        """Soft-delete one entity per identifier in one unordered batch; returns the count."""
        if not identifiers:
            return 0

        now = utcnow()
        requests = []
        for identifier in identifiers:
            criteria = identifier.to_filter()
            criteria[DELETED_AT_FIELD] = NOT_DELETED
            requests.append(
                UpdateOne(criteria, {"$set": {DELETED_AT_FIELD: now, UPDATED_AT_FIELD: now}})
            )

        with self._storage_errors("bulk soft delete"):
            result = await self.collection.bulk_write(
                requests, ordered=False, session=self._effective_session()
            )
        return result.modified_count

    @timed_operation("uow.bulk_hard_delete")
    async def bulk_hard_delete(self, identifiers: Sequence[Identifier]) -> int:
        """Remove one document per identifier in one unordered batch; returns the count."""
        if not identifiers:
            return 0

        requests = [DeleteOne(identifier.to_filter()) for identifier in identifiers]
        with self._storage_errors("bulk hard delete"):
            result = await self.collection.bulk_write(
                requests, ordered=False, session=self._effective_session()
            )
        return result.deleted_count

    # ------------------------------------------------------------------
    # Indexes and lifecycle
    # ------------------------------------------------------------------

    async def ensure_index(self, keys: Any, **kwargs: Any) -> str:
        """Create an index on the collection if it does not exist; returns its name."""
        with self._storage_errors("create index"):
            return await self.collection.create_index(keys, **kwargs)

    async def close(self) -> None:
        """Roll back any open transaction and close the client if this unit owns it."""
        await self.rollback_transaction()
        if self._owns_client:
            self._client.close()

    async def __aenter__(self) -> "UnitOfWork[T]":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return (
            f"UnitOfWork(entity={self._entity_type.__name__}, "
            f"collection={self._collection_name!r}, in_transaction={self.in_transaction})"
        )

"""
Pytest configuration and shared fixtures for MONGO_UOW tests.

This module provides:
- Mock motor client, session, database and collection fixtures
- Unit of Work fixtures over the mocks
- Testcontainers fixtures (real MongoDB for integration tests)
"""

import os
import uuid
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import PyMongoError

from mongo_uow.config import MongoConfig
from mongo_uow.database import ConnectionManager
from mongo_uow.domain import Product, User
from mongo_uow.observability import clear_correlation_id, clear_uow_context, reset_metrics
from mongo_uow.repositories import UnitOfWork, UnitOfWorkFactory
from mongo_uow.utils import utcnow

MONGO_ENV_VARS = [
    "MONGO_HOST",
    "MONGO_PORT",
    "MONGO_DATABASE",
    "MONGO_USERNAME",
    "MONGO_PASSWORD",
    "MONGO_AUTH_SOURCE",
    "MONGO_MAX_POOL_SIZE",
    "MONGO_MIN_POOL_SIZE",
    "MONGO_MAX_IDLE_TIME",
    "MONGO_TIMEOUT",
    "MONGO_SSL",
    "MONGO_REPLICA_SET",
    "MONGO_DIRECT_CONNECTION",
]


# ============================================================================
# ISOLATION FIXTURES
# ============================================================================


@pytest.fixture(autouse=True)
def clean_mongo_env(monkeypatch):
    """Keep MONGO_* variables from the developer's shell out of the tests."""
    for var in MONGO_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture(autouse=True)
def clean_observability():
    """Reset global metrics and logging context around every test."""
    reset_metrics()
    clear_correlation_id()
    clear_uow_context()
    yield
    reset_metrics()
    clear_correlation_id()
    clear_uow_context()


# ============================================================================
# MOCK MONGODB FIXTURES
# ============================================================================


def make_cursor(docs=None) -> MagicMock:
    """Cursor whose ``to_list`` resolves to ``docs``."""
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=list(docs or []))
    return cursor


@pytest.fixture
def mock_collection() -> MagicMock:
    """Create a mock motor collection with async CRUD methods."""
    collection = MagicMock()
    collection.name = "users"
    collection.find = MagicMock(return_value=make_cursor())
    collection.find_one = AsyncMock(return_value=None)
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.find_one_and_delete = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=ObjectId()))
    collection.insert_many = AsyncMock(return_value=MagicMock(inserted_ids=[]))
    collection.update_many = AsyncMock(return_value=MagicMock(modified_count=0))
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    collection.count_documents = AsyncMock(return_value=0)
    collection.bulk_write = AsyncMock(
        return_value=MagicMock(modified_count=0, deleted_count=0)
    )
    collection.create_index = AsyncMock(return_value="email_1")
    return collection


@pytest.fixture
def mock_database(mock_collection: MagicMock) -> MagicMock:
    """Create a mock database returning ``mock_collection`` for any name."""
    db = MagicMock()
    db.name = "test_db"
    db.__getitem__.return_value = mock_collection
    return db


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock client session."""
    session = MagicMock()
    session.start_transaction = MagicMock()
    session.commit_transaction = AsyncMock()
    session.abort_transaction = AsyncMock()
    session.end_session = AsyncMock()
    return session


@pytest.fixture
def mock_mongo_client(mock_database: MagicMock, mock_session: MagicMock) -> MagicMock:
    """Create a mock motor client."""
    client = MagicMock()
    client.admin = MagicMock()
    client.admin.command = AsyncMock(return_value={"ok": 1})
    client.start_session = AsyncMock(return_value=mock_session)
    client.close = MagicMock()
    client.__getitem__ = MagicMock(return_value=mock_database)
    return client


@pytest.fixture
def user_uow(mock_mongo_client: MagicMock, mock_database: MagicMock) -> UnitOfWork[User]:
    """Unit of Work for users over the mock client."""
    return UnitOfWork(mock_mongo_client, mock_database, User)


# ============================================================================
# TEST DATA FIXTURES
# ============================================================================


@pytest.fixture
def user_document() -> Dict[str, Any]:
    """A stored, non-deleted user document."""
    now = utcnow()
    return {
        "_id": ObjectId(),
        "slug": "user-alice@example.com",
        "name": "User_alice@example.com",
        "createdAt": now,
        "updatedAt": now,
        "email": "alice@example.com",
        "age": 30,
        "active": True,
    }


@pytest.fixture
def mongo_config() -> MongoConfig:
    """Valid configuration pointing at a local server."""
    return MongoConfig(host="localhost", port=27017, database="test_db")


# ============================================================================
# TESTCONTAINERS FIXTURES (Real MongoDB for Integration Tests)
# ============================================================================


@pytest.fixture(scope="session")
def mongodb_container():
    """
    Start MongoDB Atlas Local container for integration tests.

    The image runs a single-node replica set, so transactions work.
    Session-scoped: container starts once and is reused for all integration tests.
    """
    try:
        from testcontainers.mongodb import MongoDbContainer
    except ImportError:
        pytest.skip("testcontainers not installed. Install with: pip install -e '.[test]'")

    with MongoDbContainer(image="mongodb/mongodb-atlas-local:latest") as container:
        yield container


@pytest.fixture
def real_mongo_config(mongodb_container) -> MongoConfig:
    """
    Configuration for the test container with a unique database per test.

    Atlas Local containers need localhost with the exposed port and a
    direct connection.
    """
    exposed_port = int(mongodb_container.get_exposed_port(27017))
    return MongoConfig(
        host="localhost",
        port=exposed_port,
        database=f"test_db_{os.getpid()}_{uuid.uuid4().hex[:8]}",
        direct_connection=True,
        min_pool_size=1,
        max_pool_size=5,
    )


@pytest.fixture
async def real_connection(real_mongo_config: MongoConfig):
    """
    Initialized connection manager for the container.

    Drops the test database and shuts the connection down afterwards.
    """
    connection = ConnectionManager(real_mongo_config)
    await connection.initialize()

    yield connection

    try:
        await connection.client.drop_database(real_mongo_config.database)
    except PyMongoError:
        pass  # Ignore cleanup errors
    await connection.shutdown()


@pytest.fixture
def user_factory(real_connection: ConnectionManager) -> UnitOfWorkFactory[User]:
    return UnitOfWorkFactory(User, connection=real_connection)


@pytest.fixture
def product_factory(real_connection: ConnectionManager) -> UnitOfWorkFactory[Product]:
    return UnitOfWorkFactory(Product, connection=real_connection)

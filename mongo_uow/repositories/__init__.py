"""
MONGO_UOW Repository Pattern

Provides the Unit of Work, its factory, the generic repository interface
with its factory-backed implementation, and the example User/Product
repositories.

Usage:
    from mongo_uow.repositories import UnitOfWorkFactory, UserRepository

    factory = UnitOfWorkFactory(User, MongoConfig(database="shop"))
    users = UserRepository(factory)

    user = await users.find_by_email("alice@example.com")

    # Multi-step transactional work
    async with users.transaction() as uow:
        await uow.insert(bob)
        await uow.soft_delete(by_id(user.id))
"""

from .base import BaseRepository, Repository
from .factory import UnitOfWorkFactory
from .products import ProductRepository
from .unit_of_work import UnitOfWork
from .users import UserRepository

__all__ = [
    "Repository",
    "BaseRepository",
    "UnitOfWork",
    "UnitOfWorkFactory",
    "UserRepository",
    "ProductRepository",
]

"""
MONGO_UOW - MongoDB Unit of Work

Transactional data access for MongoDB: a filter builder, a Unit of Work
per entity collection with soft delete and bulk writes, a factory, generic
repositories and an example service layer.
"""

# Configuration
from .config import MongoConfig
# Database layer
from .database import ConnectionManager
# Domain
from .domain import BaseEntity, Product, QueryParams, SortDirection, User
# Errors
from .exceptions import (BulkWriteMismatchError, ConfigurationError,
                         DatabaseConnectionError, DuplicateEntityError,
                         EntityNotFoundError, ErrorKind,
                         NoTransactionInProgressError, NotFoundInTrashError,
                         ObjectIdCoercionError, OperationError,
                         TransactionAlreadyInProgressError, UnitOfWorkError,
                         ValidationError)
# Filters
from .identifier import Identifier
# Repositories
from .repositories import (BaseRepository, ProductRepository, Repository,
                           UnitOfWork, UnitOfWorkFactory, UserRepository)
# Services
from .services import ProductService, UserService

__version__ = "0.1.0"

__all__ = [
    # Config
    "MongoConfig",
    "ConnectionManager",
    # Domain
    "BaseEntity",
    "QueryParams",
    "SortDirection",
    "User",
    "Product",
    # Filters
    "Identifier",
    # Unit of Work / repositories
    "UnitOfWork",
    "UnitOfWorkFactory",
    "Repository",
    "BaseRepository",
    "UserRepository",
    "ProductRepository",
    # Services
    "UserService",
    "ProductService",
    # Errors
    "ErrorKind",
    "UnitOfWorkError",
    "ConfigurationError",
    "DatabaseConnectionError",
    "TransactionAlreadyInProgressError",
    "NoTransactionInProgressError",
    "EntityNotFoundError",
    "NotFoundInTrashError",
    "DuplicateEntityError",
    "ValidationError",
    "BulkWriteMismatchError",
    "ObjectIdCoercionError",
    "OperationError",
]

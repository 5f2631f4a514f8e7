"""
Custom exceptions for MONGO_UOW.

Every error raised by the data-access layer derives from UnitOfWorkError,
which stays a RuntimeError and carries a structured ``kind`` so callers can
branch on the failure without matching message text.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Structured error kinds surfaced by the data-access layer."""

    CONFIG_INVALID = "config_invalid"
    CONNECTION_FAILED = "connection_failed"
    TRANSACTION_ALREADY_IN_PROGRESS = "transaction_already_in_progress"
    NO_TRANSACTION_IN_PROGRESS = "no_transaction_in_progress"
    NOT_FOUND = "not_found"
    NOT_FOUND_IN_TRASH = "not_found_in_trash"
    DUPLICATE_ENTITY = "duplicate_entity"
    VALIDATION_FAILED = "validation_failed"
    BULK_PARTIAL_MISMATCH = "bulk_partial_mismatch"
    TYPE_COERCION_FAILED = "type_coercion_failed"
    OPERATION_FAILED = "operation_failed"


class UnitOfWorkError(RuntimeError):
    """
    Base exception for MONGO_UOW errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (collection,
                 operation, etc.)
        kind: Structured error kind
    """

    kind: ErrorKind = ErrorKind.OPERATION_FAILED

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            context: Optional dictionary with additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class ConfigurationError(UnitOfWorkError):
    """
    Raised when connection configuration is invalid.

    Attributes:
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
    """

    kind = ErrorKind.CONFIG_INVALID

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value


class DatabaseConnectionError(UnitOfWorkError):
    """
    Raised when the MongoDB client cannot be created or does not answer a ping.

    Attributes:
        mongo_uri: Redacted connection URI (if available)
        db_name: Database name (if available)
    """

    kind = ErrorKind.CONNECTION_FAILED

    def __init__(
        self,
        message: str,
        mongo_uri: Optional[str] = None,
        db_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if mongo_uri:
            context["mongo_uri"] = mongo_uri
        if db_name:
            context["db_name"] = db_name
        super().__init__(message, context=context)
        self.mongo_uri = mongo_uri
        self.db_name = db_name


class TransactionAlreadyInProgressError(UnitOfWorkError):
    """Raised by begin_transaction when a transaction is already open."""

    kind = ErrorKind.TRANSACTION_ALREADY_IN_PROGRESS

    def __init__(self, message: str = "transaction already in progress", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class NoTransactionInProgressError(UnitOfWorkError):
    """Raised by commit_transaction when no transaction is open."""

    kind = ErrorKind.NO_TRANSACTION_IN_PROGRESS

    def __init__(self, message: str = "no transaction in progress", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class EntityNotFoundError(UnitOfWorkError):
    """Raised when a single-target read, update or delete matches nothing."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str = "entity not found", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class NotFoundInTrashError(EntityNotFoundError):
    """Raised when a restore target is missing or not soft-deleted."""

    kind = ErrorKind.NOT_FOUND_IN_TRASH

    def __init__(self, message: str = "entity not found in trash", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class DuplicateEntityError(UnitOfWorkError):
    """
    Raised when an insert would duplicate a unique value.

    Attributes:
        field: Name of the unique field (if known)
        value: Offending value (if known)
    """

    kind = ErrorKind.DUPLICATE_ENTITY

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if field:
            context["field"] = field
        super().__init__(message, context=context)
        self.field = field
        self.value = value


class ValidationError(UnitOfWorkError):
    """
    Raised by the service layer when input fails business validation.

    Attributes:
        field: Name of the offending input (if available)
    """

    kind = ErrorKind.VALIDATION_FAILED

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, context=context)
        self.field = field


class BulkWriteMismatchError(UnitOfWorkError):
    """
    Raised when a bulk update modifies fewer documents than requested.

    Changes already applied by the batch are not rolled back.

    Attributes:
        modified: Number of documents the server reported as modified
        requested: Number of updates that were sent
        entities: Entities that were part of the batch
    """

    kind = ErrorKind.BULK_PARTIAL_MISMATCH

    def __init__(
        self,
        modified: int,
        requested: int,
        entities: Optional[list] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        message = (
            f"not all entities were updated: modified {modified} out of {requested}"
        )
        super().__init__(message, context=context)
        self.modified = modified
        self.requested = requested
        self.entities = entities or []


class ObjectIdCoercionError(UnitOfWorkError, TypeError):
    """Raised when an identifier value cannot be converted to an ObjectId."""

    kind = ErrorKind.TYPE_COERCION_FAILED


class OperationError(UnitOfWorkError):
    """
    Raised when a storage-layer call fails.

    The message is prefixed with the failing operation, for example
    ``failed to insert: <driver error>``; the driver error is chained.

    Attributes:
        operation: Name of the failing operation
    """

    kind = ErrorKind.OPERATION_FAILED

    def __init__(
        self,
        operation: str,
        error: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        message = f"failed to {operation}"
        if error is not None:
            message = f"{message}: {error}"
        super().__init__(message, context=context)
        self.operation = operation

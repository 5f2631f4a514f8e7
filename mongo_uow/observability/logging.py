"""
Enhanced logging utilities for MONGO_UOW.

Provides structured logging with correlation IDs and unit-of-work context.
"""

import contextvars
import logging
import uuid
from datetime import datetime
from typing import Any

# Context variable for correlation ID
_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)

# Context variable for unit-of-work context (collection, transaction state, ...)
_uow_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "uow_context", default=None
)


def get_correlation_id() -> str | None:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Set a correlation ID in the current context.

    Args:
        correlation_id: Optional correlation ID (generates new one if None)

    Returns:
        The correlation ID that was set
    """
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
    _correlation_id.set(correlation_id)
    return correlation_id


def clear_correlation_id() -> None:
    """Clear the correlation ID from context."""
    _correlation_id.set(None)


def set_uow_context(collection: str | None = None, **kwargs: Any) -> None:
    """
    Set unit-of-work context for logging.

    Args:
        collection: Collection the current unit of work operates on
        **kwargs: Additional context (entity, in_transaction, ...)
    """
    context = {"collection": collection, **kwargs}
    _uow_context.set(context)


def clear_uow_context() -> None:
    """Clear unit-of-work context."""
    _uow_context.set(None)


def get_uow_context() -> dict[str, Any] | None:
    """Copy of the current unit-of-work context, or None when unset."""
    context = _uow_context.get()
    return dict(context) if context is not None else None


def restore_uow_context(context: dict[str, Any] | None) -> None:
    """Put back a context previously returned by ``get_uow_context``."""
    _uow_context.set(dict(context) if context is not None else None)


def get_logging_context() -> dict[str, Any]:
    """
    Get current logging context (correlation ID and unit-of-work context).

    Returns:
        Dictionary with context information
    """
    context: dict[str, Any] = {
        "timestamp": datetime.now().isoformat(),
    }

    correlation_id = get_correlation_id()
    if correlation_id:
        context["correlation_id"] = correlation_id

    uow_context = _uow_context.get()
    if uow_context:
        context.update(uow_context)

    return context


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that automatically adds context to log records.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        """Add context to log records."""
        context = get_logging_context()

        extra = kwargs.get("extra", {})
        if extra:
            context.update(extra)

        kwargs["extra"] = context
        return msg, kwargs


def get_logger(name: str) -> ContextualLoggerAdapter:
    """
    Get a contextual logger that automatically adds correlation ID and context.

    Args:
        name: Logger name (typically __name__)

    Returns:
        ContextualLoggerAdapter instance
    """
    base_logger = logging.getLogger(name)
    return ContextualLoggerAdapter(base_logger, {})


def log_operation(
    logger: logging.Logger | logging.LoggerAdapter,
    operation: str,
    level: int = logging.DEBUG,
    success: bool = True,
    duration_ms: float | None = None,
    **context: Any,
) -> None:
    """
    Log an operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name
        level: Log level
        success: Whether operation succeeded
        duration_ms: Operation duration in milliseconds
        **context: Additional context
    """
    log_context = get_logging_context()
    log_context.update(
        {
            "operation": operation,
            "success": success,
        }
    )

    if duration_ms is not None:
        log_context["duration_ms"] = round(duration_ms, 2)

    if context:
        log_context.update(context)

    message = f"Operation: {operation}"
    if not success:
        message = f"Operation failed: {operation}"
    if duration_ms is not None:
        message += f" (duration: {duration_ms:.2f}ms)"

    logger.log(level, message, extra=log_context)

"""
Observability components.

Provides structured logging and in-process metrics collection.
"""

from .logging import (
    ContextualLoggerAdapter,
    clear_correlation_id,
    clear_uow_context,
    get_correlation_id,
    get_logger,
    get_logging_context,
    get_uow_context,
    log_operation,
    restore_uow_context,
    set_correlation_id,
    set_uow_context,
)
from .metrics import (
    MetricsCollector,
    OperationMetrics,
    get_metrics_collector,
    record_operation,
    reset_metrics,
    timed_operation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "OperationMetrics",
    "get_metrics_collector",
    "record_operation",
    "reset_metrics",
    "timed_operation",
    # Logging
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "set_uow_context",
    "clear_uow_context",
    "get_uow_context",
    "restore_uow_context",
    "get_logging_context",
    "ContextualLoggerAdapter",
    "get_logger",
    "log_operation",
]

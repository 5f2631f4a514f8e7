"""
Constants for MONGO_UOW.

This module contains all shared constants used across the codebase to avoid
magic numbers and improve maintainability.
"""

from typing import Final

# ============================================================================
# CONNECTION CONSTANTS
# ============================================================================

DEFAULT_SCHEME: Final[str] = "mongodb"
"""URI scheme used when building connection strings."""

DEFAULT_HOST: Final[str] = "localhost"
"""Default MongoDB host."""

DEFAULT_PORT: Final[int] = 27017
"""Default MongoDB port."""

DEFAULT_DATABASE: Final[str] = "test"
"""Default database name."""

DEFAULT_AUTH_SOURCE: Final[str] = "admin"
"""Default authentication database."""

DEFAULT_MAX_POOL_SIZE: Final[int] = 100
"""Default maximum MongoDB connection pool size."""

DEFAULT_MIN_POOL_SIZE: Final[int] = 5
"""Default minimum MongoDB connection pool size."""

DEFAULT_MAX_IDLE_TIME: Final[float] = 30.0
"""Default maximum idle time before closing pooled connections (seconds)."""

DEFAULT_TIMEOUT: Final[float] = 10.0
"""Default timeout for connection establishment and server selection (seconds)."""

MIN_PORT: Final[int] = 1
MAX_PORT: Final[int] = 65535

APP_NAME: Final[str] = "MONGO_UOW"
"""Application name reported to the server."""

# ============================================================================
# DOCUMENT FIELD CONSTANTS
# ============================================================================

ID_FIELD: Final[str] = "_id"
SLUG_FIELD: Final[str] = "slug"
CREATED_AT_FIELD: Final[str] = "createdAt"
UPDATED_AT_FIELD: Final[str] = "updatedAt"
DELETED_AT_FIELD: Final[str] = "deletedAt"
"""Presence of this field marks a document as soft-deleted."""

# ============================================================================
# PAGINATION CONSTANTS
# ============================================================================

DEFAULT_PAGE_SIZE: Final[int] = 10
"""Default page size, also used when a negative limit is supplied."""

MAX_PAGE_SIZE: Final[int] = 1000
"""Largest page a single paginated query may return."""

# ============================================================================
# SERVER ERROR CODES
# ============================================================================

DUPLICATE_KEY_ERROR_CODE: Final[int] = 11000
"""Server error code for unique index violations."""

# ============================================================================
# SERVICE VALIDATION CONSTANTS
# ============================================================================

MIN_USER_AGE: Final[int] = 0
MAX_USER_AGE: Final[int] = 150

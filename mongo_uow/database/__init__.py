"""
Database access layer.

Provides MongoDB client creation and connection lifecycle management.
"""

from .connection import ConnectionManager, connect, create_client, ping

__all__ = [
    "ConnectionManager",
    "connect",
    "create_client",
    "ping",
]

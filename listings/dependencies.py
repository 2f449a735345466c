"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from listings.config import get_settings
from listings.db import MemStorage, MongoConnection, MongoStorage
from listings.storage import HybridStorage

_connection: MongoConnection | None = None
_storage: HybridStorage | None = None


def get_connection() -> MongoConnection | None:
    """
    Return the shared MongoDB connection, or None in memory-only mode.
    """
    global _connection
    if _connection:
        return _connection

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.mongodb_url:
        return None
    _connection = MongoConnection(
        settings.mongodb_url,
        settings.mongodb_database,
        timeout_ms=settings.mongodb_timeout_ms,
    )
    return _connection


def get_storage() -> HybridStorage:
    """
    Return a singleton facade so in-memory records persist across requests.
    """
    global _storage
    if _storage:
        return _storage

    connection = get_connection()
    if connection is None:
        _storage = HybridStorage(MemStorage())
    else:
        _storage = HybridStorage(
            MemStorage(),
            MongoStorage(connection.database),
            is_persistent_ready=connection.is_ready,
        )
    return _storage


def close_connection() -> None:
    """Close the MongoDB client and drop the facade that used it."""
    global _connection, _storage
    if _connection:
        _connection.close()
        _connection = None
    _storage = None

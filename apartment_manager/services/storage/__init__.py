"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements SQLite as the backend, but designed to be swappable.
"""

from apartment_manager.services.storage.interface import (
    ConnectionError,
    CredentialStorageInterface,
    DuplicateError,
    NotFoundError,
    OccupancyStorageInterface,
    StorageError,
)
from apartment_manager.services.storage.sqlite import (
    SQLiteClient,
    SQLiteCredentialStorage,
    SQLiteOccupancyStorage,
)

__all__ = [
    # Interfaces
    "CredentialStorageInterface",
    "OccupancyStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # SQLite implementation
    "SQLiteClient",
    "SQLiteCredentialStorage",
    "SQLiteOccupancyStorage",
]

"""Services package."""

from apartment_manager.services.storage import (
    ConnectionError,
    CredentialStorageInterface,
    DuplicateError,
    NotFoundError,
    OccupancyStorageInterface,
    SQLiteClient,
    SQLiteCredentialStorage,
    SQLiteOccupancyStorage,
    StorageError,
)
from apartment_manager.services.transfer import (
    BulkTransferEngine,
    MalformedRowError,
    TransferError,
    UnsupportedFormatError,
)

__all__ = [
    # Storage services
    "ConnectionError",
    "CredentialStorageInterface",
    "DuplicateError",
    "NotFoundError",
    "OccupancyStorageInterface",
    "SQLiteClient",
    "SQLiteCredentialStorage",
    "SQLiteOccupancyStorage",
    "StorageError",
    # Transfer services
    "BulkTransferEngine",
    "MalformedRowError",
    "TransferError",
    "UnsupportedFormatError",
]

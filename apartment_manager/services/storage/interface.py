"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep flows and the transfer engine independent of SQLite
2. Swap in another embedded store later
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Just the operations the apartment and user managers need.

All operations are synchronous and immediately durable unless they run
inside a transaction opened by the caller.
"""

from abc import ABC, abstractmethod
from typing import Iterator, Optional

from apartment_manager.models.occupancy import Credential, OccupancyRecord


class OccupancyStorageInterface(ABC):
    """
    Abstract interface for apartment occupancy storage.

    Records are keyed by unit id and enumerated in a stable order
    (insertion order) by zero-based offset.
    """

    @abstractmethod
    def upsert(self, record: OccupancyRecord) -> OccupancyRecord:
        """
        Insert the record, or replace owner/resident/flag if the unit exists.

        Args:
            record: The record to store

        Returns:
            The record as persisted (flag re-derived from owner/resident)

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, unit_id: str) -> bool:
        """
        Delete a unit. Deleting a missing unit is not an error.

        Returns:
            True if a row was removed
        """
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of stored units."""
        pass

    @abstractmethod
    def get_at(self, offset: int) -> Optional[OccupancyRecord]:
        """
        Record at a zero-based position in enumeration order.

        Returns:
            The record, or None when the offset is out of range
        """
        pass

    @abstractmethod
    def get(self, unit_id: str) -> Optional[OccupancyRecord]:
        """Lookup by unit id, None if absent."""
        pass

    @abstractmethod
    def list_all(self) -> list[OccupancyRecord]:
        """All records in enumeration order."""
        pass

    @abstractmethod
    def iter_all(self) -> Iterator[OccupancyRecord]:
        """
        Stream all records in enumeration order without loading the table.

        Close the iterator (or exhaust it) to release the store.

        Raises:
            StorageError: If reading fails, possibly after some records
        """
        pass


class CredentialStorageInterface(ABC):
    """
    Abstract interface for user account storage.

    Usernames are unique; the store assigns ids on insert.
    """

    @abstractmethod
    def save(self, credential: Credential) -> Credential:
        """
        Insert (id == 0) or update (id != 0) a credential.

        Returns:
            The credential with its store-assigned id

        Raises:
            DuplicateError: If the username is already taken
            NotFoundError: If updating an id that doesn't exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, credential_id: int) -> bool:
        """Delete by id. Deleting a missing id is not an error."""
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def get_at(self, offset: int) -> Optional[Credential]:
        """Credential at a zero-based position (ordered by id), or None."""
        pass

    @abstractmethod
    def find_password(self, username: str) -> Optional[str]:
        """
        Stored password for a username.

        Used only by authentication.

        Returns:
            The password, or None if no such user
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not open the storage backend."""
    pass

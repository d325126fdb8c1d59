"""
SQLite Storage Implementation

DESIGN DECISION: Two local SQLite files, one per collection:
- app.db       -> users(id, username, password)
- resident.db  -> apartments(id, owner, resident, same_flag)

Connections run in autocommit mode, so a single-row write is durable as
soon as it returns. Bulk loads open an explicit transaction through
`SQLiteClient.transaction()`; every statement issued inside it joins the
transaction and is committed or rolled back as a whole.

TRADEOFFS:
- One writer at a time. A re-entrant lock serialises all access, which is
  enough for a desktop-style shell and keeps an import from interleaving
  with a manual save.
- No migrations: tables are created if missing and otherwise trusted.

The implementation follows the abstract interface, so the flows never
import sqlite3.
"""

import sqlite3
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog

from apartment_manager.config import DatabaseSettings, get_settings
from apartment_manager.models.occupancy import (
    Credential,
    OccupancyRecord,
    derive_same_flag,
)
from apartment_manager.services.storage.interface import (
    ConnectionError,
    CredentialStorageInterface,
    DuplicateError,
    NotFoundError,
    OccupancyStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


USERS_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    "id" INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT,
    "username" TEXT UNIQUE,
    "password" TEXT
);
"""

APARTMENTS_SCHEMA = """
CREATE TABLE IF NOT EXISTS apartments (
    "id" TEXT PRIMARY KEY,
    "owner" TEXT NOT NULL,
    "resident" TEXT NOT NULL,
    "same_flag" INTEGER NOT NULL
);
"""


class SQLiteClient:
    """
    Owns the two SQLite connections.

    Constructed once at startup and closed at shutdown. Both storages share
    one client, and therefore one lock.
    """

    def __init__(self, settings: Optional[DatabaseSettings] = None):
        self._settings = settings or get_settings().database
        self._users: Optional[sqlite3.Connection] = None
        self._apartments: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()
        self._in_transaction = False

    @staticmethod
    def _open(path: str, schema: str) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(
                path,
                isolation_level=None,
                check_same_thread=False,
            )
            conn.row_factory = sqlite3.Row
            conn.executescript(schema)
        except sqlite3.Error as e:
            raise ConnectionError(f"Failed to open database {path}: {e}") from e
        return conn

    def connect(self) -> None:
        """Open both databases and create missing tables."""
        with self._lock:
            if self._users is None:
                self._users = self._open(self._settings.user_db_path, USERS_SCHEMA)
            if self._apartments is None:
                self._apartments = self._open(
                    self._settings.apartment_db_path, APARTMENTS_SCHEMA
                )
            logger.info(
                "databases_initialized",
                user_db=self._settings.user_db_path,
                apartment_db=self._settings.apartment_db_path,
            )

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def users(self) -> sqlite3.Connection:
        if self._users is None:
            self.connect()
        return self._users

    @property
    def apartments(self) -> sqlite3.Connection:
        if self._apartments is None:
            self.connect()
        return self._apartments

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        All-or-nothing block on the apartments database.

        Commits when the block exits normally. Any exception rolls back
        every statement issued inside the block and is re-raised.
        """
        with self._lock:
            conn = self.apartments
            if self._in_transaction:
                raise StorageError("A transaction is already open")
            try:
                conn.execute("BEGIN")
            except sqlite3.Error as e:
                raise StorageError(f"Failed to begin transaction: {e}") from e

            self._in_transaction = True
            try:
                yield conn
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                logger.warning("transaction_rolled_back")
                raise
            else:
                try:
                    conn.execute("COMMIT")
                except sqlite3.Error as e:
                    if conn.in_transaction:
                        conn.execute("ROLLBACK")
                    raise StorageError(f"Failed to commit transaction: {e}") from e
            finally:
                self._in_transaction = False

    def close(self) -> None:
        """Close both connections. Safe to call more than once."""
        with self._lock:
            for conn in (self._users, self._apartments):
                if conn is not None:
                    conn.close()
            self._users = None
            self._apartments = None


class SQLiteOccupancyStorage(OccupancyStorageInterface):
    """
    SQLite implementation of apartment storage.

    Enumeration order is rowid order. Upserts update in place, so a
    replaced unit keeps its position in the list.
    """

    def __init__(self, client: SQLiteClient):
        self._client = client

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> OccupancyRecord:
        return OccupancyRecord(
            unit_id=row["id"],
            owner=row["owner"],
            resident=row["resident"],
            owner_is_resident=row["same_flag"] == 1,
        )

    def upsert(self, record: OccupancyRecord) -> OccupancyRecord:
        """Insert or replace a unit, re-deriving the flag before writing."""
        same = derive_same_flag(record.owner, record.resident)
        with self._client.lock:
            try:
                self._client.apartments.execute(
                    """
                    INSERT INTO apartments (id, owner, resident, same_flag)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        owner=excluded.owner,
                        resident=excluded.resident,
                        same_flag=excluded.same_flag
                    """,
                    (record.unit_id, record.owner, record.resident, int(same)),
                )
            except sqlite3.Error as e:
                raise StorageError(f"Failed to save apartment {record.unit_id}: {e}") from e

        if same != record.owner_is_resident:
            record = record.model_copy(update={"owner_is_resident": same})
        return record

    def delete(self, unit_id: str) -> bool:
        with self._client.lock:
            try:
                cursor = self._client.apartments.execute(
                    "DELETE FROM apartments WHERE id = ?", (unit_id,)
                )
            except sqlite3.Error as e:
                raise StorageError(f"Failed to delete apartment {unit_id}: {e}") from e
        return cursor.rowcount > 0

    def count(self) -> int:
        with self._client.lock:
            try:
                row = self._client.apartments.execute(
                    "SELECT COUNT(*) AS n FROM apartments"
                ).fetchone()
            except sqlite3.Error as e:
                raise StorageError(f"Failed to count apartments: {e}") from e
        return int(row["n"])

    def get_at(self, offset: int) -> Optional[OccupancyRecord]:
        if offset < 0:
            return None
        with self._client.lock:
            try:
                row = self._client.apartments.execute(
                    """
                    SELECT id, owner, resident, same_flag FROM apartments
                    ORDER BY rowid LIMIT 1 OFFSET ?
                    """,
                    (offset,),
                ).fetchone()
            except sqlite3.Error as e:
                raise StorageError(f"Failed to read apartment at {offset}: {e}") from e
        if row is None:
            return None
        return self._row_to_record(row)

    def get(self, unit_id: str) -> Optional[OccupancyRecord]:
        with self._client.lock:
            try:
                row = self._client.apartments.execute(
                    "SELECT id, owner, resident, same_flag FROM apartments WHERE id = ?",
                    (unit_id,),
                ).fetchone()
            except sqlite3.Error as e:
                raise StorageError(f"Failed to read apartment {unit_id}: {e}") from e
        if row is None:
            return None
        return self._row_to_record(row)

    def list_all(self) -> list[OccupancyRecord]:
        with self._client.lock:
            try:
                rows = self._client.apartments.execute(
                    "SELECT id, owner, resident, same_flag FROM apartments ORDER BY rowid"
                ).fetchall()
            except sqlite3.Error as e:
                raise StorageError(f"Failed to list apartments: {e}") from e
        return [self._row_to_record(row) for row in rows]

    def iter_all(self) -> Iterator[OccupancyRecord]:
        """
        Yield records straight off a cursor, in rowid order.

        The client lock is held until the generator is exhausted or closed.
        """
        with self._client.lock:
            try:
                cursor = self._client.apartments.execute(
                    "SELECT id, owner, resident, same_flag FROM apartments ORDER BY rowid"
                )
            except sqlite3.Error as e:
                raise StorageError(f"Failed to list apartments: {e}") from e

            try:
                while True:
                    try:
                        row = cursor.fetchone()
                    except sqlite3.Error as e:
                        raise StorageError(f"Failed to read apartments: {e}") from e
                    if row is None:
                        break
                    yield self._row_to_record(row)
            finally:
                cursor.close()


class SQLiteCredentialStorage(CredentialStorageInterface):
    """SQLite implementation of user account storage."""

    def __init__(self, client: SQLiteClient):
        self._client = client

    @staticmethod
    def _row_to_credential(row: sqlite3.Row) -> Credential:
        return Credential(
            id=int(row["id"]),
            username=row["username"],
            password=row["password"],
        )

    def save(self, credential: Credential) -> Credential:
        """Insert when id is 0, otherwise update the row with that id."""
        with self._client.lock:
            conn = self._client.users
            try:
                if credential.is_new:
                    cursor = conn.execute(
                        "INSERT INTO users (username, password) VALUES (?, ?)",
                        (credential.username, credential.password),
                    )
                    return credential.model_copy(update={"id": int(cursor.lastrowid)})

                cursor = conn.execute(
                    "UPDATE users SET username = ?, password = ? WHERE id = ?",
                    (credential.username, credential.password, credential.id),
                )
            except sqlite3.IntegrityError as e:
                raise DuplicateError(
                    f"Username already exists: {credential.username}"
                ) from e
            except sqlite3.Error as e:
                raise StorageError(f"Failed to save user: {e}") from e

        if cursor.rowcount == 0:
            raise NotFoundError(f"User not found: {credential.id}")
        return credential

    def delete(self, credential_id: int) -> bool:
        with self._client.lock:
            try:
                cursor = self._client.users.execute(
                    "DELETE FROM users WHERE id = ?", (credential_id,)
                )
            except sqlite3.Error as e:
                raise StorageError(f"Failed to delete user {credential_id}: {e}") from e
        return cursor.rowcount > 0

    def count(self) -> int:
        with self._client.lock:
            try:
                row = self._client.users.execute(
                    "SELECT COUNT(*) AS n FROM users"
                ).fetchone()
            except sqlite3.Error as e:
                raise StorageError(f"Failed to count users: {e}") from e
        return int(row["n"])

    def get_at(self, offset: int) -> Optional[Credential]:
        if offset < 0:
            return None
        with self._client.lock:
            try:
                row = self._client.users.execute(
                    "SELECT id, username, password FROM users ORDER BY id LIMIT 1 OFFSET ?",
                    (offset,),
                ).fetchone()
            except sqlite3.Error as e:
                raise StorageError(f"Failed to read user at {offset}: {e}") from e
        if row is None:
            return None
        return self._row_to_credential(row)

    def find_password(self, username: str) -> Optional[str]:
        with self._client.lock:
            try:
                row = self._client.users.execute(
                    "SELECT password FROM users WHERE username = ?", (username,)
                ).fetchone()
            except sqlite3.Error as e:
                raise StorageError(f"Failed to look up user: {e}") from e
        if row is None:
            return None
        return row["password"]

"""Shared fixtures: every test gets its own pair of SQLite files."""

import pytest

from apartment_manager.audit import AuditLogger
from apartment_manager.config import DatabaseSettings
from apartment_manager.orchestrator import ApartmentFlow, UserFlow
from apartment_manager.services.storage import (
    SQLiteClient,
    SQLiteCredentialStorage,
    SQLiteOccupancyStorage,
)
from apartment_manager.services.transfer import BulkTransferEngine


def make_settings(directory) -> DatabaseSettings:
    directory.mkdir(parents=True, exist_ok=True)
    return DatabaseSettings(
        user_db_path=str(directory / "app.db"),
        apartment_db_path=str(directory / "resident.db"),
    )


@pytest.fixture
def db_settings(tmp_path):
    return make_settings(tmp_path / "db")


@pytest.fixture
def client(db_settings):
    client = SQLiteClient(db_settings)
    client.connect()
    yield client
    client.close()


@pytest.fixture
def other_client(tmp_path):
    """A second, empty store (e.g. the target of a round trip)."""
    client = SQLiteClient(make_settings(tmp_path / "other"))
    client.connect()
    yield client
    client.close()


@pytest.fixture
def occupancy_storage(client):
    return SQLiteOccupancyStorage(client)


@pytest.fixture
def credential_storage(client):
    return SQLiteCredentialStorage(client)


@pytest.fixture
def engine(occupancy_storage, client):
    return BulkTransferEngine(occupancy_storage, client)


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def apartment_flow(occupancy_storage, engine, audit_logger):
    return ApartmentFlow(
        occupancy_storage=occupancy_storage,
        transfer_engine=engine,
        audit_logger=audit_logger,
    )


@pytest.fixture
def user_flow(credential_storage, audit_logger):
    return UserFlow(
        credential_storage=credential_storage,
        audit_logger=audit_logger,
    )

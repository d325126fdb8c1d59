"""
Main Orchestrator for Apartment Manager

This module ties together all the components and defines the flows the
shell calls:
1. Users (login, add/edit/delete accounts)
2. Apartments (save/delete/list, import, export)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Form input is validated before anything touches storage
- Every apartment write goes through the reconciler
- Every write and login attempt is audited

The shell owns all widgets and callbacks. Flows are plain synchronous
calls that either return a result or raise.
"""

from typing import Optional
from uuid import UUID

from apartment_manager.audit import (
    AuditLogger,
    configure_logging,
    create_correlation_id,
)
from apartment_manager.config import Settings, get_settings
from apartment_manager.models.occupancy import (
    Credential,
    ExportSummary,
    ImportSummary,
    OccupancyRecord,
)
from apartment_manager.models.validation import ValidationResult
from apartment_manager.reconcile import build_record
from apartment_manager.services.storage import (
    CredentialStorageInterface,
    OccupancyStorageInterface,
    SQLiteClient,
    SQLiteCredentialStorage,
    SQLiteOccupancyStorage,
    StorageError,
)
from apartment_manager.services.transfer import BulkTransferEngine, TransferError
from apartment_manager.validation import InputValidator


def _require_valid(
    validator: InputValidator,
    audit_logger: AuditLogger,
    result: ValidationResult,
    correlation_id: Optional[UUID],
) -> None:
    """Audit a failed validation, then raise InputValidationError."""
    if result.has_errors:
        audit_logger.log_validation_failed(
            entity_type=result.entity_type,
            issues=[
                {"field": i.field, "type": i.issue_type, "message": i.message}
                for i in result.issues
            ],
            correlation_id=correlation_id,
        )
    validator.require(result)


class UserFlow:
    """
    Login and user management.

    Passwords are stored and compared verbatim.
    """

    def __init__(
        self,
        credential_storage: CredentialStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[InputValidator] = None,
    ):
        self._storage = credential_storage
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or InputValidator()

    def _check(self, result: ValidationResult, correlation_id: Optional[UUID]) -> None:
        _require_valid(self._validator, self._audit_logger, result, correlation_id)

    def authenticate(
        self,
        username: str,
        password: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Check a username/password pair.

        Never raises: an unknown user, a wrong password and a storage
        failure all return False.
        """
        try:
            stored = self._storage.find_password(username)
        except StorageError as e:
            self._audit_logger.log_error(
                error_type="authentication_lookup",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            self._audit_logger.log_login(
                username, succeeded=False, reason="lookup_failed",
                correlation_id=correlation_id,
            )
            return False

        if stored is None:
            self._audit_logger.log_login(
                username, succeeded=False, reason="unknown_user",
                correlation_id=correlation_id,
            )
            return False

        if password != stored:
            self._audit_logger.log_login(
                username, succeeded=False, reason="wrong_password",
                correlation_id=correlation_id,
            )
            return False

        self._audit_logger.log_login(username, succeeded=True, correlation_id=correlation_id)
        return True

    def save_user(
        self,
        credential_id: int,
        username: str,
        password: str,
        correlation_id: Optional[UUID] = None,
    ) -> Credential:
        """
        Create (credential_id == 0) or update a user.

        Raises:
            InputValidationError: Username or password missing
            DuplicateError: Username already taken
            NotFoundError: Updating a user that no longer exists
        """
        correlation_id = correlation_id or create_correlation_id()
        self._check(self._validator.validate_user(username, password), correlation_id)

        saved = self._storage.save(
            Credential(id=credential_id, username=username, password=password)
        )
        self._audit_logger.log_user_saved(
            user_id=saved.id,
            username=saved.username,
            created=credential_id == 0,
            correlation_id=correlation_id,
        )
        return saved

    def delete_user(
        self,
        credential_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Delete the selected user.

        Raises:
            InputValidationError: Nothing selected (credential_id == 0)
        """
        correlation_id = correlation_id or create_correlation_id()
        self._check(self._validator.validate_user_selection(credential_id), correlation_id)

        self._storage.delete(credential_id)
        self._audit_logger.log_user_deleted(credential_id, correlation_id=correlation_id)

    def count_users(self) -> int:
        return self._storage.count()

    def user_at(self, offset: int) -> Optional[Credential]:
        """User at a list position, None past the end. Check count_users() first."""
        return self._storage.get_at(offset)

    def ensure_default_user(self, username: Optional[str], password: Optional[str]) -> bool:
        """
        Seed one account into an empty users table.

        Returns:
            True if a user was created
        """
        if not username or not password or self._storage.count() > 0:
            return False
        self.save_user(0, username, password)
        return True


class ApartmentFlow:
    """
    Apartment management: manual edits, listing and bulk transfer.
    """

    def __init__(
        self,
        occupancy_storage: OccupancyStorageInterface,
        transfer_engine: BulkTransferEngine,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[InputValidator] = None,
    ):
        self._storage = occupancy_storage
        self._transfer = transfer_engine
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or InputValidator()

    def _check(self, result: ValidationResult, correlation_id: Optional[UUID]) -> None:
        _require_valid(self._validator, self._audit_logger, result, correlation_id)

    def save_apartment(
        self,
        unit_id: str,
        owner: str,
        resident: str,
        owner_is_resident: bool = False,
        correlation_id: Optional[UUID] = None,
    ) -> OccupancyRecord:
        """
        Save the apartment form.

        The resident and the flag are decided by the reconciler: with the
        toggle on the owner becomes the resident; with it off an empty
        resident becomes "Vacant".

        Raises:
            InputValidationError: Apartment ID missing
            StorageError: The write failed
        """
        correlation_id = correlation_id or create_correlation_id()
        self._check(self._validator.validate_apartment(unit_id), correlation_id)

        record = build_record(unit_id, owner, resident, owner_is_resident)
        saved = self._storage.upsert(record)
        self._audit_logger.log_apartment_saved(saved, correlation_id=correlation_id)
        return saved

    def delete_apartment(
        self,
        unit_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Delete the selected apartment. A unit that is already gone is fine.

        Raises:
            InputValidationError: Nothing selected
        """
        correlation_id = correlation_id or create_correlation_id()
        self._check(self._validator.validate_apartment_selection(unit_id), correlation_id)

        self._storage.delete(unit_id)
        self._audit_logger.log_apartment_deleted(unit_id, correlation_id=correlation_id)

    def count_apartments(self) -> int:
        return self._storage.count()

    def apartment_at(self, offset: int) -> Optional[OccupancyRecord]:
        """Apartment at a list position, None past the end."""
        return self._storage.get_at(offset)

    def get_apartment(self, unit_id: str) -> Optional[OccupancyRecord]:
        return self._storage.get(unit_id)

    def import_file(
        self,
        path: str,
        correlation_id: Optional[UUID] = None,
    ) -> ImportSummary:
        """
        Import a .csv or .xlsx file, all rows or none.

        Raises:
            TransferError: Unsupported type, unreadable file or a bad row
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            summary = self._transfer.import_file(path)
        except TransferError as e:
            self._audit_logger.log_import(
                path, error_message=str(e), correlation_id=correlation_id
            )
            raise

        self._audit_logger.log_import(
            path,
            file_format=summary.file_format,
            rows=summary.rows_imported,
            correlation_id=correlation_id,
        )
        return summary

    def export_file(
        self,
        path: str,
        correlation_id: Optional[UUID] = None,
    ) -> ExportSummary:
        """
        Export all apartments to a .csv or .xlsx file.

        Raises:
            TransferError: Unsupported type or a failed write (the file
                may be partial and should be discarded)
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            summary = self._transfer.export_file(path)
        except TransferError as e:
            self._audit_logger.log_export(
                path, error_message=str(e), correlation_id=correlation_id
            )
            raise

        self._audit_logger.log_export(
            path,
            file_format=summary.file_format,
            rows=summary.rows_exported,
            correlation_id=correlation_id,
        )
        return summary


def create_app_components(
    settings: Optional[Settings] = None,
) -> tuple[ApartmentFlow, UserFlow, SQLiteClient]:
    """
    Factory function to create all application components.

    Opens the databases, wires storage, transfer engine and audit logger,
    and seeds the first user when one is configured.

    Returns:
        (apartment_flow, user_flow, sqlite_client)
        Close the client at shutdown.
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_logging("DEBUG" if app_settings.debug_mode else app_settings.log_level)

    client = SQLiteClient(settings.database)
    client.connect()

    audit_logger = AuditLogger()
    occupancy_storage = SQLiteOccupancyStorage(client)
    credential_storage = SQLiteCredentialStorage(client)

    apartment_flow = ApartmentFlow(
        occupancy_storage=occupancy_storage,
        transfer_engine=BulkTransferEngine(occupancy_storage, client),
        audit_logger=audit_logger,
    )
    user_flow = UserFlow(
        credential_storage=credential_storage,
        audit_logger=audit_logger,
    )

    if app_settings.has_admin_seed:
        user_flow.ensure_default_user(app_settings.admin_username, app_settings.admin_password)

    return apartment_flow, user_flow, client

"""
Tests for Apartment Manager models

Test strategy:
1. Unit tests for individual components (models, reconciler, validator)
2. Integration tests against real SQLite files in a temp directory
3. No shared database between tests
"""

import pytest
from pydantic import ValidationError

from apartment_manager.models.occupancy import (
    TRANSFER_HEADER,
    VACANT,
    Credential,
    ImportSummary,
    OccupancyRecord,
    derive_same_flag,
)
from apartment_manager.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from apartment_manager.models.validation import ValidationIssue, ValidationResult
from apartment_manager.audit import AuditLogger


class TestSameFlagRule:
    """Tests for the "owner is resident" rule."""

    def test_owner_equals_resident(self):
        assert derive_same_flag("Bob", "Bob") is True

    def test_owner_differs_from_resident(self):
        assert derive_same_flag("Bob", "Alice") is False

    def test_empty_owner_is_never_resident(self):
        """An empty owner never counts, even against an empty resident."""
        assert derive_same_flag("", "") is False

    def test_comparison_is_exact(self):
        """No case folding or trimming."""
        assert derive_same_flag("Bob", "bob") is False
        assert derive_same_flag("Bob", "Bob ") is False


class TestOccupancyRecord:
    """Tests for the OccupancyRecord model."""

    def test_record_creation(self):
        record = OccupancyRecord(
            unit_id="A1",
            owner="Bob",
            resident="Bob",
            owner_is_resident=True,
        )
        assert record.unit_id == "A1"
        assert record.is_consistent is True

    def test_inconsistent_flag_is_detected(self):
        record = OccupancyRecord(
            unit_id="A1",
            owner="Bob",
            resident="Alice",
            owner_is_resident=True,
        )
        assert record.is_consistent is False

    def test_record_is_frozen(self):
        record = OccupancyRecord(unit_id="A1", owner="Bob", resident=VACANT)
        with pytest.raises(ValidationError):
            record.owner = "Carol"

    def test_names_are_not_stripped(self):
        record = OccupancyRecord(unit_id=" A1 ", owner=" Bob", resident=VACANT)
        assert record.unit_id == " A1 "
        assert record.owner == " Bob"

    def test_to_transfer_row(self):
        """Export row order matches the header."""
        record = OccupancyRecord(
            unit_id="A1",
            owner="Bob",
            resident="Bob",
            owner_is_resident=True,
        )
        assert TRANSFER_HEADER == ["ID", "Owner", "Resident", "Same"]
        assert record.to_transfer_row() == ["A1", "Bob", "Bob", True]

    def test_display_label(self):
        record = OccupancyRecord(unit_id="A1", owner="Bob", resident=VACANT)
        assert record.display_label() == "A1: Bob - Vacant"


class TestCredential:
    """Tests for the Credential model."""

    def test_new_credential_has_unset_id(self):
        credential = Credential(username="alice", password="secret1")
        assert credential.id == 0
        assert credential.is_new is True

    def test_negative_id_rejected(self):
        with pytest.raises(ValidationError):
            Credential(id=-1, username="alice", password="secret1")

    def test_password_not_in_repr(self):
        credential = Credential(username="alice", password="s3cret-value")
        assert "s3cret-value" not in repr(credential)

    def test_display_label(self):
        credential = Credential(id=3, username="alice", password="x")
        assert credential.display_label() == "ID: 3 - Username: alice"


class TestTransferSummaries:

    def test_import_summary_rejects_negative_count(self):
        with pytest.raises(ValidationError):
            ImportSummary(source="a.csv", file_format="csv", rows_imported=-1)


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.APARTMENT_SAVED,
            description="Apartment saved",
        )
        assert event.event_type == AuditEventType.APARTMENT_SAVED
        assert event.severity == AuditSeverity.INFO
        assert event.timestamp.tzinfo is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEventBuilder.apartment_saved(
            unit_id="A1",
            owner="Bob",
            resident="Bob",
            owner_is_resident=True,
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "apartment_saved"
        assert log_dict["entity_id"] == "A1"
        assert log_dict["details"]["owner_is_resident"] is True

    def test_login_failed_is_warning(self):
        event = AuditEventBuilder.login_failed(username="alice", reason="wrong_password")
        assert event.event_type == AuditEventType.LOGIN_FAILED
        assert event.severity == AuditSeverity.WARNING
        assert event.details == {"username": "alice", "reason": "wrong_password"}

    def test_import_failed_carries_error(self):
        event = AuditEventBuilder.import_failed(path="data.csv", error_message="row 3: bad")
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "row 3: bad"
        assert event.entity_id == "data.csv"

    def test_user_saved_description(self):
        created = AuditEventBuilder.user_saved(user_id=1, username="alice", created=True)
        updated = AuditEventBuilder.user_saved(user_id=1, username="alice", created=False)
        assert created.description == "User created: alice"
        assert updated.description == "User updated: alice"


class TestAuditLogger:
    """Tests for the in-memory audit history."""

    def test_recent_newest_first(self):
        audit_logger = AuditLogger()
        audit_logger.log_apartment_deleted("A1")
        audit_logger.log_apartment_deleted("A2")
        assert [e.entity_id for e in audit_logger.recent()] == ["A2", "A1"]
        assert [e.entity_id for e in audit_logger.recent(1)] == ["A2"]

    def test_recent_with_zero_limit(self):
        audit_logger = AuditLogger()
        audit_logger.log_apartment_deleted("A1")
        assert audit_logger.recent(0) == []
        assert audit_logger.recent(-3) == []

    def test_history_is_bounded(self):
        audit_logger = AuditLogger(history_size=2)
        for unit_id in ("A1", "A2", "A3"):
            audit_logger.log_apartment_deleted(unit_id)
        assert [e.entity_id for e in audit_logger.recent()] == ["A3", "A2"]


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            entity_type="apartment",
            issues=[
                ValidationIssue(
                    field="unit_id",
                    issue_type="missing",
                    message="apartment ID is required",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.is_valid is False
        assert result.error_count == 1
        assert result.first_error_message() == "apartment ID is required"

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            entity_type="user",
            issues=[
                ValidationIssue(
                    field="username",
                    issue_type="unusual",
                    message="Username has spaces",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0
        assert result.first_error_message() is None

    def test_invalid_severity_rejected(self):
        with pytest.raises(ValidationError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

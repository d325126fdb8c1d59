"""
Audit Models for Apartment Manager

Every write and every login attempt is logged for audit purposes.
This provides:
1. Traceability of who changed which unit
2. Debugging information when an import fails
3. A record of failed logins

DESIGN DECISION: Audit events never carry passwords.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Apartments
    APARTMENT_SAVED = "apartment_saved"
    APARTMENT_DELETED = "apartment_deleted"

    # Users
    USER_SAVED = "user_saved"
    USER_DELETED = "user_deleted"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"

    # Bulk transfer
    IMPORT_COMPLETED = "import_completed"
    IMPORT_FAILED = "import_failed"
    EXPORT_COMPLETED = "export_completed"
    EXPORT_FAILED = "export_failed"

    # Input / system
    VALIDATION_FAILED = "validation_failed"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity ('apartment', 'user', 'file')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Unit id, user id or file path the event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one import run)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.apartment_saved(record, correlation_id)
        event = AuditEventBuilder.login_failed("alice", correlation_id)
    """

    @staticmethod
    def apartment_saved(
        unit_id: str,
        owner: str,
        resident: str,
        owner_is_resident: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.APARTMENT_SAVED,
            entity_type="apartment",
            entity_id=unit_id,
            correlation_id=correlation_id,
            description=f"Apartment saved: {unit_id}",
            details={
                "owner": owner,
                "resident": resident,
                "owner_is_resident": owner_is_resident,
            },
            is_user_action=True,
        )

    @staticmethod
    def apartment_deleted(
        unit_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.APARTMENT_DELETED,
            entity_type="apartment",
            entity_id=unit_id,
            correlation_id=correlation_id,
            description=f"Apartment deleted: {unit_id}",
            is_user_action=True,
        )

    @staticmethod
    def user_saved(
        user_id: int,
        username: str,
        created: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SAVED,
            entity_type="user",
            entity_id=str(user_id),
            correlation_id=correlation_id,
            description=f"User {'created' if created else 'updated'}: {username}",
            details={
                "username": username,
                "created": created,
            },
            is_user_action=True,
        )

    @staticmethod
    def user_deleted(
        user_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_DELETED,
            entity_type="user",
            entity_id=str(user_id),
            correlation_id=correlation_id,
            description=f"User deleted: {user_id}",
            is_user_action=True,
        )

    @staticmethod
    def login_succeeded(
        username: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_SUCCEEDED,
            entity_type="user",
            correlation_id=correlation_id,
            description=f"Login succeeded: {username}",
            details={"username": username},
            is_user_action=True,
        )

    @staticmethod
    def login_failed(
        username: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            correlation_id=correlation_id,
            description=f"Login failed: {username}",
            details={
                "username": username,
                "reason": reason,
            },
            is_user_action=True,
        )

    @staticmethod
    def import_completed(
        path: str,
        file_format: str,
        rows: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_COMPLETED,
            entity_type="file",
            entity_id=path,
            correlation_id=correlation_id,
            description=f"Imported {rows} apartments from {file_format}",
            details={
                "file_format": file_format,
                "rows_imported": rows,
            },
            is_user_action=True,
        )

    @staticmethod
    def import_failed(
        path: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="file",
            entity_id=path,
            correlation_id=correlation_id,
            description="Import failed, no rows were saved",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def export_completed(
        path: str,
        file_format: str,
        rows: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_COMPLETED,
            entity_type="file",
            entity_id=path,
            correlation_id=correlation_id,
            description=f"Exported {rows} apartments to {file_format}",
            details={
                "file_format": file_format,
                "rows_exported": rows,
            },
            is_user_action=True,
        )

    @staticmethod
    def export_failed(
        path: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="file",
            entity_id=path,
            correlation_id=correlation_id,
            description="Export failed, output file may be incomplete",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        entity_type: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            correlation_id=correlation_id,
            description=f"Input rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

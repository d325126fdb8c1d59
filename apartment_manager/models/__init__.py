"""
Data Models Package

This package contains all Pydantic models used in Apartment Manager.
All data flowing through the system must conform to these schemas.
"""

from apartment_manager.models.occupancy import (
    TRANSFER_HEADER,
    VACANT,
    Credential,
    ExportSummary,
    ImportSummary,
    OccupancyRecord,
    derive_same_flag,
)
from apartment_manager.models.validation import (
    ValidationIssue,
    ValidationResult,
)
from apartment_manager.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Occupancy models
    "TRANSFER_HEADER",
    "VACANT",
    "Credential",
    "ExportSummary",
    "ImportSummary",
    "OccupancyRecord",
    "derive_same_flag",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]

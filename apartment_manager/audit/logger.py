"""
Audit Logger

DESIGN DECISION: Every write and every login attempt is logged.
This provides:
1. Traceability of changes to apartments and users
2. Debugging capability for failed imports
3. A record of failed logins

The audit logger:
- Writes structured JSON lines through structlog
- Keeps the most recent events in memory for the shell's activity view
- Supports correlation IDs to trace related events
"""

import logging
from collections import deque
from typing import Optional
from uuid import UUID, uuid4

import structlog

from apartment_manager.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditSeverity,
)
from apartment_manager.models.occupancy import OccupancyRecord


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output to stderr at the given stdlib level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))
    logging.getLogger().setLevel(getattr(logging, level.upper()))


class AuditLogger:
    """
    Central audit logging service.

    Logs events to the structured local log and keeps the last
    `history_size` events in memory.
    """

    def __init__(self, history_size: int = 200):
        self._logger = structlog.get_logger("apartment_manager.audit")
        self._history: deque[AuditEvent] = deque(maxlen=history_size)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at a level matching its severity."""
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        self._history.append(event)

    def recent(self, limit: int = 50) -> list[AuditEvent]:
        """Most recent events, newest first."""
        if limit <= 0:
            return []
        events = list(self._history)[-limit:]
        events.reverse()
        return events

    def log_apartment_saved(
        self,
        record: OccupancyRecord,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.apartment_saved(
            unit_id=record.unit_id,
            owner=record.owner,
            resident=record.resident,
            owner_is_resident=record.owner_is_resident,
            correlation_id=correlation_id,
        ))

    def log_apartment_deleted(
        self,
        unit_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.apartment_deleted(
            unit_id=unit_id,
            correlation_id=correlation_id,
        ))

    def log_user_saved(
        self,
        user_id: int,
        username: str,
        created: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.user_saved(
            user_id=user_id,
            username=username,
            created=created,
            correlation_id=correlation_id,
        ))

    def log_user_deleted(
        self,
        user_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.user_deleted(
            user_id=user_id,
            correlation_id=correlation_id,
        ))

    def log_login(
        self,
        username: str,
        succeeded: bool,
        reason: str = "",
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a login attempt. The password is never passed in."""
        if succeeded:
            event = AuditEventBuilder.login_succeeded(
                username=username,
                correlation_id=correlation_id,
            )
        else:
            event = AuditEventBuilder.login_failed(
                username=username,
                reason=reason,
                correlation_id=correlation_id,
            )
        self.log(event)

    def log_import(
        self,
        path: str,
        file_format: Optional[str] = None,
        rows: int = 0,
        error_message: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an import outcome; pass error_message for a failed import."""
        if error_message is not None:
            event = AuditEventBuilder.import_failed(
                path=path,
                error_message=error_message,
                correlation_id=correlation_id,
            )
        else:
            event = AuditEventBuilder.import_completed(
                path=path,
                file_format=file_format or "",
                rows=rows,
                correlation_id=correlation_id,
            )
        self.log(event)

    def log_export(
        self,
        path: str,
        file_format: Optional[str] = None,
        rows: int = 0,
        error_message: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an export outcome; pass error_message for a failed export."""
        if error_message is not None:
            event = AuditEventBuilder.export_failed(
                path=path,
                error_message=error_message,
                correlation_id=correlation_id,
            )
        else:
            event = AuditEventBuilder.export_completed(
                path=path,
                file_format=file_format or "",
                rows=rows,
                correlation_id=correlation_id,
            )
        self.log(event)

    def log_validation_failed(
        self,
        entity_type: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.validation_failed(
            entity_type=entity_type,
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., an import).
    Pass it through all subsequent operations.
    """
    return uuid4()

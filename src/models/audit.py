"""
Audit Models for the Finance Tracker

Every change the user makes to their data is logged for audit purposes.
This provides:
1. Traceability of all create/update/delete commands
2. Debugging information when a backend call fails and is rolled back
3. Visibility of degraded input that the aggregation silently neutralized

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Each entity has its own event type per operation.
    """
    # Expenses
    EXPENSE_CREATED = "expense_created"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"

    # Jobs
    JOB_CREATED = "job_created"
    JOB_UPDATED = "job_updated"
    JOB_DELETED = "job_deleted"

    # Work entries
    WORK_ENTRY_CREATED = "work_entry_created"
    WORK_ENTRY_DELETED = "work_entry_deleted"

    # Salary payments
    SALARY_PAYMENT_RECORDED = "salary_payment_recorded"
    SALARY_PAYMENT_DELETED = "salary_payment_deleted"

    # State container
    DATA_REFRESHED = "data_refreshed"
    MUTATION_ROLLED_BACK = "mutation_rolled_back"
    VALIDATION_FAILED = "validation_failed"

    # Aggregation
    DEGRADED_INPUT_DETECTED = "degraded_input_detected"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


# (entity_type, operation) -> event type
_MUTATION_EVENTS: dict[tuple[str, str], AuditEventType] = {
    ("expense", "create"): AuditEventType.EXPENSE_CREATED,
    ("expense", "update"): AuditEventType.EXPENSE_UPDATED,
    ("expense", "delete"): AuditEventType.EXPENSE_DELETED,
    ("job", "create"): AuditEventType.JOB_CREATED,
    ("job", "update"): AuditEventType.JOB_UPDATED,
    ("job", "delete"): AuditEventType.JOB_DELETED,
    ("work_entry", "create"): AuditEventType.WORK_ENTRY_CREATED,
    ("work_entry", "delete"): AuditEventType.WORK_ENTRY_DELETED,
    ("salary_payment", "create"): AuditEventType.SALARY_PAYMENT_RECORDED,
    ("salary_payment", "delete"): AuditEventType.SALARY_PAYMENT_DELETED,
}


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
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
        description="Type of entity (e.g., 'expense', 'job', 'work_entry')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Backend ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one bulk delete)"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
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
        event = AuditEventBuilder.record_mutated("expense", "create", expense.id, "Lunch")
        event = AuditEventBuilder.data_refreshed({"expenses": 12, "jobs": 2})
    """

    @staticmethod
    def record_mutated(
        entity_type: str,
        operation: str,
        entity_id: Optional[str],
        summary: str,
        correlation_id: Optional[UUID] = None,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        event_type = _MUTATION_EVENTS.get((entity_type, operation))
        if event_type is None:
            raise ValueError(f"Unsupported mutation: {operation} {entity_type}")
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.replace('_', ' ').capitalize()} {operation}d: {summary}",
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def data_refreshed(
        counts: dict[str, int],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_REFRESHED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description="Collections refreshed from backend",
            details=dict(counts),
        )

    @staticmethod
    def mutation_rolled_back(
        entity_type: str,
        operation: str,
        entity_id: Optional[str],
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_ROLLED_BACK,
            severity=AuditSeverity.ERROR,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Rolled back {operation} of {entity_type.replace('_', ' ')}",
            error_message=error_message,
            details={"operation": operation},
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
            description=f"{entity_type.replace('_', ' ').capitalize()} input rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def degraded_input(
        view: str,
        total_records: int,
        unparseable_dates: int,
        missing_amounts: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEGRADED_INPUT_DETECTED,
            severity=AuditSeverity.WARNING,
            description=f"Degraded input in {view}: {unparseable_dates} undated, {missing_amounts} without amount",
            details={
                "view": view,
                "total_records": total_records,
                "unparseable_dates": unparseable_dates,
                "missing_amounts": missing_amounts,
            },
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

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )

"""
Audit Models for manjaliof

Every ledger mutation is described by an AuditEvent before it is logged.
This provides:
1. Traceability of who paid what and when
2. Debugging information when a session is discarded
3. A correlation id tying together all events of one CLI run

DESIGN DECISION: Audit events describe intent, not durability.
A session that is later discarded still logged its events, followed by
a session_discarded event with the same correlation id.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Client lifecycle
    CLIENT_ADDED = "client_added"
    CLIENT_RENEWED = "client_renewed"
    CLIENTS_RENEWED_ALL = "clients_renewed_all"
    CLIENT_REMOVED = "client_removed"
    CLIENT_RENAMED = "client_renamed"
    CLIENT_INFO_SET = "client_info_set"
    CLEANUP_REMOVED = "cleanup_removed"

    # Session lifecycle
    SESSION_COMMITTED = "session_committed"
    SESSION_DISCARDED = "session_discarded"

    # Post scripts
    POST_SCRIPT_FAILED = "post_script_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


def _utc_timestamp() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """
    A single audit event.

    entity_id is the client name for client events; ledger entities are
    keyed by name rather than by a generated id.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utc_timestamp,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'client', 'session')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Client name or other entity key"
    )

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Shared by every event of one ledger session"
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
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.client_added("alice", 30, "pouya", 60, correlation_id)
    """

    @staticmethod
    def client_added(
        name: str,
        days: int,
        seller: str,
        money: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLIENT_ADDED,
            entity_type="client",
            entity_id=name,
            correlation_id=correlation_id,
            description=f"Client added: {name} for {days} days",
            details={
                "days": days,
                "seller": seller,
                "money": money,
            },
        )

    @staticmethod
    def client_renewed(
        name: str,
        days: int,
        seller: str,
        money: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLIENT_RENEWED,
            entity_type="client",
            entity_id=name,
            correlation_id=correlation_id,
            description=f"Client renewed: {name} for {days} days",
            details={
                "days": days,
                "seller": seller,
                "money": money,
            },
        )

    @staticmethod
    def clients_renewed_all(
        days: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLIENTS_RENEWED_ALL,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"All active clients renewed for {days} days",
            details={"days": days},
        )

    @staticmethod
    def client_removed(
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLIENT_REMOVED,
            entity_type="client",
            entity_id=name,
            correlation_id=correlation_id,
            description=f"Client removed: {name}",
        )

    @staticmethod
    def client_renamed(
        old_name: str,
        new_name: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLIENT_RENAMED,
            entity_type="client",
            entity_id=new_name,
            correlation_id=correlation_id,
            description=f"Client renamed: {old_name} -> {new_name}",
            details={"old_name": old_name},
        )

    @staticmethod
    def client_info_set(
        target: str,
        info: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLIENT_INFO_SET,
            entity_type="client",
            correlation_id=correlation_id,
            description=f"Info set for {target}",
            details={"target": target, "info": info},
        )

    @staticmethod
    def cleanup_removed(
        name: str,
        days_expired: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLEANUP_REMOVED,
            severity=AuditSeverity.WARNING,
            entity_type="client",
            entity_id=name,
            correlation_id=correlation_id,
            description=f"Cleanup removed {name}, expired {days_expired} days ago",
            details={"days_expired": days_expired},
        )

    @staticmethod
    def session_committed(
        backend: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_COMMITTED,
            entity_type="session",
            correlation_id=correlation_id,
            description=f"Ledger session committed ({backend})",
            details={"backend": backend},
        )

    @staticmethod
    def session_discarded(
        backend: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_DISCARDED,
            severity=AuditSeverity.WARNING,
            entity_type="session",
            correlation_id=correlation_id,
            description=f"Ledger session discarded ({backend})",
            error_message=reason,
            details={"backend": backend},
        )

    @staticmethod
    def post_script_failed(
        script: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.POST_SCRIPT_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="post_script",
            entity_id=script,
            correlation_id=correlation_id,
            description=f"Post script failed: {script}",
            error_message=error_message,
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

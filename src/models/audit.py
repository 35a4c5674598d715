"""
Audit Models for AccTrack

Every change to the record store and every failed facade call is logged
as an audit event. This provides:
1. Traceability of what was written, where and when
2. Debugging information when a request fails on the UI side
3. A record of storage relocations

DESIGN DECISION: Audit events are written to the structured local log
only. They are never stored in the record store they describe, so a
relocation or a broken store cannot lose them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Store lifecycle
    STORE_OPENED = "store_opened"
    STORE_OPEN_FAILED = "store_open_failed"
    STORE_RELOCATED = "store_relocated"
    STORE_RELOCATE_FAILED = "store_relocate_failed"
    STORE_CLOSED = "store_closed"

    # Records
    RECORD_SAVED = "record_saved"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"

    # Preferences
    SETTINGS_SAVED = "settings_saved"
    LEGACY_FILE_SAVED = "legacy_file_saved"

    # Facade
    ENDPOINT_FAILED = "endpoint_failed"


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
        description="Table or document the event relates to"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Record id the event relates to"
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
    error_type: Optional[str] = None
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
            "description": self.description,
            "details": self.details,
            "error_type": self.error_type,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_saved("products", product_id)
        event = AuditEventBuilder.store_relocated(old_path, new_path)
    """

    @staticmethod
    def store_opened(path: str, backend: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_OPENED,
            entity_type="store",
            description=f"Record store opened at {path}",
            details={"path": path, "backend": backend},
        )

    @staticmethod
    def store_open_failed(path: str, error: Exception) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_OPEN_FAILED,
            severity=AuditSeverity.CRITICAL,
            entity_type="store",
            description=f"Record store could not be opened at {path}",
            details={"path": path},
            error_type=type(error).__name__,
            error_message=str(error),
        )

    @staticmethod
    def store_relocated(old_path: Optional[str], new_path: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_RELOCATED,
            entity_type="store",
            description=f"Record store moved to {new_path}",
            details={"old_path": old_path, "new_path": new_path},
        )

    @staticmethod
    def store_relocate_failed(
        current_path: Optional[str],
        new_path: str,
        error: Exception,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_RELOCATE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="store",
            description=f"Record store could not be moved to {new_path}",
            details={"current_path": current_path, "new_path": new_path},
            error_type=type(error).__name__,
            error_message=str(error),
        )

    @staticmethod
    def store_closed(path: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_CLOSED,
            entity_type="store",
            description="Record store closed",
            details={"path": path},
        )

    @staticmethod
    def record_saved(table: str, record_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_SAVED,
            entity_type=table,
            entity_id=record_id,
            description=f"Record saved in {table}",
        )

    @staticmethod
    def record_updated(
        table: str,
        record_id: str,
        fields: list[str],
        matched: int,
    ) -> AuditEvent:
        # An update that matched nothing still succeeds; flag it
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            severity=AuditSeverity.INFO if matched else AuditSeverity.WARNING,
            entity_type=table,
            entity_id=record_id,
            description=(
                f"Record updated in {table}" if matched
                else f"Update in {table} matched no record"
            ),
            details={"fields": fields, "matched_rows": matched},
        )

    @staticmethod
    def record_deleted(table: str, record_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            entity_type=table,
            entity_id=record_id,
            description=f"Record deleted from {table}",
        )

    @staticmethod
    def settings_saved(document: str, details: dict) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_SAVED,
            entity_type=document,
            description=f"Preferences document saved: {document}",
            details=details,
        )

    @staticmethod
    def legacy_file_saved(key: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEGACY_FILE_SAVED,
            entity_type="legacy_file",
            entity_id=key,
            description=f"Legacy document saved: {key}",
        )

    @staticmethod
    def endpoint_failed(endpoint: str, error: Exception) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENDPOINT_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="endpoint",
            entity_id=endpoint,
            description=f"Endpoint {endpoint} failed",
            error_type=type(error).__name__,
            error_message=str(error),
        )

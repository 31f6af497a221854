"""
Activity Models for Jantrik

Every user-triggered operation emits one structured event:
1. What was attempted (add, export, reset)
2. Whether it worked
3. Enough detail to debug a bad day from the logs alone

DESIGN DECISION: Events go to the structured log only. They are not
stored, so there is no history to browse or replay.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # Entry
    AMOUNT_ADDED = "amount_added"
    VALIDATION_FAILED = "validation_failed"

    # Export
    COLLECTION_EXPORTED = "collection_exported"
    EXPORT_FAILED = "export_failed"

    # Reset
    COLLECTION_RESET = "collection_reset"

    # Storage
    COLLECTION_LOADED = "collection_loaded"
    STORAGE_CORRUPTED = "storage_corrupted"

    # System events
    OPERATION_REJECTED = "operation_rejected"
    SYSTEM_ERROR = "system_error"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ActivityEvent(BaseModel):
    """A single activity event."""

    # Identity
    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    # Which collection this is about ('3up', 'down')
    collection: Optional[str] = None

    # Correlation - ties together the events of one UI interaction
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

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
            "collection": self.collection,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.amount_added("down", "05", 10.0, 12.5)
        event = ActivityEventBuilder.collection_reset("3up", 4, 250.0)
    """

    @staticmethod
    def amount_added(
        collection: str,
        number: str,
        amount: float,
        new_total: float,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.AMOUNT_ADDED,
            collection=collection,
            correlation_id=correlation_id,
            description=f"Added {amount} to {number}",
            details={
                "number": number,
                "amount": amount,
                "new_total": new_total,
            },
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        collection: str,
        field: str,
        message: str,
        raw_value: Any,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.VALIDATION_FAILED,
            severity=ActivitySeverity.WARNING,
            collection=collection,
            correlation_id=correlation_id,
            description=f"Rejected {field} input",
            details={
                "field": field,
                "raw_value": str(raw_value),
            },
            error_message=message,
            is_user_action=True,
        )

    @staticmethod
    def collection_exported(
        collection: str,
        filename: str,
        number_count: int,
        total_amount: float,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.COLLECTION_EXPORTED,
            collection=collection,
            correlation_id=correlation_id,
            description=f"Exported {number_count} numbers to {filename}",
            details={
                "filename": filename,
                "number_count": number_count,
                "total_amount": total_amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def export_failed(
        collection: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.EXPORT_FAILED,
            severity=ActivitySeverity.ERROR,
            collection=collection,
            correlation_id=correlation_id,
            description="Export failed",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def collection_reset(
        collection: str,
        cleared_count: int,
        cleared_total: float,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.COLLECTION_RESET,
            severity=ActivitySeverity.WARNING,
            collection=collection,
            correlation_id=correlation_id,
            description=f"Collection reset, {cleared_count} active numbers cleared",
            details={
                "cleared_count": cleared_count,
                "cleared_total": cleared_total,
            },
            is_user_action=True,
        )

    @staticmethod
    def collection_loaded(
        collection: str,
        restored: bool,
        active_count: int,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.COLLECTION_LOADED,
            severity=ActivitySeverity.DEBUG,
            collection=collection,
            description="Collection restored" if restored else "Collection initialised",
            details={
                "restored": restored,
                "active_count": active_count,
            },
        )

    @staticmethod
    def storage_corrupted(
        collection: str,
        key: str,
        error_message: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.STORAGE_CORRUPTED,
            severity=ActivitySeverity.WARNING,
            collection=collection,
            description=f"Stored data under {key} is unreadable, starting fresh",
            details={
                "key": key,
            },
            error_message=error_message,
        )

    @staticmethod
    def operation_rejected(
        collection: str,
        operation: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.OPERATION_REJECTED,
            severity=ActivitySeverity.WARNING,
            collection=collection,
            description=f"{operation} already in progress",
            details={
                "operation": operation,
            },
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        collection: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SYSTEM_ERROR,
            severity=ActivitySeverity.ERROR,
            collection=collection,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

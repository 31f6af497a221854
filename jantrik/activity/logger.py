"""
Activity Logger

Every user-triggered operation is logged as a structured event.
This provides:
1. Traceability of what was added, exported and reset
2. Debugging capability when stored data turns out to be unreadable

The activity logger:
- Writes to the structured local log only
- Supports correlation IDs to trace related events
"""

import logging
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from jantrik.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivitySeverity,
)


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


class ActivityLogger:
    """
    Central activity logging service.

    Events are rendered as JSON lines through structlog at the level
    matching their severity.
    """

    def __init__(self, logger: Optional[Any] = None):
        self._logger = logger or structlog.get_logger("jantrik.activity")

    def log(self, event: ActivityEvent) -> None:
        """Log an activity event locally."""
        log_dict = event.to_log_dict()

        if event.severity == ActivitySeverity.ERROR:
            self._logger.error("activity_event", **log_dict)
        elif event.severity == ActivitySeverity.WARNING:
            self._logger.warning("activity_event", **log_dict)
        elif event.severity == ActivitySeverity.DEBUG:
            self._logger.debug("activity_event", **log_dict)
        else:
            self._logger.info("activity_event", **log_dict)

    def log_amount_added(
        self,
        collection: str,
        number: str,
        amount: float,
        new_total: float,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a successful add."""
        self.log(ActivityEventBuilder.amount_added(
            collection=collection,
            number=number,
            amount=amount,
            new_total=new_total,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        collection: str,
        field: str,
        message: str,
        raw_value: Any,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log rejected input."""
        self.log(ActivityEventBuilder.validation_failed(
            collection=collection,
            field=field,
            message=message,
            raw_value=raw_value,
            correlation_id=correlation_id,
        ))

    def log_collection_exported(
        self,
        collection: str,
        filename: str,
        number_count: int,
        total_amount: float,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a finished export."""
        self.log(ActivityEventBuilder.collection_exported(
            collection=collection,
            filename=filename,
            number_count=number_count,
            total_amount=total_amount,
            correlation_id=correlation_id,
        ))

    def log_export_failed(
        self,
        collection: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log export failure."""
        self.log(ActivityEventBuilder.export_failed(
            collection=collection,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_collection_reset(
        self,
        collection: str,
        cleared_count: int,
        cleared_total: float,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a reset."""
        self.log(ActivityEventBuilder.collection_reset(
            collection=collection,
            cleared_count=cleared_count,
            cleared_total=cleared_total,
            correlation_id=correlation_id,
        ))

    def log_collection_loaded(
        self,
        collection: str,
        restored: bool,
        active_count: int,
    ) -> None:
        self.log(ActivityEventBuilder.collection_loaded(
            collection=collection,
            restored=restored,
            active_count=active_count,
        ))

    def log_storage_corrupted(
        self,
        collection: str,
        key: str,
        error_message: str,
    ) -> None:
        """Log an unreadable stored payload."""
        self.log(ActivityEventBuilder.storage_corrupted(
            collection=collection,
            key=key,
            error_message=error_message,
        ))

    def log_operation_rejected(
        self,
        collection: str,
        operation: str,
    ) -> None:
        self.log(ActivityEventBuilder.operation_rejected(
            collection=collection,
            operation=operation,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        collection: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(ActivityEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            collection=collection,
            correlation_id=correlation_id,
        ))


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through the stdlib root logger at `level`."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., one form submission).
    """
    return uuid4()

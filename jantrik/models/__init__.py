"""
Data Models Package

This package contains all Pydantic models used in Jantrik.
All data flowing through the system must conform to these schemas.
"""

from jantrik.models.collection import (
    COLLECTIONS,
    XLSX_MIME_TYPE,
    AddAmountResult,
    AmountTier,
    CollectionConfig,
    CollectionSnapshot,
    CollectionType,
    CollectionView,
    ExportDocument,
    OperationKind,
    OperationState,
    ViewEntry,
    get_collection_config,
)
from jantrik.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Collection models
    "COLLECTIONS",
    "XLSX_MIME_TYPE",
    "AddAmountResult",
    "AmountTier",
    "CollectionConfig",
    "CollectionSnapshot",
    "CollectionType",
    "CollectionView",
    "ExportDocument",
    "OperationKind",
    "OperationState",
    "ViewEntry",
    "get_collection_config",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]

"""Services package."""

from jantrik.services.export import (
    CollectionExcelExporter,
    ExportError,
)
from jantrik.services.storage import (
    CollectionStorageInterface,
    CorruptedDataError,
    InMemoryCollectionStorage,
    JsonFileCollectionStorage,
    StorageError,
)

__all__ = [
    # Export services
    "CollectionExcelExporter",
    "ExportError",
    # Storage services
    "CollectionStorageInterface",
    "CorruptedDataError",
    "InMemoryCollectionStorage",
    "JsonFileCollectionStorage",
    "StorageError",
]

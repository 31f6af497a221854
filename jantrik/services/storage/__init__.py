"""
Storage Services Package

Provides the abstract collection storage interface and its backends.
The JSON file store is the default; the in-memory store backs tests.
"""

from jantrik.services.storage.interface import (
    DEFAULT_KEY_PREFIX,
    CollectionStorageInterface,
    CorruptedDataError,
    StorageError,
    parse_payload,
    serialize_payload,
)
from jantrik.services.storage.json_store import JsonFileCollectionStorage
from jantrik.services.storage.memory import InMemoryCollectionStorage

__all__ = [
    # Interface
    "DEFAULT_KEY_PREFIX",
    "CollectionStorageInterface",
    "parse_payload",
    "serialize_payload",
    # Exceptions
    "CorruptedDataError",
    "StorageError",
    # Implementations
    "InMemoryCollectionStorage",
    "JsonFileCollectionStorage",
]

"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep presentation code away from the underlying key-value store
2. Use in-memory storage for testing
3. Swap the JSON file store for something else later

Each collection is stored as ONE value under ONE key ('jantrik-3up',
'jantrik-down'): a JSON object of padded number -> amount. Values are
always replaced whole; there are no partial updates.
"""

import json
import math
from abc import ABC, abstractmethod
from typing import Optional

from jantrik.models.collection import CollectionSnapshot, CollectionType


DEFAULT_KEY_PREFIX = "jantrik"


class CollectionStorageInterface(ABC):
    """
    Abstract interface for collection storage.

    Subclasses only move raw strings around (`_read`, `_write`, `_delete`).
    Key naming, serialization and shape checks live here so every backend
    behaves the same.
    """

    def __init__(self, key_prefix: str = DEFAULT_KEY_PREFIX):
        self._key_prefix = key_prefix

    def storage_key(self, collection_type: CollectionType | str) -> str:
        """Key a collection is stored under, e.g. 'jantrik-3up'."""
        return f"{self._key_prefix}-{CollectionType(collection_type).value}"

    @abstractmethod
    async def _read(self, key: str) -> Optional[str]:
        """Raw stored value, or None if the key is absent."""
        pass

    @abstractmethod
    async def _write(self, key: str, value: str) -> None:
        """Store `value` under `key`, replacing any previous value."""
        pass

    @abstractmethod
    async def _delete(self, key: str) -> None:
        """Remove `key`. Removing an absent key is not an error."""
        pass

    async def load(
        self,
        collection_type: CollectionType | str,
    ) -> Optional[CollectionSnapshot]:
        """
        Restore the persisted snapshot of a collection.

        Returns:
            The snapshot, or None if nothing was ever saved

        Raises:
            CorruptedDataError: If the stored value is not a mapping of
                string to non-negative number
            StorageError: If the backend cannot be read
        """
        key = self.storage_key(collection_type)
        raw = await self._read(key)
        if raw is None:
            return None
        return CollectionSnapshot(entries=parse_payload(raw, key))

    async def save(
        self,
        collection_type: CollectionType | str,
        snapshot: CollectionSnapshot,
    ) -> None:
        """
        Persist the full snapshot, replacing any previous value.

        Raises:
            StorageError: If the write fails
        """
        key = self.storage_key(collection_type)
        await self._write(key, serialize_payload(snapshot))

    async def clear(self, collection_type: CollectionType | str) -> None:
        """
        Remove the persisted value entirely.

        Raises:
            StorageError: If the delete fails
        """
        await self._delete(self.storage_key(collection_type))


def serialize_payload(snapshot: CollectionSnapshot) -> str:
    """JSON object of key -> amount, keys in stored order."""
    return json.dumps(snapshot.to_dict())


def parse_payload(raw: str, key: str = "") -> dict[str, float]:
    """
    Parse and shape-check a stored value.

    Accepts only a JSON object whose values are finite, non-negative
    numbers (booleans are not numbers here).
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise CorruptedDataError(f"Stored value under {key!r} is not valid JSON: {e}")

    if not isinstance(data, dict):
        raise CorruptedDataError(
            f"Stored value under {key!r} must be an object, got {type(data).__name__}"
        )

    entries: dict[str, float] = {}
    for number, amount in data.items():
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise CorruptedDataError(
                f"Amount for {number!r} under {key!r} is not a number: {amount!r}"
            )
        try:
            value = float(amount)
        except OverflowError:
            raise CorruptedDataError(
                f"Amount for {number!r} under {key!r} is too large to store"
            )
        if not math.isfinite(value) or value < 0:
            raise CorruptedDataError(
                f"Amount for {number!r} under {key!r} must be non-negative, got {amount!r}"
            )
        entries[number] = value
    return entries


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptedDataError(StorageError):
    """Stored value exists but does not have the expected shape."""
    pass

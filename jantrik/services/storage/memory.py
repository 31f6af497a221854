"""In-memory storage, used by tests and when no data directory is writable."""

from typing import Optional

from jantrik.services.storage.interface import (
    DEFAULT_KEY_PREFIX,
    CollectionStorageInterface,
)


class InMemoryCollectionStorage(CollectionStorageInterface):
    """
    Dict of key -> raw JSON string.

    Values are kept serialized so loads go through the same parsing and
    shape checks as the file backend.
    """

    def __init__(
        self,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        initial: Optional[dict[str, str]] = None,
    ):
        super().__init__(key_prefix)
        self._values: dict[str, str] = dict(initial or {})

    @property
    def raw_values(self) -> dict[str, str]:
        return dict(self._values)

    async def _read(self, key: str) -> Optional[str]:
        return self._values.get(key)

    async def _write(self, key: str, value: str) -> None:
        self._values[key] = value

    async def _delete(self, key: str) -> None:
        self._values.pop(key, None)

"""
JSON File Storage Implementation

DESIGN DECISION: Each storage key is one small JSON file in a data
directory ('.jantrik/jantrik-3up.json'). This keeps the persisted layout
identical to a browser key-value store while living on local disk:
1. Users can open and back up the files directly
2. No database setup required
3. A collection is at most 1000 entries, so rewriting it whole is cheap

TRADEOFFS:
- No locking; two processes on the same directory means last write wins
- Writes go through a temp file + rename so a crash never leaves half a file
"""

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Optional

from jantrik.config import get_settings
from jantrik.services.storage.interface import (
    CollectionStorageInterface,
    CorruptedDataError,
    StorageError,
)


class JsonFileCollectionStorage(CollectionStorageInterface):
    """
    File-backed key-value storage.

    The directory is created lazily on the first write so that merely
    reading a fresh install never touches the disk.
    """

    def __init__(
        self,
        data_dir: Optional[str | Path] = None,
        key_prefix: Optional[str] = None,
    ):
        settings = get_settings().storage
        super().__init__(key_prefix or settings.key_prefix)
        self._data_dir = Path(data_dir if data_dir is not None else settings.data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, key: str) -> Path:
        return self._data_dir / f"{key}.json"

    async def _read(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read_sync, key)

    async def _write(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write_sync, key, value)

    async def _delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete_sync, key)

    def _read_sync(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise CorruptedDataError(f"{path} is not valid UTF-8: {e}")
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}")

    def _write_sync(self, key: str, value: str) -> None:
        path = self.path_for(key)
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._data_dir, prefix=f".{key}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}")

    def _delete_sync(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete {path}: {e}")

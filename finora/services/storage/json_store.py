"""
Key-Value Store Backends

JsonFileStore keeps each collection in its own JSON file, the on-disk
equivalent of one browser localStorage key per collection.
InMemoryStore keeps the same serialized text in a dict and is used by
tests and the `memory` backend.

TRADEOFFS:
- Whole-collection rewrites: fine for one person's records
- No cross-process locking; one app process owns the data directory
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finora.config import get_settings
from finora.services.storage.interface import KeyValueStore, StorageError


class JsonFileStore(KeyValueStore):
    """
    Collections stored as `<data_dir>/<key>.json`.
    
    Writes go to a temporary file in the same directory and are moved
    into place with os.replace, so a reader never sees half a file.
    """
    
    def __init__(
        self,
        data_dir: Optional[str] = None,
        key_prefix: Optional[str] = None,
    ):
        settings = get_settings().store
        super().__init__(key_prefix if key_prefix is not None else settings.key_prefix)
        self._data_dir = Path(data_dir or settings.data_dir)
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {self._data_dir}: {e}") from e
    
    @property
    def data_dir(self) -> Path:
        return self._data_dir
    
    def _path(self, key: str) -> Path:
        return self._data_dir / f"{key}.json"
    
    def _load_text(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")
    
    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _save_text(self, key: str, text: str) -> None:
        fd, tmp_path = tempfile.mkstemp(
            dir=self._data_dir,
            prefix=f".{key}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            os.replace(tmp_path, self._path(key))
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    
    def _delete_text(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class InMemoryStore(KeyValueStore):
    """
    Process-local store holding serialized text per key.
    
    Args:
        initial: Raw text to seed keys with (full keys, prefix included)
    """
    
    def __init__(
        self,
        initial: Optional[dict[str, str]] = None,
        key_prefix: str = "finora_",
    ):
        super().__init__(key_prefix)
        self._data: dict[str, str] = dict(initial or {})
    
    def _load_text(self, key: str) -> Optional[str]:
        return self._data.get(key)
    
    def _save_text(self, key: str, text: str) -> None:
        self._data[key] = text
    
    def _delete_text(self, key: str) -> None:
        self._data.pop(key, None)
    
    def raw(self, key: str) -> Optional[str]:
        """Stored text for a full key, for inspection."""
        return self._data.get(key)


def create_store() -> KeyValueStore:
    """Build the store backend selected in settings."""
    settings = get_settings().store
    if settings.backend == "memory":
        return InMemoryStore(key_prefix=settings.key_prefix)
    return JsonFileStore(settings.data_dir, settings.key_prefix)

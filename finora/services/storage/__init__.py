"""
Storage Services Package

Provides the key-value store contract and its backends.
Currently implements JSON files and process memory, but designed to be swappable.
"""

from finora.services.storage.interface import (
    OWNER_FIELD,
    USER_OWNED_COLLECTIONS,
    Collection,
    DuplicateError,
    KeyValueStore,
    NotFoundError,
    StorageError,
    StoreCorruptionError,
)
from finora.services.storage.json_store import (
    InMemoryStore,
    JsonFileStore,
    create_store,
)

__all__ = [
    # Interface
    "Collection",
    "KeyValueStore",
    "OWNER_FIELD",
    "USER_OWNED_COLLECTIONS",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    "StoreCorruptionError",
    # Backends
    "InMemoryStore",
    "JsonFileStore",
    "create_store",
]

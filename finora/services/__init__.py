"""Services package."""

from finora.services.security import hash_password, verify_password
from finora.services.storage import (
    Collection,
    DuplicateError,
    InMemoryStore,
    JsonFileStore,
    KeyValueStore,
    NotFoundError,
    StorageError,
    StoreCorruptionError,
    create_store,
)

__all__ = [
    # Security
    "hash_password",
    "verify_password",
    # Storage services
    "Collection",
    "DuplicateError",
    "InMemoryStore",
    "JsonFileStore",
    "KeyValueStore",
    "NotFoundError",
    "StorageError",
    "StoreCorruptionError",
    "create_store",
]

"""
Abstract Key-Value Store

DESIGN DECISION: All persistence goes through one tiny contract:
read a named collection (a JSON array of records) or replace it whole.
This allows us to:
1. Keep data in JSON files on disk for the app
2. Use in-memory storage for testing
3. Swap in a real database later without touching the repositories

The interface is intentionally simple - we're not building a full ORM.

On top of the raw contract this base class provides:
- per-collection locks so read-modify-write sequences don't interleave
- atomic(): stage several collection writes and commit them together,
  rolling back what was already written if a later write fails

THREADING: One store is shared by every client of the app. Streamlit
runs each browser session in its own thread with its own event loop,
so locks are thread locks (usable from any loop) and atomic() staging
is bound to the calling task's context, never to the store.
"""

import asyncio
import copy
import json
import threading
from abc import ABC, abstractmethod
from contextlib import AsyncExitStack, asynccontextmanager
from contextvars import ContextVar
from enum import Enum
from typing import AsyncIterator, Optional


class Collection(str, Enum):
    """Named collections held by the store."""
    USERS = "users"
    TRANSACTIONS = "transactions"
    BUDGETS = "budgets"
    DEBTS = "debts"
    GOALS = "goals"
    PROGRESS = "progress"
    
    # Remembered-login markers, one per client; not user data
    SESSION = "session"


# Collections whose records carry an owning user id
USER_OWNED_COLLECTIONS = (
    Collection.TRANSACTIONS,
    Collection.BUDGETS,
    Collection.DEBTS,
    Collection.GOALS,
    Collection.PROGRESS,
)

# On-disk field holding the owning user id
OWNER_FIELD = "userId"


class CollectionLock:
    """
    Single-writer lock for one collection.
    
    Backed by a threading.Lock so it excludes holders in other threads
    and other event loops. A contended acquire retries on a short sleep,
    which keeps the caller's event loop free to let the holder finish
    and leaves nothing holding the lock if the waiter is cancelled.
    """
    
    # Seconds between attempts while another holder has the lock
    poll_interval = 0.005
    
    def __init__(self):
        self._lock = threading.Lock()
    
    def locked(self) -> bool:
        return self._lock.locked()
    
    async def __aenter__(self) -> "CollectionLock":
        while not self._lock.acquire(blocking=False):
            await asyncio.sleep(self.poll_interval)
        return self
    
    async def __aexit__(self, exc_type, exc, tb) -> None:
        self._lock.release()


class KeyValueStore(ABC):
    """
    Base class for key-value store backends.
    
    Backends implement the three raw text operations; everything else
    (JSON decoding, staging, locking) lives here.
    """
    
    def __init__(self, key_prefix: str = "finora_"):
        self._key_prefix = key_prefix
        self._locks: dict[str, CollectionLock] = {}
        self._locks_guard = threading.Lock()
        self._staged: ContextVar[Optional[dict[str, list[dict]]]] = ContextVar(
            f"finora_staged_{id(self)}", default=None
        )
    
    # -------------------------------------------------------------------------
    # Backend contract
    # -------------------------------------------------------------------------
    
    @abstractmethod
    def _load_text(self, key: str) -> Optional[str]:
        """Return the stored text for key, or None if never written."""
        pass
    
    @abstractmethod
    def _save_text(self, key: str, text: str) -> None:
        """Replace the stored text for key."""
        pass
    
    @abstractmethod
    def _delete_text(self, key: str) -> None:
        """Forget key entirely (no-op if absent)."""
        pass
    
    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------
    
    def key_for(self, collection: Collection) -> str:
        return f"{self._key_prefix}{collection.value}"
    
    async def read(self, collection: Collection) -> list[dict]:
        """
        Read a whole collection.
        
        Returns:
            The stored records in order (empty if never written)
        
        Raises:
            StoreCorruptionError: If the stored text is not a JSON array
        """
        key = self.key_for(collection)
        staged = self._staged.get()
        if staged is not None and key in staged:
            return copy.deepcopy(staged[key])
        
        text = self._load_text(key)
        if text is None:
            return []
        
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise StoreCorruptionError(collection.value, str(e)) from e
        
        if not isinstance(data, list):
            raise StoreCorruptionError(
                collection.value,
                f"expected a JSON array, found {type(data).__name__}",
            )
        return data
    
    async def write(self, collection: Collection, records: list[dict]) -> None:
        """
        Replace a whole collection.
        
        Inside the caller's own atomic() block the write is staged until
        the block exits. Writes from other threads or tasks are unaffected.
        """
        key = self.key_for(collection)
        staged = self._staged.get()
        if staged is not None:
            staged[key] = copy.deepcopy(records)
            return
        self._save_text(key, json.dumps(records))
    
    def lock(self, collection: Collection) -> CollectionLock:
        """The single-writer lock for a collection."""
        key = self.key_for(collection)
        with self._locks_guard:
            if key not in self._locks:
                self._locks[key] = CollectionLock()
            return self._locks[key]
    
    @asynccontextmanager
    async def locked(self, *collections: Collection) -> AsyncIterator[None]:
        """
        Hold the locks of several collections at once.
        
        Locks are always taken in name order so two multi-collection
        operations cannot deadlock each other.
        """
        async with AsyncExitStack() as stack:
            for collection in sorted(set(collections), key=lambda c: c.value):
                await stack.enter_async_context(self.lock(collection))
            yield
    
    @asynccontextmanager
    async def atomic(self) -> AsyncIterator["KeyValueStore"]:
        """
        Stage writes and commit them together.
        
        Staging belongs to the calling task; callers hold the locks of
        every collection they write. If the block raises, nothing is
        written. If a write fails during commit, collections already
        written are restored to their previous text and StorageError
        is raised.
        """
        if self._staged.get() is not None:
            raise StorageError("Nested atomic blocks are not supported")
        
        staged: dict[str, list[dict]] = {}
        token = self._staged.set(staged)
        try:
            yield self
        finally:
            self._staged.reset(token)
        
        self._commit(staged)
    
    def _commit(self, staged: dict[str, list[dict]]) -> None:
        # Previous text of every key written so far
        snapshots: dict[str, Optional[str]] = {}
        try:
            for key, records in staged.items():
                previous = self._load_text(key)
                self._save_text(key, json.dumps(records))
                snapshots[key] = previous
        except Exception as e:
            for key, text in snapshots.items():
                if text is None:
                    self._delete_text(key)
                else:
                    self._save_text(key, text)
            raise StorageError(f"Atomic commit failed and was rolled back: {e}") from e


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StoreCorruptionError(StorageError):
    """A stored collection could not be decoded."""
    
    def __init__(self, collection: str, reason: str):
        self.collection = collection
        self.reason = reason
        super().__init__(f"Collection '{collection}' is corrupted: {reason}")

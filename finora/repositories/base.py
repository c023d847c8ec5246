"""
Repository Base Classes

Typed access to one store collection. Every repository:
- decodes stored records into pydantic models (and encodes them back)
- scopes reads by the owning user's id
- holds its collection's lock across each read-modify-write

DESIGN DECISION: A loaded collection is indexed as an ordered
key -> model mapping before it is mutated. Updating or deleting a key
that is not there raises NotFoundError instead of silently doing nothing.
"""

from typing import Any, Callable, Generic, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, ValidationError

from finora.models.entities import StoredRecord
from finora.services.storage import (
    Collection,
    KeyValueStore,
    NotFoundError,
    StoreCorruptionError,
)


ModelT = TypeVar("ModelT", bound=StoredRecord)
CreateT = TypeVar("CreateT", bound=BaseModel)


class Repository(Generic[ModelT]):
    """
    Common plumbing for a collection of ModelT records.
    
    Subclasses set `collection` and `model`, and override `_key` when
    records are not keyed by their `id`.
    """
    
    collection: Collection
    model: type[ModelT]
    
    def __init__(self, store: KeyValueStore):
        self._store = store
    
    def _key(self, item: ModelT) -> UUID:
        return item.id
    
    def _decode(self, record: dict) -> ModelT:
        try:
            return self.model.model_validate(record)
        except ValidationError as e:
            raise StoreCorruptionError(self.collection.value, str(e)) from e
    
    async def _load(self) -> dict[UUID, ModelT]:
        """Whole collection, indexed by key, in stored order."""
        records = await self._store.read(self.collection)
        items: dict[UUID, ModelT] = {}
        for record in records:
            item = self._decode(record)
            items[self._key(item)] = item
        return items
    
    async def _save(self, items: dict[UUID, ModelT]) -> None:
        await self._store.write(
            self.collection,
            [item.to_record() for item in items.values()],
        )
    
    async def find_all_by_user(self, user_id: UUID) -> list[ModelT]:
        """Every record owned by user_id, in stored order."""
        items = await self._load()
        return [item for item in items.values() if item.user_id == user_id]


class RecordRepository(Repository[ModelT], Generic[ModelT, CreateT]):
    """
    Repository for id-keyed records with insert / update / delete.
    """
    
    entity_name: str = "record"
    
    async def find_by_id(
        self,
        record_id: UUID,
        user_id: Optional[UUID] = None,
    ) -> Optional[ModelT]:
        """
        Look up one record.
        
        If user_id is given, records owned by anyone else are invisible.
        """
        items = await self._load()
        item = items.get(record_id)
        if item is None or (user_id is not None and item.user_id != user_id):
            return None
        return item
    
    async def insert(self, payload: CreateT) -> ModelT:
        """
        Store a new record with a freshly assigned id.
        
        Returns:
            The stored record
        """
        item = self.model.model_validate(payload.model_dump())
        async with self._store.lock(self.collection):
            items = await self._load()
            items[self._key(item)] = item
            await self._save(items)
        return item
    
    async def update(self, item: ModelT) -> ModelT:
        """
        Replace a record by id.
        
        Raises:
            NotFoundError: If no record has this id
        """
        async with self._store.lock(self.collection):
            items = await self._load()
            if self._key(item) not in items:
                raise NotFoundError(f"{self.entity_name.capitalize()} not found: {self._key(item)}")
            items[self._key(item)] = item
            await self._save(items)
        return item
    
    async def modify(
        self,
        record_id: UUID,
        user_id: UUID,
        change: Callable[[ModelT], dict[str, Any]],
    ) -> ModelT:
        """
        Update fields of one record from its current stored value.
        
        The collection lock is held from the read to the write, so
        concurrent changes to the same record are applied one after the
        other instead of overwriting each other.
        
        Args:
            record_id: Record to change
            user_id: Owner; records owned by anyone else are invisible
            change: Maps the current record to the fields to replace
        
        Raises:
            NotFoundError: If the user has no such record
        """
        async with self._store.lock(self.collection):
            items = await self._load()
            item = items.get(record_id)
            if item is None or item.user_id != user_id:
                raise NotFoundError(f"{self.entity_name.capitalize()} not found: {record_id}")
            updated = item.model_copy(update=change(item))
            items[record_id] = updated
            await self._save(items)
        return updated
    
    async def delete_by_id(
        self,
        record_id: UUID,
        user_id: Optional[UUID] = None,
    ) -> None:
        """
        Delete a record by id.
        
        Raises:
            NotFoundError: If no such record exists (or, with user_id,
                           if it belongs to someone else)
        """
        async with self._store.lock(self.collection):
            items = await self._load()
            item = items.get(record_id)
            if item is None or (user_id is not None and item.user_id != user_id):
                raise NotFoundError(f"{self.entity_name.capitalize()} not found: {record_id}")
            del items[record_id]
            await self._save(items)

"""
Tests for the key-value store backends.

Covers decoding, corruption detection, atomic staging with rollback,
sharing one store across threads, and the JSON-file backend on a
temporary directory.
"""

import asyncio
import json
import threading
import time

import pytest

from finora.services.storage import (
    Collection,
    InMemoryStore,
    JsonFileStore,
    StorageError,
    StoreCorruptionError,
    create_store,
)


class FailingStore(InMemoryStore):
    """In-memory store whose writes to one key always fail."""
    
    def __init__(self, failing_key: str, **kwargs):
        super().__init__(**kwargs)
        self.failing_key = failing_key
    
    def _save_text(self, key, text):
        if key == self.failing_key:
            raise OSError("disk full")
        super()._save_text(key, text)


class TestReadWrite:
    
    @pytest.mark.asyncio
    async def test_missing_collection_reads_empty(self, store):
        assert await store.read(Collection.DEBTS) == []
    
    @pytest.mark.asyncio
    async def test_write_then_read(self, store):
        records = [{"id": "1", "userId": "u"}]
        await store.write(Collection.GOALS, records)
        assert await store.read(Collection.GOALS) == records
        assert json.loads(store.raw("finora_goals")) == records
    
    def test_keys_use_prefix(self):
        assert InMemoryStore().key_for(Collection.USERS) == "finora_users"
        assert InMemoryStore(key_prefix="x_").key_for(Collection.PROGRESS) == "x_progress"


class TestCorruption:
    """A malformed collection is reported, never treated as empty."""
    
    @pytest.mark.asyncio
    async def test_invalid_json(self):
        store = InMemoryStore({"finora_transactions": "{not json"})
        with pytest.raises(StoreCorruptionError) as exc_info:
            await store.read(Collection.TRANSACTIONS)
        assert exc_info.value.collection == "transactions"
    
    @pytest.mark.asyncio
    async def test_non_array_payload(self):
        store = InMemoryStore({"finora_users": '{"id": "1"}'})
        with pytest.raises(StoreCorruptionError, match="expected a JSON array"):
            await store.read(Collection.USERS)
    
    def test_corruption_is_a_storage_error(self):
        assert issubclass(StoreCorruptionError, StorageError)


class TestAtomic:
    
    @pytest.mark.asyncio
    async def test_writes_are_staged_until_exit(self, store):
        async with store.atomic():
            await store.write(Collection.DEBTS, [{"id": "d"}])
            assert store.raw("finora_debts") is None
            # reads inside the block see staged data
            assert await store.read(Collection.DEBTS) == [{"id": "d"}]
        assert await store.read(Collection.DEBTS) == [{"id": "d"}]
    
    @pytest.mark.asyncio
    async def test_exception_discards_staged_writes(self, store):
        with pytest.raises(RuntimeError):
            async with store.atomic():
                await store.write(Collection.DEBTS, [{"id": "d"}])
                raise RuntimeError("boom")
        assert store.raw("finora_debts") is None
    
    @pytest.mark.asyncio
    async def test_failed_commit_rolls_back(self):
        store = FailingStore("finora_goals")
        await store.write(Collection.DEBTS, [{"id": "old"}])
        
        with pytest.raises(StorageError, match="rolled back"):
            async with store.atomic():
                await store.write(Collection.DEBTS, [])
                await store.write(Collection.BUDGETS, [{"id": "b"}])
                await store.write(Collection.GOALS, [])
        
        assert await store.read(Collection.DEBTS) == [{"id": "old"}]
        assert store.raw("finora_budgets") is None
    
    @pytest.mark.asyncio
    async def test_nesting_rejected(self, store):
        async with store.atomic():
            with pytest.raises(StorageError, match="Nested"):
                async with store.atomic():
                    pass


class TestLocks:
    
    def test_one_lock_per_collection(self, store):
        assert store.lock(Collection.DEBTS) is store.lock(Collection.DEBTS)
        assert store.lock(Collection.DEBTS) is not store.lock(Collection.GOALS)
    
    @pytest.mark.asyncio
    async def test_locked_holds_all(self, store):
        async with store.locked(Collection.USERS, Collection.DEBTS, Collection.DEBTS):
            assert store.lock(Collection.USERS).locked()
            assert store.lock(Collection.DEBTS).locked()
        assert not store.lock(Collection.USERS).locked()


class TestThreadedClients:
    """One store shared by sessions running on separate threads and loops."""
    
    def test_lock_excludes_other_threads(self, store, run_in_threads):
        events = []
        holding = threading.Event()
        
        async def holder():
            async with store.lock(Collection.DEBTS):
                holding.set()
                events.append("holder acquired")
                time.sleep(0.2)
                events.append("holder released")
        
        async def waiter():
            assert holding.wait(5)
            async with store.lock(Collection.DEBTS):
                events.append("waiter acquired")
        
        run_in_threads(holder, waiter)
        assert events == ["holder acquired", "holder released", "waiter acquired"]
        assert not store.lock(Collection.DEBTS).locked()
    
    @pytest.mark.asyncio
    async def test_cancelled_waiter_leaves_lock_free(self, store):
        lock = store.lock(Collection.GOALS)
        async with lock:
            waiting = asyncio.ensure_future(lock.__aenter__())
            await asyncio.sleep(0.02)
            waiting.cancel()
            with pytest.raises(asyncio.CancelledError):
                await waiting
        assert not lock.locked()
    
    def test_atomic_does_not_capture_other_threads(self, store, run_in_threads):
        staged = threading.Event()
        written = threading.Event()
        
        async def abandoned_batch():
            with pytest.raises(RuntimeError):
                async with store.atomic():
                    await store.write(Collection.DEBTS, [{"id": "staged"}])
                    staged.set()
                    assert written.wait(5)
                    raise RuntimeError("abandon batch")
        
        async def direct_write():
            assert staged.wait(5)
            await store.write(Collection.GOALS, [{"id": "g"}])
            written.set()
        
        run_in_threads(abandoned_batch, direct_write)
        assert json.loads(store.raw("finora_goals")) == [{"id": "g"}]
        assert store.raw("finora_debts") is None
    
    def test_atomic_commits_alongside_other_threads(self, store, run_in_threads):
        staged = threading.Event()
        written = threading.Event()
        
        async def batch():
            async with store.atomic():
                await store.write(Collection.DEBTS, [{"id": "d"}])
                staged.set()
                assert written.wait(5)
                # the other thread's write is not part of this batch
                assert await store.read(Collection.GOALS) == [{"id": "g"}]
        
        async def direct_write():
            assert staged.wait(5)
            assert await store.read(Collection.DEBTS) == []
            await store.write(Collection.GOALS, [{"id": "g"}])
            written.set()
        
        run_in_threads(batch, direct_write)
        assert json.loads(store.raw("finora_debts")) == [{"id": "d"}]
        assert json.loads(store.raw("finora_goals")) == [{"id": "g"}]


class TestJsonFileStore:
    
    @pytest.mark.asyncio
    async def test_persists_one_file_per_collection(self, tmp_path):
        store = JsonFileStore(data_dir=str(tmp_path))
        await store.write(Collection.TRANSACTIONS, [{"id": "t1"}])
        
        path = tmp_path / "finora_transactions.json"
        assert json.loads(path.read_text(encoding="utf-8")) == [{"id": "t1"}]
        assert not list(tmp_path.glob("*.tmp"))
    
    @pytest.mark.asyncio
    async def test_reopen_reads_existing_data(self, tmp_path):
        await JsonFileStore(data_dir=str(tmp_path)).write(Collection.GOALS, [{"id": "g"}])
        assert await JsonFileStore(data_dir=str(tmp_path)).read(Collection.GOALS) == [{"id": "g"}]
    
    @pytest.mark.asyncio
    async def test_corrupt_file(self, tmp_path):
        (tmp_path / "finora_debts.json").write_text("[1, 2", encoding="utf-8")
        with pytest.raises(StoreCorruptionError):
            await JsonFileStore(data_dir=str(tmp_path)).read(Collection.DEBTS)
    
    @pytest.mark.asyncio
    async def test_atomic_commit_writes_files(self, tmp_path):
        store = JsonFileStore(data_dir=str(tmp_path))
        async with store.atomic():
            await store.write(Collection.BUDGETS, [{"id": "b"}])
            assert not (tmp_path / "finora_budgets.json").exists()
        assert (tmp_path / "finora_budgets.json").exists()


class TestCreateStore:
    
    def test_memory_backend(self):
        assert isinstance(create_store(), InMemoryStore)
    
    def test_file_backend(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FINORA_STORE_BACKEND", "file")
        monkeypatch.setenv("FINORA_STORE_DATA_DIR", str(tmp_path / "data"))
        store = create_store()
        assert isinstance(store, JsonFileStore)
        assert store.data_dir == tmp_path / "data"

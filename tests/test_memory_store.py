import asyncio
from datetime import date, time

import pytest

from pyparkcharge.exceptions import ConflictError, ValidationError
from pyparkcharge.store.memory import MemoryStore


@pytest.mark.asyncio
async def test_insert_assigns_auto_ids_and_encodes_values() -> None:
    store = MemoryStore(auto_ids={"T": "id"})
    first = await store.insert("T", {"date": date(2025, 6, 1), "from_time": time(10)})
    second = await store.insert("T", {"date": "2025-06-02"})
    assert first == {"date": "2025-06-01", "from_time": "10:00", "id": 1}
    assert second["id"] == 2


@pytest.mark.asyncio
async def test_select_filters_by_equality() -> None:
    store = MemoryStore({"T": [{"a": 1, "b": "x"}, {"a": 2, "b": "x"}, {"a": 1, "b": None}]})
    assert await store.select("T", {"a": "1", "b": "x"}) == [{"a": 1, "b": "x"}]
    assert await store.select("T", {"b": None}) == [{"a": 1, "b": None}]
    assert await store.select("missing") == []


@pytest.mark.asyncio
async def test_delete_and_update() -> None:
    store = MemoryStore({"T": [{"id": 1, "s": "a"}, {"id": 2, "s": "a"}]})
    updated = await store.update("T", {"id": 2}, {"s": "b"})
    assert updated == [{"id": 2, "s": "b"}]
    removed = await store.delete("T", {"s": "a"})
    assert removed == [{"id": 1, "s": "a"}]
    assert store.rows("T") == [{"id": 2, "s": "b"}]


@pytest.mark.asyncio
async def test_mutations_require_filters() -> None:
    store = MemoryStore({"T": [{"id": 1}]})
    with pytest.raises(ValidationError):
        await store.delete("T", {})
    with pytest.raises(ValidationError):
        await store.update("T", {}, {"id": 2})


@pytest.mark.asyncio
async def test_unique_keys_reject_concurrent_duplicates() -> None:
    store = MemoryStore(unique_keys={"T": ("slot",)}, latency=0.01)
    results = await asyncio.gather(
        store.insert("T", {"slot": "10:00"}),
        store.insert("T", {"slot": "10:00"}),
        return_exceptions=True,
    )
    assert sum(isinstance(result, ConflictError) for result in results) == 1
    assert len(store.rows("T")) == 1


@pytest.mark.asyncio
async def test_returned_rows_are_copies() -> None:
    store = MemoryStore({"T": [{"id": 1}]})
    rows = await store.select("T")
    rows[0]["id"] = 99
    assert store.rows("T") == [{"id": 1}]

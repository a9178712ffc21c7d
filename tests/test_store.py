"""Tests for the key-value store."""
import pytest
from sqlalchemy import insert, select
from data.store import (
    DataParsingError,
    KeyTypeError,
    KeyValueStore,
    UnderlyingStoreError,
    ValueSerializationError,
)


async def test_missing_key_is_none(store):
    assert await store.get("nobody") is None


@pytest.mark.parametrize("value", [1, "text", {"count": 3, "tags": ["a"]}, [1, 2], True])
async def test_set_then_get(store, value):
    assert await store.set("U1", value) is True
    assert await store.get("U1") == value


async def test_set_overwrites(store):
    await store.set("U1", 1)
    await store.set("U1", 2)
    assert await store.get("U1") == 2


async def test_remove(store):
    await store.set("U1", 1)
    assert await store.remove("U1") is True
    assert await store.remove("U1") is False
    assert await store.get("U1") is None


async def test_remove_many(store):
    await store.set("a", 1)
    await store.set("b", 2)
    assert await store.remove_many(["a", "b", "c"]) == [True, True, False]


@pytest.mark.parametrize("key", [1, None, ("a",), b"bytes"])
async def test_non_string_keys_fail_before_io(key):
    # Engine that would fail on any use
    store = KeyValueStore(engine=None, collection="unused")
    with pytest.raises(KeyTypeError):
        await store.get(key)
    with pytest.raises(KeyTypeError):
        await store.set(key, 1)
    with pytest.raises(KeyTypeError):
        await store.remove(key)
    with pytest.raises(KeyTypeError):
        await store.remove_many(["ok", key])


async def test_unserializable_value(store):
    with pytest.raises(ValueSerializationError):
        await store.set("U1", object())


async def test_corrupt_value(store):
    async with store.engine.begin() as conn:
        await conn.execute(insert(store.table).values(key="bad", value="{not json"))

    with pytest.raises(DataParsingError):
        await store.get("bad")


async def test_collections_are_separate(store):
    other = KeyValueStore(store.engine, "other")
    async with store.engine.begin() as conn:
        await conn.run_sync(other.metadata.create_all)

    await store.set("k", "first")
    await other.set("k", "second")

    assert await store.get("k") == "first"
    assert await other.get("k") == "second"


async def test_connect_failure(tmp_path):
    with pytest.raises(UnderlyingStoreError):
        await KeyValueStore.connect(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'kv.db'}", "keyvalue")


async def test_set_stamps_updated_at(store):
    await store.set("U1", 1)
    await store.set("U1", 2)

    async with store.engine.connect() as conn:
        result = await conn.execute(select(store.table.c.updated_at).where(store.table.c.key == "U1"))
        assert result.scalar_one() is not None

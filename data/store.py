"""Asynchronous key-value store used by handlers for persistence."""
import json
import logging
from typing import Any, Iterable, List, Optional

from sqlalchemy import MetaData, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from models.record import keyvalue_table

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Base class for key-value store errors."""


class KeyTypeError(StoreError, TypeError):
    """Key is not a string."""

    def __init__(self, key: Any):
        super().__init__(f"Store keys must be strings, got {type(key).__name__} instead")
        self.key = key


class ValueSerializationError(StoreError):
    """Value could not be serialized to JSON."""

    def __init__(self, value: Any, error: Exception):
        super().__init__(f"Failed to serialize value to JSON: {error}")
        self.value = value
        self.error = error


class DataParsingError(StoreError):
    """Stored data could not be deserialized from JSON."""

    def __init__(self, data: str, error: Exception):
        super().__init__(f"Failed to deserialize value from JSON: {error}")
        self.data = data
        self.error = error


class UnderlyingStoreError(StoreError):
    """The database returned an error."""

    def __init__(self, operation: str, key: Any, error: Exception):
        super().__init__(f"Database error during {operation} of '{key}': {error}")
        self.operation = operation
        self.key = key
        self.error = error


def _check_key(key: Any):
    if not isinstance(key, str):
        raise KeyTypeError(key)


class KeyValueStore:
    """
    JSON values stored by string key in one table (the "collection").

    Obtain a connected store with ``await KeyValueStore.connect(uri, name)``
    and release it with ``await store.close()``.
    """

    def __init__(self, engine: AsyncEngine, collection: str):
        """Initialize store on an existing engine."""
        self.engine = engine
        self.collection = collection
        self.metadata = MetaData()
        self.table = keyvalue_table(self.metadata, collection)

    @classmethod
    async def connect(cls, uri: str, collection: str) -> "KeyValueStore":
        """
        Connect to the database and make sure the collection table exists.

        Args:
            uri: SQLAlchemy async database URL
            collection: Table name

        Returns:
            Connected store
        """
        try:
            engine = create_async_engine(uri)
            store = cls(engine, collection)
            async with engine.begin() as conn:
                await conn.run_sync(store.metadata.create_all)
        except SQLAlchemyError as e:
            raise UnderlyingStoreError("connect", collection, e) from e
        logger.info(f"Connected key-value store '{collection}'")
        return store

    async def close(self):
        """Dispose of the engine's connections."""
        await self.engine.dispose()

    async def get(self, key: str) -> Optional[Any]:
        """
        Fetch a value by key.

        Returns:
            Deserialized value, or None if the key is not set
        """
        _check_key(key)
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(
                    select(self.table.c.value).where(self.table.c.key == key)
                )
                data = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise UnderlyingStoreError("get", key, e) from e

        if data is None:
            return None
        try:
            return json.loads(data)
        except ValueError as e:
            raise DataParsingError(data, e) from e

    async def set(self, key: str, value: Any) -> bool:
        """Serialize a value to JSON and store it under key."""
        _check_key(key)
        try:
            serialized = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise ValueSerializationError(value, e) from e

        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(
                    update(self.table)
                    .where(self.table.c.key == key)
                    .values(value=serialized)
                )
                if result.rowcount == 0:
                    await conn.execute(insert(self.table).values(key=key, value=serialized))
        except SQLAlchemyError as e:
            raise UnderlyingStoreError("set", key, e) from e
        return True

    async def remove(self, key: str) -> bool:
        """
        Delete a key.

        Returns:
            True if a value was removed
        """
        _check_key(key)
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(delete(self.table).where(self.table.c.key == key))
        except SQLAlchemyError as e:
            raise UnderlyingStoreError("remove", key, e) from e
        return result.rowcount > 0

    async def remove_many(self, keys: Iterable[str]) -> List[bool]:
        """Delete several keys."""
        keys = list(keys)
        for key in keys:
            _check_key(key)
        results = []
        for key in keys:
            results.append(await self.remove(key))
        return results

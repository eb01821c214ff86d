"""CompeteHub Notifier — Key/Value Store Capability.

The deduplication gate only needs "get a key" and "put a key with a
TTL". KeyValueStore is that capability; SqliteKeyValueStore backs it
with the kv_entries table.
"""

from __future__ import annotations

from typing import Optional, Protocol

from src.database import queries
from src.database.db import Database


class KeyValueStore(Protocol):
    """Minimal TTL key/value capability used for seen markers."""

    async def get(self, key: str) -> Optional[str]:
        """Return the live value for `key`, or None."""
        ...

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store `value` under `key`, expiring after `ttl_seconds`."""
        ...


class SqliteKeyValueStore:
    """KeyValueStore implementation over an aiosqlite Database."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def get(self, key: str) -> Optional[str]:
        return await queries.kv_get(self.db, key)

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        await queries.kv_put(self.db, key, value, ttl_seconds)

    async def purge_expired(self) -> int:
        return await queries.purge_expired(self.db)

    def __repr__(self) -> str:
        return f"SqliteKeyValueStore(path={self.db.db_path!r})"

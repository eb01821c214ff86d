"""CompeteHub Notifier — Database Query Operations.

Async key/value operations over the kv_entries table. Every function:
  - Uses parameterized queries (? placeholders, never f-strings for SQL)
  - Handles connection via the Database instance
  - Commits after writes
  - Logs operations at DEBUG level

Expiry is stored as an absolute Unix timestamp; expired rows are
invisible to reads and replaced by writes.
"""

from __future__ import annotations

import time
from typing import Optional

from src.database.db import Database
from src.utils.logger import get_logger

logger = get_logger(__name__)


async def kv_get(db: Database, key: str, now: Optional[float] = None) -> Optional[str]:
    """Return the live value stored under `key`.

    Args:
        db: Active database instance.
        key: Entry key, e.g. "seen:123".
        now: Override of the current Unix time (tests).

    Returns:
        The stored value, or None when absent or expired.
    """
    current = time.time() if now is None else now
    conn = await db.get_connection()
    cursor = await conn.execute(
        "SELECT value FROM kv_entries WHERE key = ? AND expires_at > ? LIMIT 1",
        (key, current),
    )
    row = await cursor.fetchone()
    await cursor.close()
    logger.debug("kv_get(%s) = %s", key, "hit" if row is not None else "miss")
    return row["value"] if row is not None else None


async def kv_put(
    db: Database,
    key: str,
    value: str,
    ttl_seconds: int,
    now: Optional[float] = None,
) -> None:
    """Insert or replace an entry that expires after `ttl_seconds`.

    Args:
        db: Active database instance.
        key: Entry key.
        value: Entry value (opaque text, usually JSON).
        ttl_seconds: Lifetime of the entry.
        now: Override of the current Unix time (tests).
    """
    if ttl_seconds <= 0:
        raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")

    current = time.time() if now is None else now
    conn = await db.get_connection()
    await conn.execute(
        """
        INSERT INTO kv_entries (key, value, expires_at, updated_at)
        VALUES (?, ?, ?, datetime('now'))
        ON CONFLICT(key) DO UPDATE SET
            value = excluded.value,
            expires_at = excluded.expires_at,
            updated_at = excluded.updated_at
        """,
        (key, value, current + ttl_seconds),
    )
    await conn.commit()
    logger.debug("kv_put(%s) ttl=%ds", key, ttl_seconds)


async def purge_expired(db: Database, now: Optional[float] = None) -> int:
    """Delete expired entries.

    Returns:
        Number of rows removed.
    """
    current = time.time() if now is None else now
    conn = await db.get_connection()
    cursor = await conn.execute(
        "DELETE FROM kv_entries WHERE expires_at <= ?",
        (current,),
    )
    deleted = cursor.rowcount
    await conn.commit()
    logger.debug("Purged %d expired entries", deleted)
    return deleted


async def count_entries(db: Database, prefix: str = "") -> int:
    """Count live entries whose key starts with `prefix`."""
    conn = await db.get_connection()
    cursor = await conn.execute(
        "SELECT COUNT(*) AS n FROM kv_entries WHERE key LIKE ? ESCAPE '\\' AND expires_at > ?",
        (prefix.replace("%", r"\%").replace("_", r"\_") + "%", time.time()),
    )
    row = await cursor.fetchone()
    await cursor.close()
    return int(row["n"]) if row else 0

"""CompeteHub Notifier — SQLite Connection Manager.

Provides async SQLite connection management using aiosqlite. Handles
database initialization, the key/value schema backing seen markers,
and connection lifecycle.
"""

from __future__ import annotations

import aiosqlite
from pathlib import Path

from src.utils.logger import get_logger

logger = get_logger(__name__)

# ── Schema Definitions ────────────────────────────────────
SCHEMA_SQL = """
-- ═══ Key/Value Entries ═══
-- Generic TTL-bound entries. Seen markers live under 'seen:{id}' keys.
CREATE TABLE IF NOT EXISTS kv_entries (
    key         TEXT    PRIMARY KEY,
    value       TEXT    NOT NULL,
    expires_at  REAL    NOT NULL,
    updated_at  DATETIME DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_kv_entries_expires_at ON kv_entries(expires_at);
"""


class Database:
    """Async SQLite database connection manager.

    Keeps one persistent connection with WAL mode enabled. Use
    ":memory:" as the path for a throwaway database.

    Attributes:
        db_path: Resolved path to the SQLite file, or ":memory:".
    """

    def __init__(self, db_path: str) -> None:
        """Initialize the database manager.

        Args:
            db_path: Relative or absolute path to the SQLite database file.
                     Parent directories are created on initialize().
        """
        self.db_path = db_path if db_path == ":memory:" else str(Path(db_path).resolve())
        self._connection: aiosqlite.Connection | None = None
        logger.debug("Database manager initialized with path: %s", self.db_path)

    async def initialize(self) -> None:
        """Open the connection, set pragmas and create the schema."""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        logger.info("Connecting to database: %s", self.db_path)
        self._connection = await aiosqlite.connect(self.db_path)

        # WAL keeps readers unblocked while markers are written
        await self._connection.execute("PRAGMA journal_mode=WAL")
        self._connection.row_factory = aiosqlite.Row

        await self._connection.executescript(SCHEMA_SQL)
        await self._connection.commit()

        logger.info("Database initialized — kv_entries ready")

    async def get_connection(self) -> aiosqlite.Connection:
        """Get the active database connection, initializing if necessary."""
        if self._connection is None:
            await self.initialize()
        return self._connection

    async def close(self) -> None:
        """Close the connection. Safe to call when already closed."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("Database connection closed")

    async def __aenter__(self) -> "Database":
        await self.initialize()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

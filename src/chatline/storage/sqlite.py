"""SQLite storage area.

Provides durable key-value storage using a SQLite database file.
Uses aiosqlite for async access.
"""

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from .base import StorageArea
from .errors import StorageError


class SQLiteStorageArea(StorageArea):
    """SQLite-backed storage area.

    Plays the role of the browser's local storage: survives restarts and
    is shared by every context that holds a reference to the same area.
    """

    def __init__(self, path: str | Path = "./chatline_storage.db"):
        super().__init__()
        self._db_path = Path(path).expanduser()
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open the database connection and create the schema."""
        if self._connection is not None:
            return
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = await aiosqlite.connect(self._db_path)
            await self._connection.execute("""
                CREATE TABLE IF NOT EXISTS items (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            await self._connection.commit()
        except (aiosqlite.Error, OSError) as e:
            self._connection = None
            raise StorageError(f"Cannot open storage at {self._db_path}: {e}") from e

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise StorageError("SQLite storage area is not connected")
        return self._connection

    async def get_item(self, key: str) -> str | None:
        conn = self._require_connection()
        try:
            async with conn.execute(
                "SELECT value FROM items WHERE key = ?",
                (key,)
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to read '{key}': {e}") from e
        return row[0] if row else None

    async def keys(self) -> list[str]:
        conn = self._require_connection()
        try:
            async with conn.execute("SELECT key FROM items ORDER BY key") as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to list keys: {e}") from e
        return [row[0] for row in rows]

    async def _write(self, key: str, value: str) -> None:
        conn = self._require_connection()
        try:
            await conn.execute("""
                INSERT INTO items (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
            """, (key, value, datetime.now(timezone.utc).isoformat()))
            await conn.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to write '{key}': {e}") from e

    async def _delete(self, key: str) -> None:
        conn = self._require_connection()
        try:
            await conn.execute("DELETE FROM items WHERE key = ?", (key,))
            await conn.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to delete '{key}': {e}") from e

    @property
    def backend_type(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path

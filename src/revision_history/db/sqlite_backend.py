"""SQLite implementation of the Database protocol.

Thin wrapper around aiosqlite.Connection — no SQL translation needed
since application code already uses SQLite-flavored SQL.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import aiosqlite

    from revision_history.db.backend import Cursor, Params, Row, Statement

logger = logging.getLogger(__name__)


class SQLiteCursor:
    """Wraps aiosqlite.Cursor to satisfy the Cursor protocol."""

    def __init__(self, cursor: aiosqlite.Cursor) -> None:
        """Initialize with an aiosqlite cursor."""
        self._cursor = cursor

    @property
    def rowcount(self) -> int:
        """Number of rows affected by the last operation."""
        rc = self._cursor.rowcount
        return rc if rc is not None else -1

    async def fetchone(self) -> Row | None:
        """Fetch the next row, or None if exhausted."""
        return await self._cursor.fetchone()

    async def fetchall(self) -> list[Row]:
        """Fetch all remaining rows."""
        return list(await self._cursor.fetchall())


class SQLiteBackend:
    """SQLite implementation of the Database protocol.

    Passes all calls through to the underlying aiosqlite.Connection.
    The raw connection is exposed as ``_conn`` for SQLite-specific
    operations (PRAGMA, etc.) that only run during connection setup.
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        """Initialize with an aiosqlite connection."""
        self._conn = conn

    async def execute(self, sql: str, params: Params = ()) -> Cursor:
        """Execute a single SQL statement and return a cursor."""
        cursor = await self._conn.execute(sql, params)
        return SQLiteCursor(cursor)

    async def batch(self, statements: list[Statement]) -> None:
        """Run all statements in one transaction, rolling back on failure."""
        if not statements:
            return
        # Flush any implicit transaction so BEGIN starts a fresh one
        if self._conn.in_transaction:
            await self._conn.commit()
        await self._conn.execute("BEGIN")
        try:
            for sql, params in statements:
                await self._conn.execute(sql, params)
        except Exception:
            await self._conn.rollback()
            logger.warning("Batch of %d statements rolled back", len(statements))
            raise
        await self._conn.commit()

    async def executescript(self, sql: str) -> None:
        """Execute multiple SQL statements (DDL, migrations)."""
        await self._conn.executescript(sql)

    async def commit(self) -> None:
        """Commit the current transaction."""
        await self._conn.commit()

    async def close(self) -> None:
        """Close the database connection."""
        await self._conn.close()

    # -- Schema --

    async def apply_schema(self) -> None:
        """Apply all SQLite DDL and migrations."""
        from revision_history.db.schema import apply_schema

        await apply_schema(self)

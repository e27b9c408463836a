"""PostgreSQL implementation of the Database protocol.

Uses asyncpg for async access. All application SQL uses ``?``
placeholders — this backend translates them to ``$N`` at execute time.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import asyncpg

    from revision_history.db.backend import Cursor, Params, Row, Statement

logger = logging.getLogger(__name__)

# Pre-compiled regexes for SQL translation
_PLACEHOLDER_RE = re.compile(r"\?")
_UNBOUNDED_LIMIT_RE = re.compile(r"\bLIMIT\s+-1\b", re.IGNORECASE)


def _translate_placeholders(sql: str) -> str:
    """Convert ``?`` placeholders to ``$1, $2, ...`` for asyncpg."""
    counter = 0

    def _replace(_match: re.Match[str]) -> str:
        nonlocal counter
        counter += 1
        return f"${counter}"

    return _PLACEHOLDER_RE.sub(_replace, sql)


def _translate_sql(sql: str) -> str:
    """Translate SQLite-flavored SQL to PostgreSQL.

    ``LIMIT -1`` (SQLite's unbounded limit) becomes ``LIMIT ALL``.
    """
    return _translate_placeholders(_UNBOUNDED_LIMIT_RE.sub("LIMIT ALL", sql))


class PostgresRow:
    """Wraps asyncpg.Record to satisfy the Row protocol."""

    def __init__(self, record: asyncpg.Record) -> None:
        """Initialize with an asyncpg Record."""
        self._record = record

    def __getitem__(self, key: str | int) -> Any:
        """Get a column value by name or position."""
        return self._record[key]

    def keys(self) -> list[str]:
        """Return column names."""
        return list(self._record.keys())


class PostgresCursor:
    """Wraps a list of asyncpg.Record as a Cursor.

    asyncpg returns results eagerly — there's no server-side cursor for
    simple queries. This wraps the result list to match the Cursor protocol.
    """

    def __init__(self, rows: list[asyncpg.Record], status: str | None = None) -> None:
        """Initialize with result rows and optional status string."""
        self._rows = rows
        self._index = 0
        self._rowcount = self._parse_rowcount(status)

    @property
    def rowcount(self) -> int:
        """Number of rows affected by the last operation."""
        return self._rowcount

    async def fetchone(self) -> Row | None:
        """Fetch the next row, or None if exhausted."""
        if self._index >= len(self._rows):
            return None
        row = PostgresRow(self._rows[self._index])
        self._index += 1
        return row

    async def fetchall(self) -> list[Row]:
        """Fetch all remaining rows."""
        remaining: list[Row] = [PostgresRow(r) for r in self._rows[self._index :]]
        self._index = len(self._rows)
        return remaining

    @staticmethod
    def _parse_rowcount(status: str | None) -> int:
        """Parse affected row count from asyncpg status string.

        Examples: "INSERT 0 1" → 1, "UPDATE 3" → 3, "DELETE 0" → 0.
        """
        if not status:
            return -1
        parts = status.split()
        if len(parts) >= 2:
            try:
                return int(parts[-1])
            except ValueError:
                pass
        return -1


class PostgresBackend:
    """PostgreSQL implementation of the Database protocol.

    Each ``execute()`` call acquires a connection from the pool, translates
    ``?`` → ``$N`` placeholders, and releases the connection after.
    ``commit()`` is a no-op — asyncpg auto-commits each statement.
    ``batch()`` holds one connection for an explicit transaction.
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        """Initialize with an asyncpg connection pool."""
        self._pool = pool

    @classmethod
    async def create(cls, url: str) -> PostgresBackend:
        """Create a PostgresBackend from a connection URL."""
        import asyncpg as _asyncpg

        pool = await _asyncpg.create_pool(url, min_size=2, max_size=10)
        return cls(pool)

    async def execute(self, sql: str, params: Params = ()) -> Cursor:
        """Execute a single SQL statement and return a cursor."""
        pg_sql = _translate_sql(sql)
        async with self._pool.acquire() as conn:
            # asyncpg.fetch returns list of Records for SELECT
            # asyncpg.execute returns status string for INSERT/UPDATE/DELETE
            stmt = await conn.prepare(pg_sql)
            if stmt.get_attributes():
                rows = await conn.fetch(pg_sql, *params)
                return PostgresCursor(rows)
            status = await conn.execute(pg_sql, *params)
            return PostgresCursor([], status=status)

    async def batch(self, statements: list[Statement]) -> None:
        """Run all statements in one transaction on a single connection."""
        if not statements:
            return
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                for sql, params in statements:
                    await conn.execute(_translate_sql(sql), *params)

    async def executescript(self, sql: str) -> None:
        """Execute multiple SQL statements."""
        async with self._pool.acquire() as conn:
            await conn.execute(sql)

    async def commit(self) -> None:
        """No-op — asyncpg auto-commits each statement."""

    async def close(self) -> None:
        """Close the connection pool."""
        await self._pool.close()

    # -- Schema --

    async def apply_schema(self) -> None:
        """Apply all PostgreSQL DDL."""
        async with self._pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER NOT NULL
                )
            """)

            await conn.execute("""
                CREATE TABLE IF NOT EXISTS revisions (
                    seq BIGSERIAL PRIMARY KEY,
                    id TEXT NOT NULL UNIQUE,
                    site_id TEXT NOT NULL,
                    entity_type TEXT NOT NULL,
                    entity_id TEXT NOT NULL,
                    revision_hash TEXT NOT NULL,
                    parent_revision_id TEXT,
                    data TEXT NOT NULL,
                    user_id TEXT,
                    message TEXT,
                    created_at BIGINT NOT NULL,
                    is_current INTEGER NOT NULL DEFAULT 0
                )
            """)

            for idx_sql in [
                "CREATE INDEX IF NOT EXISTS idx_revisions_entity"
                " ON revisions(site_id, entity_type, entity_id, created_at)",
                "CREATE INDEX IF NOT EXISTS idx_revisions_hash"
                " ON revisions(entity_type, entity_id, revision_hash)",
                "CREATE INDEX IF NOT EXISTS idx_revisions_current"
                " ON revisions(site_id, entity_type, entity_id, is_current)",
            ]:
                await conn.execute(idx_sql)

            # Schema version init
            row = await conn.fetchrow("SELECT version FROM schema_version")
            if row is None:
                await conn.execute("INSERT INTO schema_version (version) VALUES ($1)", 1)

"""Database connection management."""

import logging
from pathlib import Path

import aiosqlite

from revision_history.config import get_database_url, get_db_path
from revision_history.db.backend import Database
from revision_history.db.sqlite_backend import SQLiteBackend

logger = logging.getLogger(__name__)


async def create_connection(db_path: Path | str | None = None) -> Database:
    """Create and initialize a database connection.

    Dispatches to SQLite or PostgreSQL based on REV_DATABASE_URL.
    For in-memory SQLite databases, pass ":memory:".
    """
    # Explicit ":memory:" always uses SQLite (used by tests)
    if db_path == ":memory:":
        return await _create_sqlite(":memory:")
    url = get_database_url()
    if url and url.startswith("postgresql"):
        return await _create_postgres(url)
    return await _create_sqlite(db_path or get_db_path())


async def _create_sqlite(db_path: Path | str) -> Database:
    """Create a SQLite backend with the revisions schema applied."""
    db_path = str(db_path)

    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row

    # Enable WAL mode for better concurrent read performance
    await conn.execute("PRAGMA journal_mode=WAL")
    logger.debug("SQLite connection opened at %s", db_path)

    db = SQLiteBackend(conn)
    await db.apply_schema()

    return db


async def _create_postgres(url: str) -> Database:
    """Create a PostgreSQL backend with the revisions schema applied."""
    from revision_history.db.postgres_backend import PostgresBackend

    db = await PostgresBackend.create(url)
    await db.apply_schema()
    return db

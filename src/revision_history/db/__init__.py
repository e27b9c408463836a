"""Database connection and schema management."""

from revision_history.db.backend import Cursor, Database, Row, Statement
from revision_history.db.sqlite_backend import SQLiteBackend

try:
    from revision_history.db.postgres_backend import PostgresBackend
except ImportError:
    PostgresBackend = None  # type: ignore[assignment,misc]

__all__ = ["Cursor", "Database", "PostgresBackend", "Row", "SQLiteBackend", "Statement"]

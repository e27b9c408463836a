"""DDL for the revisions database."""

from revision_history.db.backend import Database

SCHEMA_VERSION = 1

# parent_revision_id is not a foreign key. Retention may
# delete a parent, leaving the child as an orphan for the tree builder.
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS revisions (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    site_id TEXT NOT NULL,
    entity_type TEXT NOT NULL,
    entity_id TEXT NOT NULL,
    revision_hash TEXT NOT NULL,
    parent_revision_id TEXT,
    data TEXT NOT NULL,
    user_id TEXT,
    message TEXT,
    created_at INTEGER NOT NULL,
    is_current INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_revisions_entity
    ON revisions(site_id, entity_type, entity_id, created_at);
CREATE INDEX IF NOT EXISTS idx_revisions_hash
    ON revisions(entity_type, entity_id, revision_hash);
CREATE INDEX IF NOT EXISTS idx_revisions_current
    ON revisions(site_id, entity_type, entity_id, is_current);
"""


async def apply_schema(db: Database) -> None:
    """Apply the database schema."""
    await db.executescript(SCHEMA_SQL)

    # Check schema version
    cursor = await db.execute("SELECT version FROM schema_version")
    row = await cursor.fetchone()
    if row is None:
        await db.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))

    await db.commit()

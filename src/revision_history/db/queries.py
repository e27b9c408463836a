"""Query helpers for revision rows."""

import json
from typing import Any

from revision_history.db.backend import Database, Row, Statement
from revision_history.models.revision import (
    EntityType,
    GetRevisionsOptions,
    Revision,
    RevisionMetadata,
)

REVISION_COLUMNS = (
    "id, site_id, entity_type, entity_id, revision_hash, parent_revision_id,"
    " data, user_id, message, created_at, is_current"
)
METADATA_COLUMNS = (
    "id, revision_hash, created_at, user_id, message, is_current, parent_revision_id"
)

_ENTITY_SCOPE = "site_id = ? AND entity_type = ? AND entity_id = ?"
# Newest first; seq breaks ties between revisions created in the same second
_NEWEST_FIRST = "ORDER BY created_at DESC, seq DESC"


def row_to_revision(row: Row) -> Revision:
    """Convert a database row to a Revision."""
    return Revision(
        id=row["id"],
        site_id=row["site_id"],
        entity_type=EntityType(row["entity_type"]),
        entity_id=row["entity_id"],
        revision_hash=row["revision_hash"],
        parent_revision_id=row["parent_revision_id"],
        data=json.loads(row["data"]),
        user_id=row["user_id"],
        message=row["message"],
        created_at=int(row["created_at"]),
        is_current=bool(row["is_current"]),
    )


def row_to_metadata(row: Row) -> RevisionMetadata:
    """Convert a database row to RevisionMetadata."""
    return RevisionMetadata(
        id=row["id"],
        revision_hash=row["revision_hash"],
        created_at=int(row["created_at"]),
        user_id=row["user_id"],
        message=row["message"],
        is_current=bool(row["is_current"]),
        parent_revision_id=row["parent_revision_id"],
    )


async def insert_revision(db: Database, revision: Revision) -> None:
    """Insert a new revision row."""
    await db.execute(
        f"""INSERT INTO revisions ({REVISION_COLUMNS})
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            revision.id,
            revision.site_id,
            revision.entity_type.value,
            revision.entity_id,
            revision.revision_hash,
            revision.parent_revision_id,
            json.dumps(revision.data),
            revision.user_id,
            revision.message,
            revision.created_at,
            int(revision.is_current),
        ),
    )
    await db.commit()


async def get_existing_hashes(db: Database, entity_type: EntityType, entity_id: str) -> set[str]:
    """Hashes in use by an entity, across all sites."""
    cursor = await db.execute(
        "SELECT revision_hash FROM revisions WHERE entity_type = ? AND entity_id = ?",
        (entity_type.value, entity_id),
    )
    return {row[0] for row in await cursor.fetchall()}


def _list_sql(
    columns: str,
    site_id: str,
    entity_type: EntityType,
    entity_id: str,
    options: GetRevisionsOptions | None,
) -> tuple[str, list[object]]:
    sql = f"SELECT {columns} FROM revisions WHERE {_ENTITY_SCOPE}"
    params: list[object] = [site_id, entity_type.value, entity_id]
    opts = options or GetRevisionsOptions()

    if opts.current_only:
        sql += " AND is_current = 1"

    sql += f" {_NEWEST_FIRST}"

    if opts.limit is not None:
        sql += " LIMIT ?"
        params.append(opts.limit)
    elif opts.offset is not None:
        # OFFSET needs a LIMIT in SQLite; -1 means unbounded
        sql += " LIMIT -1"
    if opts.offset is not None:
        sql += " OFFSET ?"
        params.append(opts.offset)

    return sql, params


async def list_revisions(
    db: Database,
    site_id: str,
    entity_type: EntityType,
    entity_id: str,
    options: GetRevisionsOptions | None = None,
) -> list[Revision]:
    """All revisions of an entity, newest first."""
    sql, params = _list_sql(REVISION_COLUMNS, site_id, entity_type, entity_id, options)
    cursor = await db.execute(sql, params)
    return [row_to_revision(row) for row in await cursor.fetchall()]


async def list_metadata(
    db: Database,
    site_id: str,
    entity_type: EntityType,
    entity_id: str,
    options: GetRevisionsOptions | None = None,
) -> list[RevisionMetadata]:
    """Payload-free listing of an entity's revisions, newest first."""
    sql, params = _list_sql(METADATA_COLUMNS, site_id, entity_type, entity_id, options)
    cursor = await db.execute(sql, params)
    return [row_to_metadata(row) for row in await cursor.fetchall()]


async def get_revision(db: Database, site_id: str, revision_id: str) -> Revision | None:
    """Get a single revision by id within a site."""
    cursor = await db.execute(
        f"SELECT {REVISION_COLUMNS} FROM revisions WHERE id = ? AND site_id = ?",
        (revision_id, site_id),
    )
    row = await cursor.fetchone()
    return row_to_revision(row) if row else None


async def get_revision_by_hash(
    db: Database,
    site_id: str,
    entity_type: EntityType,
    entity_id: str,
    revision_hash: str,
) -> Revision | None:
    """Get a single revision by its short hash."""
    cursor = await db.execute(
        f"SELECT {REVISION_COLUMNS} FROM revisions WHERE {_ENTITY_SCOPE} AND revision_hash = ?",
        (site_id, entity_type.value, entity_id, revision_hash),
    )
    row = await cursor.fetchone()
    return row_to_revision(row) if row else None


async def get_current(
    db: Database, site_id: str, entity_type: EntityType, entity_id: str
) -> Revision | None:
    """Newest revision flagged current, if any."""
    cursor = await db.execute(
        f"""SELECT {REVISION_COLUMNS} FROM revisions
        WHERE {_ENTITY_SCOPE} AND is_current = 1
        {_NEWEST_FIRST} LIMIT 1""",
        (site_id, entity_type.value, entity_id),
    )
    row = await cursor.fetchone()
    return row_to_revision(row) if row else None


async def count_revisions(
    db: Database, site_id: str, entity_type: EntityType, entity_id: str
) -> int:
    """Number of revisions stored for an entity."""
    cursor = await db.execute(
        f"SELECT COUNT(*) FROM revisions WHERE {_ENTITY_SCOPE}",
        (site_id, entity_type.value, entity_id),
    )
    row = await cursor.fetchone()
    return int(row[0]) if row else 0


async def get_current_ids(
    db: Database, site_id: str, entity_type: EntityType, entity_id: str
) -> list[str]:
    """Ids of every revision flagged current, newest first."""
    cursor = await db.execute(
        f"SELECT id FROM revisions WHERE {_ENTITY_SCOPE} AND is_current = 1 {_NEWEST_FIRST}",
        (site_id, entity_type.value, entity_id),
    )
    return [row[0] for row in await cursor.fetchall()]


def set_current_statements(
    site_id: str, entity_type: EntityType, entity_id: str, revision_id: str
) -> list[Statement]:
    """Clear-all then set-one statements for the current pointer."""
    return [
        (
            f"UPDATE revisions SET is_current = 0 WHERE {_ENTITY_SCOPE}",
            (site_id, entity_type.value, entity_id),
        ),
        (
            f"UPDATE revisions SET is_current = 1 WHERE id = ? AND {_ENTITY_SCOPE}",
            (revision_id, site_id, entity_type.value, entity_id),
        ),
    ]


async def delete_older_than(
    db: Database,
    site_id: str,
    entity_type: EntityType,
    entity_id: str,
    cutoff: int,
) -> int:
    """Delete non-current revisions created before cutoff. Returns rows deleted."""
    cursor = await db.execute(
        f"""DELETE FROM revisions
        WHERE {_ENTITY_SCOPE} AND created_at < ? AND is_current = 0""",
        (site_id, entity_type.value, entity_id, cutoff),
    )
    await db.commit()
    return max(cursor.rowcount, 0)


async def get_db_stats(db: Database, site_id: str) -> dict[str, Any]:
    """Revision counts for one site."""
    cursor = await db.execute(
        "SELECT COUNT(*) FROM revisions WHERE site_id = ?",
        (site_id,),
    )
    row = await cursor.fetchone()
    total = int(row[0]) if row else 0

    cursor = await db.execute(
        """SELECT COUNT(*) FROM (
            SELECT DISTINCT entity_type, entity_id FROM revisions WHERE site_id = ?
        ) AS entities""",
        (site_id,),
    )
    row = await cursor.fetchone()
    entities = int(row[0]) if row else 0

    cursor = await db.execute(
        """SELECT entity_type, COUNT(*) FROM revisions WHERE site_id = ?
        GROUP BY entity_type ORDER BY entity_type""",
        (site_id,),
    )
    by_type = {row[0]: int(row[1]) for row in await cursor.fetchall()}

    return {"total_revisions": total, "total_entities": entities, "by_type": by_type}

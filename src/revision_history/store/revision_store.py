"""Revision history operations scoped to one site."""

import logging
import secrets
import time
from collections.abc import Callable
from typing import Any

from revision_history.config import get_hash_max_attempts
from revision_history.db.backend import Database
from revision_history.db.queries import (
    count_revisions,
    delete_older_than,
    get_current,
    get_current_ids,
    get_existing_hashes,
    get_revision,
    get_revision_by_hash,
    insert_revision,
    list_metadata,
    list_revisions,
    set_current_statements,
)
from revision_history.errors import RevisionNotFoundError
from revision_history.hashing import generate_unique_revision_hash
from revision_history.models.pointer import CurrentPointerStatus, PointerState
from revision_history.models.revision import (
    EntityType,
    GetRevisionsOptions,
    Revision,
    RevisionMetadata,
    RevisionNode,
)
from revision_history.tree.builder import build_tree

logger = logging.getLogger(__name__)


def _new_revision_id() -> str:
    return secrets.token_urlsafe(15)


class RevisionStore:
    """Create, read, promote, restore and prune revisions for one site.

    Every query is filtered by ``site_id``. Revisions are insert-only;
    the ``is_current`` flag is the only column ever updated.

    The hash uniqueness check in ``create_revision`` is check-then-insert
    and not atomic across concurrent writers. Two simultaneous creators
    can, rarely, end up sharing a hash. Hashes are for display and
    lookup convenience, never a key, so this is tolerated.
    """

    def __init__(
        self,
        db: Database,
        site_id: str,
        *,
        clock: Callable[[], float] = time.time,
        max_hash_attempts: int | None = None,
    ):
        """Initialize with a database connection and tenant scope."""
        self.db = db
        self.site_id = site_id
        self._clock = clock
        self._max_hash_attempts = (
            max_hash_attempts if max_hash_attempts is not None else get_hash_max_attempts()
        )

    def _now(self) -> int:
        return int(self._clock())

    # -- Create --

    async def create_revision(
        self,
        entity_type: EntityType,
        entity_id: str,
        data: Any,
        *,
        user_id: str | None = None,
        message: str | None = None,
        parent_revision_id: str | None = None,
    ) -> Revision:
        """Record a new snapshot. The revision is not made current."""
        existing = await get_existing_hashes(self.db, entity_type, entity_id)
        revision_hash = generate_unique_revision_hash(
            existing, max_attempts=self._max_hash_attempts
        )

        revision = Revision(
            id=_new_revision_id(),
            site_id=self.site_id,
            entity_type=entity_type,
            entity_id=entity_id,
            revision_hash=revision_hash,
            parent_revision_id=parent_revision_id or None,
            data=data,
            user_id=user_id or None,
            message=message or None,
            created_at=self._now(),
            is_current=False,
        )
        await insert_revision(self.db, revision)

        logger.info(
            "Created revision %s for %s %s", revision.revision_hash, entity_type.value, entity_id
        )
        return revision

    # -- Read --

    async def get_revisions(
        self,
        entity_type: EntityType,
        entity_id: str,
        options: GetRevisionsOptions | None = None,
    ) -> list[Revision]:
        """All revisions of an entity, newest first."""
        return await list_revisions(self.db, self.site_id, entity_type, entity_id, options)

    async def get_revision_metadata(
        self,
        entity_type: EntityType,
        entity_id: str,
        options: GetRevisionsOptions | None = None,
    ) -> list[RevisionMetadata]:
        """Revision listing without payloads, newest first."""
        return await list_metadata(self.db, self.site_id, entity_type, entity_id, options)

    async def find_revision_by_id(self, revision_id: str) -> Revision | None:
        """Get a revision by id, or None if it is not in this site."""
        return await get_revision(self.db, self.site_id, revision_id)

    async def get_revision_by_id(self, revision_id: str) -> Revision:
        """Get a revision by id. Raises RevisionNotFoundError if absent."""
        revision = await self.find_revision_by_id(revision_id)
        if revision is None:
            raise RevisionNotFoundError(revision_id)
        return revision

    async def get_revision_by_hash(
        self, entity_type: EntityType, entity_id: str, revision_hash: str
    ) -> Revision | None:
        """Get a revision by its short hash."""
        return await get_revision_by_hash(
            self.db, self.site_id, entity_type, entity_id, revision_hash.lower()
        )

    async def count_revisions(self, entity_type: EntityType, entity_id: str) -> int:
        """Number of revisions stored for an entity."""
        return await count_revisions(self.db, self.site_id, entity_type, entity_id)

    # -- Current pointer --

    async def get_current_revision(
        self, entity_type: EntityType, entity_id: str
    ) -> Revision | None:
        """The live revision, or None if none is flagged current.

        None does not distinguish a never-versioned entity from a broken
        pointer; use check_current_pointer for that.
        """
        return await get_current(self.db, self.site_id, entity_type, entity_id)

    async def set_current_revision(
        self, entity_type: EntityType, entity_id: str, revision_id: str
    ) -> None:
        """Make revision_id the only current revision of the entity.

        Clear-all and set-one go through a single ``Database.batch``.
        Raises RevisionNotFoundError, before writing anything, if the
        revision does not belong to this entity.
        """
        target = await self.find_revision_by_id(revision_id)
        if target is None or target.entity_type != entity_type or target.entity_id != entity_id:
            raise RevisionNotFoundError(revision_id)

        await self.db.batch(
            set_current_statements(self.site_id, entity_type, entity_id, revision_id)
        )
        logger.info(
            "Revision %s is now current for %s %s",
            target.revision_hash,
            entity_type.value,
            entity_id,
        )

    async def check_current_pointer(
        self, entity_type: EntityType, entity_id: str
    ) -> CurrentPointerStatus:
        """Classify the entity's current pointer as ok, missing, duplicated or unversioned."""
        total = await self.count_revisions(entity_type, entity_id)
        current_ids = await get_current_ids(self.db, self.site_id, entity_type, entity_id)

        if total == 0:
            state = PointerState.UNVERSIONED
        elif len(current_ids) == 1:
            state = PointerState.OK
        elif not current_ids:
            state = PointerState.MISSING
            logger.warning(
                "%s %s has %d revisions but none is current", entity_type.value, entity_id, total
            )
        else:
            state = PointerState.DUPLICATED
            logger.warning(
                "%s %s has %d current revisions", entity_type.value, entity_id, len(current_ids)
            )

        return CurrentPointerStatus(state=state, revision_count=total, current_ids=current_ids)

    async def repair_current_pointer(
        self, entity_type: EntityType, entity_id: str
    ) -> Revision | None:
        """Restore the one-current-revision invariant.

        A missing pointer moves to the newest head, or to the newest
        revision when cyclic parent links leave no head. Duplicates
        collapse onto the newest current revision. Healthy entities are
        untouched.
        """
        status = await self.check_current_pointer(entity_type, entity_id)
        if status.state == PointerState.UNVERSIONED:
            return None
        if status.state == PointerState.OK:
            return await self.get_current_revision(entity_type, entity_id)

        if status.state == PointerState.DUPLICATED:
            target_id = status.current_ids[0]
        else:
            heads = await self.get_head_revisions(entity_type, entity_id)
            if not heads:
                heads = await self.get_revisions(
                    entity_type, entity_id, GetRevisionsOptions(limit=1)
                )
            target_id = heads[0].id

        await self.set_current_revision(entity_type, entity_id, target_id)
        logger.warning(
            "Repaired %s pointer for %s %s", status.state.value, entity_type.value, entity_id
        )
        return await self.get_revision_by_id(target_id)

    # -- Restore --

    async def restore_revision(self, revision_id: str, user_id: str | None = None) -> Revision:
        """Re-apply an old snapshot as a new current revision.

        Like ``git revert``: nothing is rewritten, the old content
        becomes the newest revision, parented on the current one (or on
        the restored revision itself when nothing is current).
        """
        source = await self.get_revision_by_id(revision_id)
        current = await self.get_current_revision(source.entity_type, source.entity_id)

        restored = await self.create_revision(
            source.entity_type,
            source.entity_id,
            source.data,
            user_id=user_id,
            message=f"Restored from revision {source.revision_hash}",
            parent_revision_id=current.id if current else source.id,
        )
        await self.set_current_revision(source.entity_type, source.entity_id, restored.id)

        logger.info("Restored revision %s as %s", source.revision_hash, restored.revision_hash)
        return restored.model_copy(update={"is_current": True})

    # -- Tree & heads --

    async def build_revision_tree(
        self, entity_type: EntityType, entity_id: str
    ) -> list[RevisionNode]:
        """History forest annotated with depth and branch, newest first."""
        revisions = await self.get_revisions(entity_type, entity_id)
        return build_tree(revisions)

    async def get_head_revisions(self, entity_type: EntityType, entity_id: str) -> list[Revision]:
        """Revisions nobody names as parent (branch tips), newest first."""
        revisions = await self.get_revisions(entity_type, entity_id)
        parent_ids = {r.parent_revision_id for r in revisions if r.parent_revision_id}
        return [r for r in revisions if r.id not in parent_ids]

    # -- Retention --

    async def delete_old_revisions(
        self, entity_type: EntityType, entity_id: str, older_than_seconds: int
    ) -> int:
        """Delete non-current revisions older than the cutoff. Returns count."""
        cutoff = self._now() - older_than_seconds
        deleted = await delete_older_than(self.db, self.site_id, entity_type, entity_id, cutoff)
        if deleted:
            logger.info(
                "Pruned %d revisions of %s %s older than %ds",
                deleted,
                entity_type.value,
                entity_id,
                older_than_seconds,
            )
        return deleted

"""Entity-facing revision helpers.

Product, page and other modules own their live rows. They plug into the
revision store through an EntityAdapter that can snapshot an entity and
write a snapshot back.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from revision_history.errors import EntityNotFoundError, RevisionNotFoundError

if TYPE_CHECKING:
    from revision_history.models.revision import (
        EntityType,
        GetRevisionsOptions,
        Revision,
        RevisionNode,
    )
    from revision_history.store.revision_store import RevisionStore

logger = logging.getLogger(__name__)


@runtime_checkable
class EntityAdapter(Protocol):
    """Reads and writes the live state of one kind of entity."""

    async def load_state(self, entity_id: str) -> dict[str, Any] | None:
        """Snapshot the live entity, or None if it does not exist."""
        ...

    async def apply_state(self, entity_id: str, data: dict[str, Any]) -> None:
        """Overwrite the live entity with a snapshot."""
        ...


class EntityRevisions:
    """Revision history for one entity type, bound to its live storage."""

    def __init__(self, store: RevisionStore, entity_type: EntityType, adapter: EntityAdapter):
        """Initialize with a store, the entity type and its adapter."""
        self.store = store
        self.entity_type = entity_type
        self.adapter = adapter

    async def capture(
        self,
        entity_id: str,
        user_id: str | None = None,
        message: str | None = None,
    ) -> Revision:
        """Snapshot the live entity as a new current revision."""
        state = await self.adapter.load_state(entity_id)
        if state is None:
            raise EntityNotFoundError(self.entity_type.value, entity_id)

        current = await self.store.get_current_revision(self.entity_type, entity_id)
        revision = await self.store.create_revision(
            self.entity_type,
            entity_id,
            state,
            user_id=user_id,
            message=message,
            parent_revision_id=current.id if current else None,
        )
        await self.store.set_current_revision(self.entity_type, entity_id, revision.id)
        return revision.model_copy(update={"is_current": True})

    async def restore(
        self, entity_id: str, revision_id: str, user_id: str | None = None
    ) -> Revision:
        """Restore an old revision and write its data back to the entity."""
        source = await self.store.get_revision_by_id(revision_id)
        if source.entity_type != self.entity_type or source.entity_id != entity_id:
            raise RevisionNotFoundError(revision_id)

        restored = await self.store.restore_revision(revision_id, user_id)
        await self.adapter.apply_state(entity_id, restored.data)
        logger.info(
            "Applied revision %s to %s %s",
            restored.revision_hash,
            self.entity_type.value,
            entity_id,
        )
        return restored

    async def history(
        self, entity_id: str, options: GetRevisionsOptions | None = None
    ) -> list[Revision]:
        """Revisions of the entity, newest first."""
        return await self.store.get_revisions(self.entity_type, entity_id, options)

    async def current(self, entity_id: str) -> Revision | None:
        """The entity's live revision."""
        return await self.store.get_current_revision(self.entity_type, entity_id)

    async def tree(self, entity_id: str) -> list[RevisionNode]:
        """The entity's history forest."""
        return await self.store.build_revision_tree(self.entity_type, entity_id)

    async def heads(self, entity_id: str) -> list[Revision]:
        """Branch tips of the entity's history."""
        return await self.store.get_head_revisions(self.entity_type, entity_id)

    async def prune(self, entity_id: str, older_than_seconds: int) -> int:
        """Delete old non-current revisions of the entity."""
        return await self.store.delete_old_revisions(
            self.entity_type, entity_id, older_than_seconds
        )

"""rev_get MCP tool — full revision retrieval by id or hash."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from revision_history.hashing import is_valid_revision_hash
from revision_history.models.revision import EntityType
from revision_history.store.revision_store import RevisionStore
from revision_history.tools.formatters import format_revision_full

logger = logging.getLogger(__name__)


async def get_revision_text(
    store: RevisionStore, entity_type: EntityType, entity_id: str, revision: str
) -> str:
    """Look up by 8-char hash first, then by id."""
    found = None
    if is_valid_revision_hash(revision.lower()):
        found = await store.get_revision_by_hash(entity_type, entity_id, revision)
    if found is None:
        found = await store.find_revision_by_id(revision)
        if found is not None and (
            found.entity_type != entity_type or found.entity_id != entity_id
        ):
            found = None
    if found is None:
        return f"[{revision}] not found"
    return format_revision_full(found)


def register_rev_get(mcp: FastMCP) -> None:
    """Register the rev_get tool with the MCP server."""

    @mcp.tool()
    async def rev_get(
        entity_type: Annotated[
            EntityType, Field(description="page, product, category, theme, site")
        ],
        entity_id: Annotated[str, Field(description="Identifier of the versioned entity")],
        revision: Annotated[str, Field(description="Revision id or 8-character hash")],
        ctx: Context | None = None,
    ) -> str:
        """Retrieve one revision including its full data snapshot."""
        if ctx is None:
            raise RuntimeError("Context not injected")

        store: RevisionStore = ctx.lifespan_context["store"]
        return await get_revision_text(store, entity_type, entity_id, revision)

"""rev_record and rev_publish MCP tools — record snapshots and move the live pointer."""

import logging
from typing import Annotated, Any

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from revision_history.errors import RevisionError
from revision_history.models.revision import EntityType, Revision
from revision_history.store.revision_store import RevisionStore
from revision_history.tools.formatters import format_revision_line

logger = logging.getLogger(__name__)


def format_record_result(revision: Revision) -> str:
    """Format the result of a record operation for the MCP response."""
    return f"Recorded {revision.revision_hash} ({revision.id})\n  {format_revision_line(revision)}"


async def record_revision(
    store: RevisionStore,
    entity_type: EntityType,
    entity_id: str,
    data: dict[str, Any],
    *,
    message: str | None = None,
    user_id: str | None = None,
    parent_revision_id: str | None = None,
    make_current: bool = True,
) -> str:
    """Create a revision, parented on the current one unless told otherwise."""
    try:
        if parent_revision_id is None:
            current = await store.get_current_revision(entity_type, entity_id)
            parent_revision_id = current.id if current else None
        else:
            parent = await store.find_revision_by_id(parent_revision_id)
            if (
                parent is None
                or parent.entity_type != entity_type
                or parent.entity_id != entity_id
            ):
                return f"Error: parent revision {parent_revision_id} not found."

        revision = await store.create_revision(
            entity_type,
            entity_id,
            data,
            user_id=user_id,
            message=message,
            parent_revision_id=parent_revision_id,
        )
        if make_current:
            await store.set_current_revision(entity_type, entity_id, revision.id)
            revision = revision.model_copy(update={"is_current": True})
    except RevisionError as e:
        return f"Error: {e}"
    return format_record_result(revision)


async def publish_revision(
    store: RevisionStore, entity_type: EntityType, entity_id: str, revision_id: str
) -> str:
    """Make an existing revision current."""
    try:
        await store.set_current_revision(entity_type, entity_id, revision_id)
        revision = await store.get_revision_by_id(revision_id)
    except RevisionError as e:
        return f"Error: {e}"
    return f"Published {revision.revision_hash}\n  {format_revision_line(revision)}"


def register_rev_record(mcp: FastMCP) -> None:
    """Register the rev_record and rev_publish tools with the MCP server."""

    @mcp.tool()
    async def rev_record(
        entity_type: Annotated[
            EntityType, Field(description="page, product, category, theme, site")
        ],
        entity_id: Annotated[str, Field(description="Identifier of the versioned entity")],
        data: Annotated[dict[str, Any], Field(description="Full JSON snapshot of the entity")],
        message: Annotated[str | None, Field(description="Short note about the change")] = None,
        user_id: Annotated[str | None, Field(description="Who made the change")] = None,
        parent_revision_id: Annotated[
            str | None,
            Field(description="Parent revision id (defaults to the current revision)"),
        ] = None,
        make_current: Annotated[
            bool, Field(description="Mark the new revision as live")
        ] = True,
        ctx: Context | None = None,
    ) -> str:
        """Record a full snapshot of an entity as a new revision."""
        if ctx is None:
            raise RuntimeError("Context not injected")

        store: RevisionStore = ctx.lifespan_context["store"]
        return await record_revision(
            store,
            entity_type,
            entity_id,
            data,
            message=message,
            user_id=user_id,
            parent_revision_id=parent_revision_id,
            make_current=make_current,
        )

    @mcp.tool()
    async def rev_publish(
        entity_type: Annotated[
            EntityType, Field(description="page, product, category, theme, site")
        ],
        entity_id: Annotated[str, Field(description="Identifier of the versioned entity")],
        revision_id: Annotated[str, Field(description="Revision to make live")],
        ctx: Context | None = None,
    ) -> str:
        """Mark an existing revision as the live one without creating a new revision."""
        if ctx is None:
            raise RuntimeError("Context not injected")

        store: RevisionStore = ctx.lifespan_context["store"]
        return await publish_revision(store, entity_type, entity_id, revision_id)

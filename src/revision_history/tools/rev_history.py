"""rev_history MCP tool — list, tree and head views of an entity's history."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from revision_history.models.revision import EntityType, GetRevisionsOptions
from revision_history.store.revision_store import RevisionStore
from revision_history.tools.formatters import (
    format_result_list,
    format_revision_line,
    format_tree,
)

logger = logging.getLogger(__name__)

_VIEWS = {"list", "tree", "heads"}


async def history_view(
    store: RevisionStore,
    entity_type: EntityType,
    entity_id: str,
    view: str = "list",
    limit: int | None = None,
) -> str:
    """Render one view of an entity's history as text."""
    if view not in _VIEWS:
        return f"Unknown view '{view}'. Use: {', '.join(sorted(_VIEWS))}"

    header = f"{entity_type.value} {entity_id}"
    if view == "tree":
        nodes = await store.build_revision_tree(entity_type, entity_id)
        return f"{header}\n{format_tree(nodes)}"

    if view == "heads":
        heads = await store.get_head_revisions(entity_type, entity_id)
        return format_result_list(
            [format_revision_line(r) for r in heads], header=header, note="branch tips"
        )

    metadata = await store.get_revision_metadata(
        entity_type, entity_id, GetRevisionsOptions(limit=limit)
    )
    return format_result_list([format_revision_line(m) for m in metadata], header=header)


def register_rev_history(mcp: FastMCP) -> None:
    """Register the rev_history tool with the MCP server."""

    @mcp.tool()
    async def rev_history(
        entity_type: Annotated[
            EntityType, Field(description="page, product, category, theme, site")
        ],
        entity_id: Annotated[str, Field(description="Identifier of the versioned entity")],
        view: Annotated[
            str, Field(description="list (newest first), tree (commit graph), heads (tips)")
        ] = "list",
        limit: Annotated[
            int | None, Field(description="For list: max revisions to return", ge=1)
        ] = None,
        ctx: Context | None = None,
    ) -> str:
        """Show the revision history of an entity.

        Use view=tree to see branches created by restores, view=heads for
        the tips of every branch.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")

        store: RevisionStore = ctx.lifespan_context["store"]
        return await history_view(store, entity_type, entity_id, view, limit)

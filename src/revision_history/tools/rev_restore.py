"""rev_restore MCP tool — re-apply an old revision as the new head."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from revision_history.errors import RevisionError
from revision_history.store.revision_store import RevisionStore
from revision_history.tools.formatters import format_revision_line

logger = logging.getLogger(__name__)


async def restore_revision_text(
    store: RevisionStore, revision_id: str, user_id: str | None = None
) -> str:
    """Restore and describe the new head."""
    try:
        restored = await store.restore_revision(revision_id, user_id)
    except RevisionError as e:
        return f"Error: {e}"
    return (
        f"Restored as {restored.revision_hash} ({restored.id})\n"
        f"  {format_revision_line(restored)}"
    )


def register_rev_restore(mcp: FastMCP) -> None:
    """Register the rev_restore tool with the MCP server."""

    @mcp.tool()
    async def rev_restore(
        revision_id: Annotated[str, Field(description="Revision whose data to restore")],
        user_id: Annotated[str | None, Field(description="Who is restoring")] = None,
        ctx: Context | None = None,
    ) -> str:
        """Restore an old revision.

        History is never rewritten: a new revision carrying the old data
        is created on top of the current one and becomes live.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")

        store: RevisionStore = ctx.lifespan_context["store"]
        return await restore_revision_text(store, revision_id, user_id)

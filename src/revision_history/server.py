"""FastMCP server with lifespan management and tool registration."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP

from revision_history.config import get_db_path, get_log_level, get_site_id, is_manager_mode
from revision_history.db.connection import create_connection
from revision_history.store.revision_store import RevisionStore
from revision_history.tools.rev_get import register_rev_get
from revision_history.tools.rev_history import register_rev_history
from revision_history.tools.rev_maintain import register_rev_maintain
from revision_history.tools.rev_record import register_rev_record
from revision_history.tools.rev_restore import register_rev_restore


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Manage the database connection and revision store lifecycle."""
    # Configure logging to stderr (stdout is MCP stdio transport)
    logging.basicConfig(
        level=getattr(logging, get_log_level()),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    logger = logging.getLogger(__name__)

    db_path = get_db_path()
    logger.info("Opening database at %s", db_path)
    db = await create_connection(db_path)

    site_id = get_site_id()
    store = RevisionStore(db, site_id)
    logger.info("Serving revision history for site %s", site_id)

    try:
        yield {"db": db, "store": store}
    finally:
        await db.close()
        logger.info("Database connection closed")


_INSTRUCTIONS = """\
This server keeps the revision history of site content: pages, products, \
categories, themes and site settings. Every revision is a full JSON snapshot \
identified by an id and a short 8-character hash.

READING:
- rev_history: List revisions (newest first), draw the branch tree, or show \
branch heads.
- rev_get: Fetch one revision with its full data, by id or hash.

WRITING:
- rev_record: Save a snapshot. By default it is parented on the live revision \
and becomes live itself.
- rev_publish: Make an existing revision live.
- rev_restore: Bring back an old revision. This never rewrites history — a new \
revision with the old data is created on top of the live one.

Exactly one revision per entity is live at a time.
"""


def create_server() -> FastMCP:
    """Create and configure the MCP server with all tools."""
    mcp = FastMCP(
        "revision-history",
        instructions=_INSTRUCTIONS,
        lifespan=lifespan,
    )

    register_rev_history(mcp)
    register_rev_get(mcp)
    register_rev_record(mcp)
    register_rev_restore(mcp)

    if is_manager_mode():
        register_rev_maintain(mcp)

    return mcp

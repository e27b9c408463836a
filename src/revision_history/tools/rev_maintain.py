"""rev_maintain MCP tool — retention and pointer maintenance."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from revision_history.db.queries import get_db_stats
from revision_history.models.pointer import PointerState
from revision_history.models.revision import EntityType
from revision_history.store.revision_store import RevisionStore
from revision_history.tools.formatters import format_revision_line

logger = logging.getLogger(__name__)

_ACTIONS = {"stats", "prune", "check", "repair"}
_SECONDS_PER_DAY = 86400


def register_rev_maintain(mcp: FastMCP) -> None:
    """Register the rev_maintain tool with the MCP server."""

    @mcp.tool()
    async def rev_maintain(
        action: Annotated[
            str, Field(description="Maintenance action: stats, prune, check, repair")
        ],
        entity_type: Annotated[
            EntityType | None, Field(description="Required for prune, check, repair")
        ] = None,
        entity_id: Annotated[
            str | None, Field(description="Required for prune, check, repair")
        ] = None,
        older_than_days: Annotated[
            int, Field(description="For prune: min age in days of revisions to delete", ge=1)
        ] = 90,
        confirm: Annotated[bool, Field(description="Required True for prune")] = False,
        ctx: Context | None = None,
    ) -> str:
        """Administrative maintenance for revision history.

        Requires REV_MANAGER=TRUE environment variable.

        Actions:
        - stats: Revision counts by entity type for this site
        - prune: Delete non-current revisions older than N days (requires confirm=True)
        - check: Report whether exactly one revision is current
        - repair: Fix a missing or duplicated current pointer
        """
        if ctx is None:
            raise RuntimeError("Context not injected")

        store: RevisionStore = ctx.lifespan_context["store"]
        return await run_action(store, action, entity_type, entity_id, older_than_days, confirm)


async def run_action(
    store: RevisionStore,
    action: str,
    entity_type: EntityType | None = None,
    entity_id: str | None = None,
    older_than_days: int = 90,
    confirm: bool = False,
) -> str:
    """Dispatch a maintenance action."""
    if action not in _ACTIONS:
        return f"Unknown action '{action}'. Use: {', '.join(sorted(_ACTIONS))}"

    if action == "stats":
        return await _action_stats(store)

    if entity_type is None or not entity_id:
        return f"Error: entity_type and entity_id are required for {action} action."

    if action == "prune":
        return await _action_prune(store, entity_type, entity_id, older_than_days, confirm)
    elif action == "check":
        return await _action_check(store, entity_type, entity_id)
    elif action == "repair":
        return await _action_repair(store, entity_type, entity_id)

    return "Action not implemented."


async def _action_stats(store: RevisionStore) -> str:
    """Revision counts for the site."""
    stats = await get_db_stats(store.db, store.site_id)

    lines = [f"Revision statistics for site {store.site_id}\n"]
    lines.append(
        f"Revisions: {stats['total_revisions']} across {stats['total_entities']} entities"
    )
    by_type = stats.get("by_type", {})
    if by_type:
        lines.append("\nRevisions by entity type:")
        for entity_type, count in by_type.items():
            lines.append(f"  {entity_type}: {count}")
    return "\n".join(lines)


async def _action_prune(
    store: RevisionStore,
    entity_type: EntityType,
    entity_id: str,
    older_than_days: int,
    confirm: bool,
) -> str:
    """Delete old non-current revisions."""
    if not confirm:
        return (
            f"Prune would delete non-current revisions of {entity_type.value} {entity_id}"
            f" older than {older_than_days} days. Pass confirm=True to proceed."
        )
    deleted = await store.delete_old_revisions(
        entity_type, entity_id, older_than_days * _SECONDS_PER_DAY
    )
    return f"Deleted {deleted} revision(s) of {entity_type.value} {entity_id}."


async def _action_check(store: RevisionStore, entity_type: EntityType, entity_id: str) -> str:
    """Report current-pointer health."""
    status = await store.check_current_pointer(entity_type, entity_id)
    line = (
        f"{entity_type.value} {entity_id}: {status.state.value}"
        f" ({status.revision_count} revisions, {len(status.current_ids)} current)"
    )
    if status.state in (PointerState.MISSING, PointerState.DUPLICATED):
        line += "\n  Run action=repair to fix."
    return line


async def _action_repair(store: RevisionStore, entity_type: EntityType, entity_id: str) -> str:
    """Repair the current pointer."""
    before = await store.check_current_pointer(entity_type, entity_id)
    if before.is_healthy:
        return f"{entity_type.value} {entity_id}: {before.state.value}, nothing to repair."

    current = await store.repair_current_pointer(entity_type, entity_id)
    if current is None:
        return f"{entity_type.value} {entity_id}: nothing to repair."
    return (
        f"Repaired {before.state.value} pointer for {entity_type.value} {entity_id}\n"
        f"  {format_revision_line(current)}"
    )

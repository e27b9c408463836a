"""Compact output formatters for MCP tool responses."""

import json
from datetime import UTC, datetime

from revision_history.models.revision import Revision, RevisionMetadata, RevisionNode
from revision_history.tree.layout import lay_out

_MAX_DATA_CHARS = 4000


def format_timestamp(created_at: int) -> str:
    """Epoch seconds as ``YYYY-MM-DD HH:MM:SS`` UTC."""
    return datetime.fromtimestamp(created_at, UTC).strftime("%Y-%m-%d %H:%M:%S")


def format_revision_line(revision: Revision | RevisionMetadata) -> str:
    """Format: a1b2c3d4 2026-01-01 12:00:00 [current] by alice — message."""
    parts = [revision.revision_hash, format_timestamp(revision.created_at)]
    if revision.is_current:
        parts.append("[current]")
    if revision.user_id:
        parts.append(f"by {revision.user_id}")
    line = " ".join(parts)
    if revision.message:
        line += f" — {revision.message}"
    return line


def format_revision_full(revision: Revision) -> str:
    """Header line, ids, and the JSON payload. For rev_get."""
    lines = [format_revision_line(revision), f"  id: {revision.id}"]
    if revision.parent_revision_id:
        lines.append(f"  parent: {revision.parent_revision_id}")
    payload = json.dumps(revision.data, indent=2, sort_keys=True)
    if len(payload) > _MAX_DATA_CHARS:
        payload = payload[:_MAX_DATA_CHARS] + "\n... (truncated)"
    lines.append(payload)
    return "\n".join(lines)


def format_tree(nodes: list[RevisionNode]) -> str:
    """ASCII commit graph, newest first, one lane per column."""
    if not nodes:
        return "No revisions."

    lanes = {a.revision_id: a.lane for a in lay_out(nodes)}
    width = max(lanes.values()) + 1
    lines: list[str] = []
    for node in nodes:
        lane = lanes[node.id]
        cells = ["|"] * width
        cells[lane] = "*"
        graph = " ".join(cells)
        lines.append(f"{graph}  {format_revision_line(node)}  (depth {node.depth})")
    return "\n".join(lines)


def format_result_list(
    formatted: list[str],
    header: str | None = None,
    note: str | None = None,
) -> str:
    """Count + note + items joined by newlines."""
    if not formatted:
        return "No revisions found."

    lines: list[str] = []
    if header:
        lines.append(header)
    lines.append(f"{len(formatted)} revision(s)")
    if note:
        lines.append(f"Note: {note}")
    lines.append("")
    lines.append("\n".join(formatted))
    return "\n".join(lines)

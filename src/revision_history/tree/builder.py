"""Reconstruct the revision forest for commit-graph style display."""

import logging
from collections import deque
from collections.abc import Sequence

from revision_history.models.revision import Revision, RevisionNode

logger = logging.getLogger(__name__)


def build_tree(revisions: Sequence[Revision]) -> list[RevisionNode]:
    """Annotate revisions with children, depth and branch.

    ``revisions`` must be ordered newest first, as the store returns them.
    Revisions sharing a ``created_at`` keep their relative input order.

    Linking walks the input newest first. A revision whose parent is
    missing from the input is an orphan, and so is every parentless
    revision after the first. Orphans are chained oldest first, the
    earliest becoming an extra root, so every revision lands in the forest.

    Depth and branch come from a BFS over roots sorted oldest first. Each
    root opens its own branch. A node's oldest child inherits its branch
    and every younger sibling opens a new one.

    Returns the nodes newest first.
    """
    if not revisions:
        return []

    # Chronological rank: input is newest first, so the last item is oldest
    rank = {rev.id: len(revisions) - 1 - i for i, rev in enumerate(revisions)}
    nodes: dict[str, RevisionNode] = {
        rev.id: RevisionNode(**rev.model_dump(), children=[], depth=0, branch=0)
        for rev in revisions
    }

    def _chrono(node_id: str) -> tuple[int, int]:
        return (nodes[node_id].created_at, rank[node_id])

    roots: list[str] = []
    orphans: list[str] = []
    for rev in revisions:
        parent_id = rev.parent_revision_id
        if parent_id:
            parent = nodes.get(parent_id)
            if parent is not None:
                parent.children.append(rev.id)
            else:
                orphans.append(rev.id)
        elif not roots:
            roots.append(rev.id)
        else:
            orphans.append(rev.id)

    if orphans:
        logger.debug("Linking %d orphaned revisions into a chain", len(orphans))
        orphans.sort(key=_chrono)
        roots.append(orphans[0])
        for prev_id, node_id in zip(orphans, orphans[1:], strict=False):
            nodes[prev_id].children.append(node_id)

    roots.sort(key=_chrono)
    next_branch = 0
    # (node_id, depth, branch)
    queue: deque[tuple[str, int, int]] = deque()
    for root_id in roots:
        queue.append((root_id, 0, next_branch))
        next_branch += 1

    visited: set[str] = set()
    ordered: list[RevisionNode] = []
    while queue:
        node_id, depth, branch = queue.popleft()
        if node_id in visited:
            continue
        visited.add(node_id)

        node = nodes[node_id]
        node.depth = depth
        node.branch = branch
        ordered.append(node)

        node.children.sort(key=_chrono)
        for i, child_id in enumerate(node.children):
            if i == 0:
                queue.append((child_id, depth + 1, branch))
            else:
                queue.append((child_id, depth + 1, next_branch))
                next_branch += 1

    # Parent links that form a cycle never reach a root
    if len(ordered) < len(nodes):
        unreached = [nid for nid in nodes if nid not in visited]
        logger.warning("%d revisions unreachable from any root (cyclic parents)", len(unreached))
        for node_id in sorted(unreached, key=_chrono):
            node = nodes[node_id]
            node.branch = next_branch
            next_branch += 1
            ordered.append(node)

    ordered.sort(key=lambda n: _chrono(n.id), reverse=True)
    return ordered

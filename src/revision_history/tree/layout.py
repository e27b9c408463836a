"""Lane assignment for drawing the revision forest as a git-style graph."""

from collections import defaultdict
from collections.abc import Sequence

from pydantic import BaseModel

from revision_history.models.revision import RevisionNode


class LaneAssignment(BaseModel):
    """Grid position of one revision: level is the row, lane the column."""

    revision_id: str
    level: int
    lane: int


def lay_out(nodes: Sequence[RevisionNode]) -> list[LaneAssignment]:
    """Assign each node a level (its depth) and a lane.

    Uses the structural parent from ``children`` rather than
    ``parent_revision_id``, so orphan-chain links are honoured. A node on
    its parent's branch reuses the parent's lane; the first root takes
    lane 0 and every other node opens the next free lane.

    Returns assignments ordered by level, then branch, then age.
    """
    if not nodes:
        return []

    by_id = {node.id: node for node in nodes}
    parent_of: dict[str, str] = {}
    for node in nodes:
        for child_id in node.children:
            parent_of[child_id] = node.id

    levels: dict[int, list[RevisionNode]] = defaultdict(list)
    for node in nodes:
        levels[node.depth].append(node)

    lanes: dict[str, int] = {}
    next_lane = 0
    result: list[LaneAssignment] = []
    for level in sorted(levels):
        for node in sorted(levels[level], key=lambda n: (n.branch, n.created_at)):
            parent_id = parent_of.get(node.id)
            parent = by_id.get(parent_id) if parent_id else None
            if parent is not None and parent.branch == node.branch and parent_id in lanes:
                lane = lanes[parent_id]
            else:
                lane = next_lane
                next_lane += 1
            lanes[node.id] = lane
            result.append(LaneAssignment(revision_id=node.id, level=level, lane=lane))

    return result

"""Revision forest reconstruction."""

from revision_history.tree.builder import build_tree
from revision_history.tree.layout import LaneAssignment, lay_out

__all__ = ["LaneAssignment", "build_tree", "lay_out"]

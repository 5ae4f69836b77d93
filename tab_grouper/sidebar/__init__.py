"""Sidebar model: the group/tab tree, its reconciler and controller."""

from tab_grouper.sidebar.tree import UNSORTED, GroupNode, GroupTree, Reconciler, TabNode, TreeState

__all__ = ["UNSORTED", "GroupNode", "GroupTree", "Reconciler", "TabNode", "TreeState"]

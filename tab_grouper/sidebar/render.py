"""Terminal rendering of the sidebar tree."""

from __future__ import annotations

from rich.text import Text
from rich.tree import Tree

from tab_grouper.sidebar.tree import GroupTree


def render_tree(tree: GroupTree, title: str = "Tabs", show_urls: bool = False) -> Tree:
    """Build a rich Tree: one branch per group, one leaf per tab."""
    root = Tree(Text(title, style="bold"))
    for group in tree.groups:
        marker = "▸" if group.collapsed else "▾"
        branch = root.add(Text(f"{marker} {group.name} ({len(group.tabs)})", style="bold cyan"))
        if group.collapsed:
            continue
        for node in group.tabs:
            label = Text(node.title or "(untitled)", style="bold green" if node.active else "")
            if show_urls and node.url:
                label.append(f"  {node.url}", style="dim")
            branch.add(label)
    return root

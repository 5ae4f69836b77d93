"""Live group/tab tree shown in the sidebar, and the reconciler that owns it."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from loguru import logger

from tab_grouper.bus.events import TabActivated, TabCreated, TabEvent, TabRemoved, TabUpdated
from tab_grouper.categorize.errors import StaleSnapshotError
from tab_grouper.categorize.normalize import CanonicalGrouping
from tab_grouper.tabs.models import Tab, TabSnapshot

UNSORTED = "Unsorted"


class TreeState(Enum):
    EMPTY = "empty"
    UNSORTED = "unsorted"
    CATEGORIZED = "categorized"


@dataclass
class TabNode:
    """One tab row."""

    tab_id: int
    title: str = ""
    url: str = ""
    favicon: str | None = None
    active: bool = False

    @classmethod
    def from_tab(cls, tab: Tab) -> "TabNode":
        return cls(tab_id=tab.id, title=tab.title, url=tab.url, favicon=tab.favicon)


@dataclass
class GroupNode:
    """A labeled, collapsible container of tab rows."""

    name: str
    tabs: list[TabNode] = field(default_factory=list)
    collapsed: bool = False

    def index_of(self, tab_id: int) -> int | None:
        for idx, node in enumerate(self.tabs):
            if node.tab_id == tab_id:
                return idx
        return None

    @property
    def tab_ids(self) -> list[int]:
        return [node.tab_id for node in self.tabs]


@dataclass
class GroupTree:
    """Ordered groups plus the state the tree is in."""

    groups: list[GroupNode] = field(default_factory=list)
    state: TreeState = TreeState.EMPTY

    def group(self, name: str) -> GroupNode | None:
        return next((group for group in self.groups if group.name == name), None)

    def locate(self, tab_id: int) -> tuple[GroupNode, int] | None:
        """Find the group holding ``tab_id`` and the row's position in it."""
        for group in self.groups:
            idx = group.index_of(tab_id)
            if idx is not None:
                return group, idx
        return None

    def find_tab(self, tab_id: int) -> TabNode | None:
        found = self.locate(tab_id)
        if found is None:
            return None
        group, idx = found
        return group.tabs[idx]

    def iter_tabs(self):
        for group in self.groups:
            yield from group.tabs

    @property
    def active_tab_ids(self) -> list[int]:
        return [node.tab_id for node in self.iter_tabs() if node.active]

    def layout(self) -> list[tuple[str, list[int]]]:
        """``[(group name, [tab ids])]`` in display order."""
        return [(group.name, group.tab_ids) for group in self.groups]


class Reconciler:
    """
    Sole owner of the sidebar tree.

    Every mutation is one synchronous call. Events that reference tabs the
    tree does not know about are expected under concurrency and are no-ops.
    """

    def __init__(self, tree: GroupTree | None = None) -> None:
        self.tree = tree or GroupTree()

    @property
    def state(self) -> TreeState:
        return self.tree.state

    # ── Full layouts ──────────────────────────────────────────────────

    def initialize(self, tabs: Sequence[Tab], active_tab_id: int | None = None) -> None:
        """Show every tab in one Unsorted group, in query order."""
        group = GroupNode(name=UNSORTED, tabs=[TabNode.from_tab(tab) for tab in tabs])
        for node in group.tabs:
            node.active = node.tab_id == active_tab_id
        self.tree.groups = [group]
        self.tree.state = TreeState.UNSORTED
        logger.debug("Tree initialized with {} unsorted tabs", len(group.tabs))

    def apply_grouping(self, grouping: CanonicalGrouping, tabs_by_index: TabSnapshot | Sequence[Tab]) -> None:
        """
        Replace the whole tree with ``grouping``.

        ``tabs_by_index`` must be the snapshot the grouping was built from.
        Manual moves and tab events since that snapshot are discarded.
        """
        if isinstance(tabs_by_index, TabSnapshot):
            if grouping.snapshot_id is not None and grouping.snapshot_id != tabs_by_index.snapshot_id:
                raise StaleSnapshotError(
                    f"Grouping was built for snapshot {grouping.snapshot_id}, "
                    f"not {tabs_by_index.snapshot_id}"
                )
            tabs = tabs_by_index.tabs
        else:
            tabs = list(tabs_by_index)
        if len(tabs) != grouping.size:
            raise StaleSnapshotError(f"Grouping covers {grouping.size} tabs but {len(tabs)} were given")

        self.tree.groups = [
            GroupNode(name=group.name, tabs=[TabNode.from_tab(tabs[idx]) for idx in group.tab_indices])
            for group in grouping
        ]
        self.tree.state = TreeState.CATEGORIZED
        logger.info(f"Applied grouping: {', '.join(grouping.names) or '(no groups)'}")

    # ── Tab lifecycle ─────────────────────────────────────────────────

    def handle(self, event: TabEvent) -> None:
        """Apply one tab lifecycle event."""
        if isinstance(event, TabCreated):
            self.on_tab_created(event.tab, event.opener, event.has_parent)
        elif isinstance(event, TabActivated):
            self.on_tab_activated(event.tab_id)
        elif isinstance(event, TabRemoved):
            self.on_tab_removed(event.tab_id)
        elif isinstance(event, TabUpdated):
            self.on_tab_updated(event.tab_id, title=event.title, favicon=event.favicon)
        else:
            raise TypeError(f"Not a tab event: {event!r}")

    def on_tab_created(self, tab: Tab, opener: Tab | int | None = None, has_parent: bool = False) -> None:
        """Append a new tab to its opener's group, else to Unsorted."""
        if self.tree.locate(tab.id) is not None:
            logger.debug("Tab {} already shown; treating create as update", tab.id)
            self.on_tab_updated(tab.id, title=tab.title, favicon=tab.favicon)
            return

        target: GroupNode | None = None
        if has_parent:
            opener_id = opener.id if isinstance(opener, Tab) else opener
            if opener_id is not None:
                found = self.tree.locate(opener_id)
                if found is not None:
                    target = found[0]
            if target is None:
                logger.debug("Opener {} of tab {} not in tree", opener_id, tab.id)

        if target is None:
            target = self._unsorted_group()
        target.tabs.append(TabNode.from_tab(tab))

    def on_tab_activated(self, tab_id: int) -> None:
        if self.tree.locate(tab_id) is None:
            logger.debug("Activated tab {} not in tree", tab_id)
            return
        for node in self.tree.iter_tabs():
            node.active = node.tab_id == tab_id

    def on_tab_removed(self, tab_id: int) -> None:
        found = self.tree.locate(tab_id)
        if found is None:
            logger.debug("Removed tab {} not in tree", tab_id)
            return
        group, idx = found
        del group.tabs[idx]

    def on_tab_updated(self, tab_id: int, title: str | None = None, favicon: str | None = None) -> None:
        node = self.tree.find_tab(tab_id)
        if node is None:
            logger.debug("Updated tab {} not in tree", tab_id)
            return
        if title is not None:
            node.title = title
        if favicon is not None:
            node.favicon = favicon

    # ── User actions ──────────────────────────────────────────────────

    def move_tab(self, tab_id: int, group_name: str, position: int) -> bool:
        """
        Move a tab row to ``position`` inside ``group_name``.

        Position is clamped to the destination's bounds. Repeating the same
        move leaves the tree unchanged. Returns False when the tab or group
        is unknown.
        """
        found = self.tree.locate(tab_id)
        dest = self.tree.group(group_name)
        if found is None or dest is None:
            logger.debug("Move of tab {} to {!r} ignored", tab_id, group_name)
            return False
        source, idx = found
        node = source.tabs.pop(idx)
        position = max(0, min(position, len(dest.tabs)))
        dest.tabs.insert(position, node)
        return True

    def toggle_group(self, name: str) -> bool | None:
        """Flip a group's collapsed flag; returns the new value, ``None`` for an unknown group."""
        group = self.tree.group(name)
        if group is None:
            logger.debug("Toggle of unknown group {!r} ignored", name)
            return None
        group.collapsed = not group.collapsed
        return group.collapsed

    def _unsorted_group(self) -> GroupNode:
        group = self.tree.group(UNSORTED)
        if group is None:
            group = GroupNode(name=UNSORTED)
            self.tree.groups.insert(0, group)
            if self.tree.state is TreeState.EMPTY:
                self.tree.state = TreeState.UNSORTED
        return group

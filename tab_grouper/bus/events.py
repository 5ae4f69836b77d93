"""Event types carried from the tab boundary and the pipeline to the sidebar."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from tab_grouper.tabs.models import Tab, TabSnapshot

if TYPE_CHECKING:
    from tab_grouper.categorize.normalize import CanonicalGrouping


@dataclass(frozen=True)
class TabCreated:
    """A tab was opened. ``opener`` may be a resolved tab or a bare id."""

    tab: Tab
    opener: Tab | int | None = None
    has_parent: bool = False

    @property
    def key(self) -> int:
        return self.tab.id

    @property
    def opener_id(self) -> int | None:
        if isinstance(self.opener, Tab):
            return self.opener.id
        return self.opener


@dataclass(frozen=True)
class TabActivated:
    """A tab became the active tab of the window."""

    tab_id: int

    @property
    def key(self) -> int:
        return self.tab_id


@dataclass(frozen=True)
class TabRemoved:
    """A tab was closed."""

    tab_id: int

    @property
    def key(self) -> int:
        return self.tab_id


@dataclass(frozen=True)
class TabUpdated:
    """Title and/or favicon of a tab changed. ``None`` means unchanged."""

    tab_id: int
    title: str | None = None
    favicon: str | None = None

    @property
    def key(self) -> int:
        return self.tab_id


@dataclass(frozen=True)
class StatusChanged:
    """Progress text from the categorization pipeline."""

    text: str

    @property
    def key(self) -> None:
        return None


@dataclass(frozen=True)
class GroupingReady:
    """Categorization finished; the tree should be replaced with ``grouping``."""

    grouping: "CanonicalGrouping"
    snapshot: TabSnapshot

    @property
    def key(self) -> None:
        return None


@dataclass(frozen=True)
class PipelineFailed:
    """Categorization failed; the tree was left as it was."""

    error: str

    @property
    def key(self) -> None:
        return None


TabEvent = Union[TabCreated, TabActivated, TabRemoved, TabUpdated]
PipelineEvent = Union[StatusChanged, GroupingReady, PipelineFailed]
SidebarEvent = Union[TabEvent, PipelineEvent]

TAB_EVENT_TYPES = (TabCreated, TabActivated, TabRemoved, TabUpdated)

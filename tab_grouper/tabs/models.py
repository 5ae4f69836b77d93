"""Tab and snapshot data types."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Iterator

_SNAPSHOT_IDS = itertools.count(1)


def _next_snapshot_id() -> int:
    return next(_SNAPSHOT_IDS)


@dataclass(frozen=True)
class Tab:
    """Transient copy of one browser tab."""

    id: int
    title: str = ""
    url: str = ""
    favicon: str | None = None
    opener_id: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Tab":
        """Build a tab from browser-shaped JSON (camelCase keys accepted)."""
        opener = data.get("openerId", data.get("openerTabId", data.get("opener_id")))
        favicon = data.get("favicon", data.get("favIconUrl"))
        return cls(
            id=int(data["id"]),
            title=str(data.get("title") or ""),
            url=str(data.get("url") or ""),
            favicon=str(favicon) if favicon else None,
            opener_id=int(opener) if opener is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "favicon": self.favicon,
            "openerId": self.opener_id,
        }


@dataclass(frozen=True)
class IndexedTab:
    """A tab at a fixed position inside one snapshot."""

    index: int
    tab: Tab
    parent_title: str | None = None


@dataclass(frozen=True)
class TabSnapshot:
    """
    Ordered, indexed capture of the current window's tabs.

    Indices are only meaningful against the snapshot that produced them;
    ``snapshot_id`` lets consumers detect a grouping applied to the wrong one.
    """

    entries: tuple[IndexedTab, ...]
    snapshot_id: int = field(default_factory=_next_snapshot_id)

    def __post_init__(self) -> None:
        for position, entry in enumerate(self.entries):
            if entry.index != position:
                raise ValueError(f"Snapshot index {entry.index} at position {position}")

    @classmethod
    def from_tabs(cls, tabs: list[Tab], parent_titles: list[str | None] | None = None) -> "TabSnapshot":
        parents = parent_titles or [None] * len(tabs)
        if len(parents) != len(tabs):
            raise ValueError("parent_titles must match tabs")
        return cls(
            entries=tuple(
                IndexedTab(index=idx, tab=tab, parent_title=parent)
                for idx, (tab, parent) in enumerate(zip(tabs, parents))
            )
        )

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[IndexedTab]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> Tab:
        return self.entries[index].tab

    @property
    def tabs(self) -> list[Tab]:
        return [entry.tab for entry in self.entries]

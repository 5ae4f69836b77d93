"""Browser tab boundary: the tab oracle protocol and an in-memory implementation."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

from loguru import logger

from tab_grouper.bus.events import TabActivated, TabCreated, TabRemoved, TabUpdated
from tab_grouper.bus.relay import EventRelay
from tab_grouper.tabs.models import Tab


class TabLookupError(LookupError):
    """Raised when a tab id does not resolve (e.g. the tab is already closed)."""


class TabOracle(Protocol):
    async def query_tabs(self) -> list[Tab]:
        ...

    async def get_tab(self, tab_id: int) -> Tab:
        ...

    async def activate_tab(self, tab_id: int) -> None:
        ...

    async def remove_tab(self, tab_id: int) -> None:
        ...


class StaticTabOracle:
    """
    In-memory window of tabs.

    Mutations go through the same methods a browser would fire events for,
    and each one publishes the matching event to the attached relay.
    """

    def __init__(
        self,
        tabs: list[Tab] | None = None,
        relay: EventRelay | None = None,
        active_tab_id: int | None = None,
    ) -> None:
        self._tabs: dict[int, Tab] = {}
        for tab in tabs or []:
            self._tabs[tab.id] = tab
        self.relay = relay
        self.active_tab_id = active_tab_id

    @classmethod
    def from_json_file(cls, path: Path, relay: EventRelay | None = None) -> "StaticTabOracle":
        """Load a window from a JSON list of browser-shaped tab objects."""
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
        if isinstance(payload, dict):
            payload = payload.get("tabs", [])
        if not isinstance(payload, list):
            raise ValueError(f"{path}: expected a list of tabs")
        tabs = [Tab.from_dict(item) for item in payload if isinstance(item, dict)]
        active = next(
            (int(item["id"]) for item in payload if isinstance(item, dict) and item.get("active")),
            None,
        )
        return cls(tabs=tabs, relay=relay, active_tab_id=active)

    # ── Queries ───────────────────────────────────────────────────────

    async def query_tabs(self) -> list[Tab]:
        return list(self._tabs.values())

    async def get_tab(self, tab_id: int) -> Tab:
        tab = self._tabs.get(tab_id)
        if tab is None:
            raise TabLookupError(f"No tab with id {tab_id}")
        return tab

    # ── Commands ──────────────────────────────────────────────────────

    async def activate_tab(self, tab_id: int) -> None:
        if tab_id not in self._tabs:
            raise TabLookupError(f"No tab with id {tab_id}")
        self.active_tab_id = tab_id
        self._emit(TabActivated(tab_id=tab_id))

    async def remove_tab(self, tab_id: int) -> None:
        if self._tabs.pop(tab_id, None) is None:
            raise TabLookupError(f"No tab with id {tab_id}")
        if self.active_tab_id == tab_id:
            self.active_tab_id = None
        self._emit(TabRemoved(tab_id=tab_id))

    async def open_tab(self, tab: Tab) -> None:
        """Add a tab and announce it, resolving its opener when still open."""
        self._tabs[tab.id] = tab
        opener: Tab | int | None = tab.opener_id
        if tab.opener_id is not None:
            try:
                opener = await self.get_tab(tab.opener_id)
            except TabLookupError:
                logger.debug("Opener {} of tab {} is gone; sending bare id", tab.opener_id, tab.id)
        self._emit(TabCreated(tab=tab, opener=opener, has_parent=tab.opener_id is not None))

    async def update_tab(self, tab_id: int, title: str | None = None, favicon: str | None = None) -> None:
        tab = await self.get_tab(tab_id)
        if title is None and favicon is None:
            return
        self._tabs[tab_id] = Tab(
            id=tab.id,
            title=title if title is not None else tab.title,
            url=tab.url,
            favicon=favicon if favicon is not None else tab.favicon,
            opener_id=tab.opener_id,
        )
        self._emit(TabUpdated(tab_id=tab_id, title=title, favicon=favicon))

    def _emit(self, event) -> None:
        if self.relay is not None:
            self.relay.publish(event)

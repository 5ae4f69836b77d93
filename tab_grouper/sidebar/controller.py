"""Sidebar controller: group-tabs control state, event dispatch and tab commands."""

from __future__ import annotations

from loguru import logger

from tab_grouper.bus.events import (
    TAB_EVENT_TYPES,
    GroupingReady,
    PipelineFailed,
    SidebarEvent,
    StatusChanged,
)
from tab_grouper.bus.relay import EventRelay
from tab_grouper.categorize.errors import CategorizationError
from tab_grouper.categorize.pipeline import CategorizationPipeline
from tab_grouper.sidebar.tree import Reconciler
from tab_grouper.tabs.oracle import TabLookupError, TabOracle

READY_LABEL = "Group Tabs"
WORKING_LABEL = "Grouping tabs..."
SUCCESS_LABEL = "Tabs grouped successfully!"


class SidebarController:
    """
    Bridge between the tab boundary, the categorization pipeline and the tree.

    Pipeline progress and outcome travel through the relay like tab events,
    so they are applied in order with them by :meth:`handle_event`.
    """

    def __init__(
        self,
        oracle: TabOracle,
        relay: EventRelay,
        pipeline: CategorizationPipeline,
        reconciler: Reconciler | None = None,
        default_provider: str = "anthropic",
    ) -> None:
        self.oracle = oracle
        self.relay = relay
        self.pipeline = pipeline
        self.reconciler = reconciler or Reconciler()
        self.default_provider = default_provider

        self.status_text = READY_LABEL
        self.last_error: str | None = None
        self._busy = False

    @property
    def busy(self) -> bool:
        """True while a categorization is in flight; the control is disabled."""
        return self._busy

    @property
    def control_enabled(self) -> bool:
        return not self._busy

    async def load_current_tabs(self) -> None:
        tabs = await self.oracle.query_tabs()
        self.reconciler.initialize(tabs)

    async def request_grouping(self, provider: str | None = None) -> bool:
        """
        Run one categorization; the outcome is published to the relay.

        Returns False without doing anything when a request is already in
        flight, True once the pipeline has produced either outcome.
        """
        if self._busy:
            logger.warning("Categorization already in progress; request ignored")
            return False

        selected = provider or self.default_provider
        self._busy = True
        self.last_error = None
        self.status_text = WORKING_LABEL

        try:
            result = await self.pipeline.run(selected, on_status=self._publish_status)
        except CategorizationError as exc:
            logger.warning(f"Categorization failed: {exc}")
            self.relay.publish(PipelineFailed(error=str(exc)))
        except Exception as exc:
            logger.exception("Unexpected categorization failure")
            self.relay.publish(PipelineFailed(error=f"Failed to group tabs: {exc}"))
        else:
            self._publish_status("Creating tab groups...")
            self.relay.publish(GroupingReady(grouping=result.grouping, snapshot=result.snapshot))
        return True

    def handle_event(self, event: SidebarEvent) -> None:
        """Apply one relay event to the tree or the control state."""
        if isinstance(event, TAB_EVENT_TYPES):
            self.reconciler.handle(event)
        elif isinstance(event, StatusChanged):
            self.status_text = event.text
        elif isinstance(event, GroupingReady):
            self._apply(event)
        elif isinstance(event, PipelineFailed):
            self._fail(event.error)
        else:
            raise TypeError(f"Unhandled sidebar event: {event!r}")

    async def run(self) -> None:
        """Consume relay events until the relay is stopped."""
        await self.relay.run(self.handle_event)

    # ── Row and group actions ─────────────────────────────────────────

    async def activate_tab(self, tab_id: int) -> None:
        """Switch the browser to ``tab_id``; the activation event updates the tree."""
        try:
            await self.oracle.activate_tab(tab_id)
        except TabLookupError as exc:
            logger.debug("Cannot activate tab {}: {}", tab_id, exc)

    async def close_tab(self, tab_id: int) -> None:
        """Close ``tab_id`` and drop its row right away."""
        try:
            await self.oracle.remove_tab(tab_id)
        except TabLookupError as exc:
            logger.debug("Tab {} already closed: {}", tab_id, exc)
        self.reconciler.on_tab_removed(tab_id)

    def move_tab(self, tab_id: int, group_name: str, position: int) -> bool:
        return self.reconciler.move_tab(tab_id, group_name, position)

    def toggle_group(self, name: str) -> bool | None:
        return self.reconciler.toggle_group(name)

    # ── Internals ─────────────────────────────────────────────────────

    def _publish_status(self, text: str) -> None:
        self.relay.publish(StatusChanged(text=text))

    def _apply(self, event: GroupingReady) -> None:
        try:
            self.reconciler.apply_grouping(event.grouping, event.snapshot)
        except CategorizationError as exc:
            self._fail(str(exc))
            return
        self._busy = False
        self.status_text = SUCCESS_LABEL

    def _fail(self, message: str) -> None:
        self._busy = False
        self.last_error = message
        self.status_text = f"Error: {message}"

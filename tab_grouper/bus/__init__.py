"""Event relay module for decoupled tab-boundary/sidebar communication."""

from tab_grouper.bus.events import (
    GroupingReady,
    PipelineFailed,
    SidebarEvent,
    StatusChanged,
    TabActivated,
    TabCreated,
    TabRemoved,
    TabUpdated,
)
from tab_grouper.bus.relay import EventRelay

__all__ = [
    "EventRelay",
    "GroupingReady",
    "PipelineFailed",
    "SidebarEvent",
    "StatusChanged",
    "TabActivated",
    "TabCreated",
    "TabRemoved",
    "TabUpdated",
]
